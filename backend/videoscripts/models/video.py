from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text, BigInteger
from sqlalchemy.orm import relationship

from videoscripts.db.database import Base
from videoscripts.models.base import AuditMixin


class Video(AuditMixin, Base):
    __tablename__ = "videos"

    youtube_video_id = Column(String(20), unique=True, nullable=False, index=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=True)
    channel_id = Column(Integer, ForeignKey("channels.id"), nullable=False)

    # YouTube metadata
    title = Column(String(500), nullable=False)
    description = Column(Text, nullable=True)
    thumbnail_url = Column(String(500), nullable=True)
    duration = Column(Integer, default=0)  # seconds
    published_at = Column(DateTime, nullable=True)
    view_count = Column(BigInteger, default=0)
    like_count = Column(BigInteger, default=0)
    comment_count = Column(BigInteger, default=0)

    # Written by the Transcript stage
    raw_transcript = Column(Text, nullable=True)

    # Written by the Summary stage
    video_topic = Column(String(250), nullable=True)
    main_summary = Column(Text, nullable=True)
    structured_content = Column(Text, nullable=True)

    # Relationships
    project = relationship("Project", back_populates="videos")
    channel = relationship("Channel", back_populates="videos")
    transcript_topics = relationship(
        "TranscriptTopic",
        back_populates="video",
        order_by="TranscriptTopic.start_time",
        cascade="all, delete-orphan",
    )

    @property
    def url(self) -> str:
        return f"https://www.youtube.com/watch?v={self.youtube_video_id}"

    @property
    def has_transcript(self) -> bool:
        return bool(self.raw_transcript and self.raw_transcript.strip())

    @property
    def has_summary(self) -> bool:
        return bool(self.video_topic and self.video_topic.strip())
