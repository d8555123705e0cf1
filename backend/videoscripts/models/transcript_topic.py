import json

from sqlalchemy import Column, Integer, String, ForeignKey, Text, Boolean, Interval
from sqlalchemy.orm import relationship

from videoscripts.db.database import Base
from videoscripts.models.base import AuditMixin


class TranscriptTopic(AuditMixin, Base):
    __tablename__ = "transcript_topics"

    video_id = Column(Integer, ForeignKey("videos.id"), nullable=False, index=True)

    start_time = Column(Interval, nullable=False)
    title = Column(String(250), nullable=False)
    topic_summary = Column(String(1010), nullable=False)
    content = Column(Text, nullable=True)
    # JSON list of extracted steps, e.g. ["Define the offer", "Price it"]
    blueprint_elements = Column(Text, nullable=True)
    is_selected = Column(Boolean, default=False, nullable=False)

    video = relationship("Video", back_populates="transcript_topics")
    cluster_assignment = relationship(
        "TopicClusterAssignment",
        back_populates="transcript_topic",
        uselist=False,
    )

    @property
    def blueprint_list(self) -> list[str]:
        if not self.blueprint_elements:
            return []
        try:
            elements = json.loads(self.blueprint_elements)
        except json.JSONDecodeError:
            return [self.blueprint_elements]
        return [str(e) for e in elements] if isinstance(elements, list) else [str(elements)]
