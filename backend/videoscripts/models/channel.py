from sqlalchemy import Column, String, Text, BigInteger
from sqlalchemy.orm import relationship

from videoscripts.db.database import Base
from videoscripts.models.base import AuditMixin


class Channel(AuditMixin, Base):
    __tablename__ = "channels"

    youtube_channel_id = Column(String(50), unique=True, nullable=False, index=True)
    title = Column(String(500), nullable=False)
    description = Column(Text, nullable=True)
    thumbnail_url = Column(String(500), nullable=True)

    # Statistics
    subscriber_count = Column(BigInteger, default=0)
    video_count = Column(BigInteger, default=0)
    view_count = Column(BigInteger, default=0)

    videos = relationship("Video", back_populates="channel")
