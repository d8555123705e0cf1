from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Text
from sqlalchemy.orm import relationship

from videoscripts.db.database import Base


class Project(Base):
    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), unique=True, nullable=False, index=True)
    topic = Column(Text, nullable=False, default="")

    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    videos = relationship("Video", back_populates="project", order_by="Video.published_at")
    scripts = relationship("Script", back_populates="project", order_by="Script.version")
    topic_clusters = relationship(
        "TopicCluster",
        back_populates="project",
        order_by="TopicCluster.display_order",
        cascade="all, delete-orphan",
    )
