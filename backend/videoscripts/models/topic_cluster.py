from sqlalchemy import Column, Integer, String, ForeignKey, Text
from sqlalchemy.orm import relationship

from videoscripts.db.database import Base
from videoscripts.models.base import AuditMixin


class TopicCluster(AuditMixin, Base):
    __tablename__ = "topic_clusters"

    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False, index=True)
    cluster_name = Column(String(250), nullable=False)
    cluster_description = Column(Text, nullable=True)
    display_order = Column(Integer, default=0, nullable=False)

    project = relationship("Project", back_populates="topic_clusters")
    assignments = relationship(
        "TopicClusterAssignment",
        back_populates="topic_cluster",
        cascade="all, delete-orphan",
    )


class TopicClusterAssignment(AuditMixin, Base):
    __tablename__ = "topic_cluster_assignments"

    topic_cluster_id = Column(Integer, ForeignKey("topic_clusters.id"), nullable=False, index=True)
    # One cluster per topic
    transcript_topic_id = Column(
        Integer, ForeignKey("transcript_topics.id"), nullable=False, unique=True
    )
    assignment_reason = Column(Text, nullable=True)

    topic_cluster = relationship("TopicCluster", back_populates="assignments")
    transcript_topic = relationship("TranscriptTopic", back_populates="cluster_assignment")
