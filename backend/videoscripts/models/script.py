from sqlalchemy import Column, Integer, String, ForeignKey, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from videoscripts.db.database import Base
from videoscripts.models.base import AuditMixin


class Script(AuditMixin, Base):
    __tablename__ = "scripts"
    __table_args__ = (UniqueConstraint("project_id", "version", name="uq_scripts_project_version"),)

    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False, index=True)
    title = Column(String(500), nullable=False)
    content = Column(Text, nullable=False)
    version = Column(Integer, nullable=False)

    # Token usage reported by the completion API
    prompt_tokens = Column(Integer, default=0)
    completion_tokens = Column(Integer, default=0)
    total_tokens = Column(Integer, default=0)

    project = relationship("Project", back_populates="scripts")

    @property
    def word_count(self) -> int:
        return len(self.content.split()) if self.content else 0
