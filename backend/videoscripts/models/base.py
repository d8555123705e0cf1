"""
Auditable, soft-deletable records.

Every entity except Project mixes in AuditMixin. Two session hooks keep the
columns honest:

- before_flush stamps created/modified by + at on every insert and update,
  using ``session.info["actor"]`` (default "system").
- do_orm_execute hides rows with ``is_deleted`` set from ORM SELECTs and
  relationship loads unless the statement carries
  ``execution_options(include_deleted=True)``.
"""

from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Integer, String, event
from sqlalchemy.orm import Session, with_loader_criteria

DEFAULT_ACTOR = "system"


class AuditMixin:
    id = Column(Integer, primary_key=True, index=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    created_by = Column(String(100), nullable=False, default=DEFAULT_ACTOR)
    last_modified_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    last_modified_by = Column(String(100), nullable=False, default=DEFAULT_ACTOR)
    is_deleted = Column(Boolean, default=False, nullable=False)

    def soft_delete(self) -> None:
        self.is_deleted = True


@event.listens_for(Session, "before_flush")
def _stamp_audit_columns(session, flush_context, instances):
    actor = session.info.get("actor", DEFAULT_ACTOR)
    now = datetime.utcnow()

    for obj in session.new:
        if isinstance(obj, AuditMixin):
            obj.created_at = obj.created_at or now
            obj.created_by = obj.created_by or actor
            obj.last_modified_at = now
            obj.last_modified_by = actor

    for obj in session.dirty:
        if isinstance(obj, AuditMixin) and session.is_modified(obj, include_collections=False):
            obj.last_modified_at = now
            obj.last_modified_by = actor


@event.listens_for(Session, "do_orm_execute")
def _hide_soft_deleted(execute_state):
    if (
        execute_state.is_select
        and not execute_state.is_column_load
        and not execute_state.execution_options.get("include_deleted", False)
    ):
        execute_state.statement = execute_state.statement.options(
            with_loader_criteria(
                AuditMixin,
                lambda cls: cls.is_deleted.is_(False),
                include_aliases=True,
            )
        )
