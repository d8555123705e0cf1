"""
Shared shape of every pipeline stage.

A stage answers two questions for a project:
- get_status: how many items exist, how many are done, how many still need work
- process_project: run the stage over every eligible item, one at a time

Per-item failures are caught, rolled back and recorded as ItemOutcome rows so
one bad video never aborts the rest of the batch.
"""

import logging
from typing import Callable, Iterable, Optional

from sqlalchemy.orm import Session

from videoscripts.models import Project
from videoscripts.schemas import ItemOutcome, StageResult, StageStatus

logger = logging.getLogger(__name__)


class StageProcessor:
    name: str = ""

    def __init__(self, db: Session):
        self.db = db

    def get_project(self, project_name: str) -> Optional[Project]:
        return self.db.query(Project).filter(Project.name == project_name.strip()).first()

    def get_status(self, project_name: str) -> StageStatus:
        raise NotImplementedError

    def process_project(self, project_name: str) -> StageResult:
        raise NotImplementedError

    def missing_status(self, project_name: str) -> StageStatus:
        return StageStatus(stage=self.name, project_name=project_name, project_exists=False)

    def missing_result(self, project_name: str) -> StageResult:
        return StageResult(
            stage=self.name,
            project_name=project_name,
            project_exists=False,
            message=f"Project '{project_name}' not found",
        )

    def run_items(
        self,
        result: StageResult,
        items: Iterable,
        handle: Callable[[object], ItemOutcome],
        describe: Callable[[object], tuple],
    ) -> StageResult:
        """
        Apply `handle` to each item, converting exceptions into failed outcomes.

        `describe(item)` returns (item_id, title) and is evaluated before the
        handler runs so the failure record survives a rollback.
        """
        for item in items:
            item_id, title = describe(item)
            try:
                outcome = handle(item)
            except Exception as e:
                self.db.rollback()
                logger.error(f"[{self.name}] {title}: {e}")
                outcome = ItemOutcome(item_id=item_id, title=title, success=False, message=str(e))
            result.add(outcome)

        logger.info(
            f"[{self.name}] {result.project_name}: "
            f"{result.successful_count} succeeded, {result.failed_count} failed"
        )
        return result
