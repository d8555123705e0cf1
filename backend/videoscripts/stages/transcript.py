import logging
import time
from typing import Callable

from sqlalchemy.orm import Session

from videoscripts.schemas import ItemOutcome, StageResult, StageStatus
from videoscripts.services.transcript_service import TranscriptError, TranscriptFetcher
from videoscripts.stages.base import StageProcessor

logger = logging.getLogger(__name__)


class TranscriptStage(StageProcessor):
    """Fills Video.raw_transcript for every video that has none."""

    name = "transcript"

    def __init__(
        self,
        db: Session,
        fetcher: TranscriptFetcher,
        delay_seconds: float = 2.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        super().__init__(db)
        self.fetcher = fetcher
        self.delay_seconds = delay_seconds
        self.sleep = sleep

    def get_status(self, project_name: str) -> StageStatus:
        project = self.get_project(project_name)
        if project is None:
            return self.missing_status(project_name)

        videos = project.videos
        with_transcripts = sum(1 for v in videos if v.has_transcript)
        return StageStatus(
            stage=self.name,
            project_name=project.name,
            total_items=len(videos),
            completed_items=with_transcripts,
            pending_items=len(videos) - with_transcripts,
        )

    def process_project(self, project_name: str) -> StageResult:
        project = self.get_project(project_name)
        if project is None:
            return self.missing_result(project_name)

        result = StageResult(stage=self.name, project_name=project.name)
        pending = [v for v in project.videos if not v.has_transcript]
        if not pending:
            result.message = "All videos already have transcripts"
            return result

        logger.info(f"Retrieving transcripts for {len(pending)} videos in '{project.name}'")
        first = pending[0]

        def handle(video) -> ItemOutcome:
            # Space out calls to the scraping service
            if video is not first and self.delay_seconds > 0:
                self.sleep(self.delay_seconds)
            return self._fetch_one(video)

        return self.run_items(result, pending, handle, lambda v: (v.id, v.title))

    def _fetch_one(self, video) -> ItemOutcome:
        transcript = self.fetcher.fetch(video.url)
        text = transcript.full_text
        if not text.strip():
            raise TranscriptError("Transcript is empty")

        video.raw_transcript = text
        self.db.commit()

        return ItemOutcome(
            item_id=video.id,
            title=video.title,
            success=True,
            message="Transcript retrieved",
            metrics={"transcript_length": len(text), "word_count": transcript.word_count},
        )
