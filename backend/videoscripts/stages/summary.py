import logging

from sqlalchemy.orm import Session

from videoscripts.schemas import ItemOutcome, StageResult, StageStatus
from videoscripts.services.llm_gateway import LLMGateway
from videoscripts.stages.base import StageProcessor
from videoscripts.stages.contracts import SummaryResponse, parse_response
from videoscripts.stages.prompts import SUMMARY_CONFIG, SUMMARY_TEMPLATE
from videoscripts.utils import truncate_text, truncate_transcript

logger = logging.getLogger(__name__)

MAX_TRANSCRIPT_CHARS = 12_000
MAX_TOPIC_LENGTH = 200
MAX_SUMMARY_LENGTH = 2000


class SummaryStage(StageProcessor):
    """Writes video_topic, main_summary and structured_content per video."""

    name = "summary"

    def __init__(self, db: Session, llm: LLMGateway):
        super().__init__(db)
        self.llm = llm

    def get_status(self, project_name: str) -> StageStatus:
        project = self.get_project(project_name)
        if project is None:
            return self.missing_status(project_name)

        with_transcripts = [v for v in project.videos if v.has_transcript]
        summarized = sum(1 for v in with_transcripts if v.has_summary)
        return StageStatus(
            stage=self.name,
            project_name=project.name,
            total_items=len(with_transcripts),
            completed_items=summarized,
            pending_items=len(with_transcripts) - summarized,
            details={"total_videos": len(project.videos)},
        )

    def process_project(self, project_name: str) -> StageResult:
        project = self.get_project(project_name)
        if project is None:
            return self.missing_result(project_name)

        result = StageResult(stage=self.name, project_name=project.name)
        pending = [v for v in project.videos if v.has_transcript and not v.has_summary]
        if not pending:
            result.message = "No videos need summaries"
            return result

        logger.info(f"Summarizing {len(pending)} videos in '{project.name}'")
        return self.run_items(result, pending, self._summarize, lambda v: (v.id, v.title))

    def _summarize(self, video) -> ItemOutcome:
        transcript = truncate_transcript(video.raw_transcript, MAX_TRANSCRIPT_CHARS, min_ratio=0.8)

        response = self.llm.complete(SUMMARY_TEMPLATE.format(transcript=transcript), SUMMARY_CONFIG)
        summary = parse_response(response.content, SummaryResponse)

        video.video_topic = truncate_text(summary.video_topic, MAX_TOPIC_LENGTH)
        video.main_summary = truncate_text(summary.main_summary, MAX_SUMMARY_LENGTH)
        video.structured_content = summary.structured_content
        self.db.commit()

        return ItemOutcome(
            item_id=video.id,
            title=video.title,
            success=True,
            message=f"Topic: {video.video_topic}",
            metrics={
                "transcript_length": len(video.raw_transcript),
                "summary_length": len(video.main_summary),
                "total_tokens": response.usage.total_tokens,
            },
        )
