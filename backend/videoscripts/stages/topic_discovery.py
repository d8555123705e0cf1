"""
Topic Discovery
Splits each transcript into timed topics (title, summary, content, blueprint).
"""

import json
import logging

from sqlalchemy.orm import Session

from videoscripts.models import TranscriptTopic
from videoscripts.schemas import ItemOutcome, StageResult, StageStatus
from videoscripts.services.llm_gateway import LLMGateway
from videoscripts.stages.base import StageProcessor
from videoscripts.stages.contracts import (
    DiscoveredTopic,
    ResponseValidationError,
    TopicDiscoveryResponse,
    parse_json,
    validate_payload,
)
from videoscripts.stages.prompts import TOPIC_DISCOVERY_CONFIG, TOPIC_DISCOVERY_TEMPLATE
from videoscripts.utils import parse_timestamp, truncate_text, truncate_transcript

logger = logging.getLogger(__name__)

MAX_TRANSCRIPT_CHARS = 600_000
MAX_TITLE_LENGTH = 200
MAX_SUMMARY_LENGTH = 1000


class TopicDiscoveryStage(StageProcessor):
    name = "topic_discovery"

    def __init__(self, db: Session, llm: LLMGateway):
        super().__init__(db)
        self.llm = llm

    def get_status(self, project_name: str) -> StageStatus:
        project = self.get_project(project_name)
        if project is None:
            return self.missing_status(project_name)

        with_transcripts = [v for v in project.videos if v.has_transcript]
        with_topics = [v for v in with_transcripts if v.transcript_topics]
        return StageStatus(
            stage=self.name,
            project_name=project.name,
            total_items=len(with_transcripts),
            completed_items=len(with_topics),
            pending_items=len(with_transcripts) - len(with_topics),
            details={
                "total_videos": len(project.videos),
                "total_topics": sum(len(v.transcript_topics) for v in with_topics),
            },
        )

    def process_project(self, project_name: str) -> StageResult:
        project = self.get_project(project_name)
        if project is None:
            return self.missing_result(project_name)

        result = StageResult(stage=self.name, project_name=project.name)
        pending = [v for v in project.videos if v.has_transcript and not v.transcript_topics]
        if not pending:
            result.message = "No videos need topic discovery"
            return result

        logger.info(f"Discovering topics for {len(pending)} videos in '{project.name}'")
        return self.run_items(result, pending, self._discover, lambda v: (v.id, v.title))

    def _discover(self, video) -> ItemOutcome:
        transcript = truncate_transcript(video.raw_transcript, MAX_TRANSCRIPT_CHARS, min_ratio=0.85)
        if len(transcript) < len(video.raw_transcript):
            logger.warning(
                f"Truncated transcript for '{video.title}' from {len(video.raw_transcript)} "
                f"to {len(transcript)} chars"
            )

        response = self.llm.complete(
            TOPIC_DISCOVERY_TEMPLATE.format(transcript=transcript),
            TOPIC_DISCOVERY_CONFIG,
        )
        envelope = validate_payload(parse_json(response.content), TopicDiscoveryResponse)

        topics = []
        skipped = 0
        for raw in envelope.topics:
            try:
                topics.append(validate_payload(raw, DiscoveredTopic))
            except ResponseValidationError as e:
                skipped += 1
                logger.debug(f"Skipping invalid topic for '{video.title}': {e}")

        if not topics:
            raise ResponseValidationError("No valid topics found in response")

        for topic in topics:
            self.db.add(TranscriptTopic(
                video_id=video.id,
                start_time=parse_timestamp(topic.starttime),
                title=truncate_text(topic.title, MAX_TITLE_LENGTH),
                topic_summary=truncate_text(topic.summary, MAX_SUMMARY_LENGTH),
                content=topic.content,
                blueprint_elements=json.dumps(topic.blueprint_elements) if topic.blueprint_elements else None,
                is_selected=False,
            ))
        self.db.commit()

        message = f"Discovered {len(topics)} topics"
        if skipped:
            message += f" ({skipped} invalid skipped)"
        return ItemOutcome(
            item_id=video.id,
            title=video.title,
            success=True,
            message=message,
            metrics={
                "topic_count": len(topics),
                "skipped_topics": skipped,
                "transcript_length": len(video.raw_transcript),
                "total_tokens": response.usage.total_tokens,
            },
        )
