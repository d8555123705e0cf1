"""
Script Synthesis
Writes a long-form video script from a project's transcripts.

Every run stores a new Script version (max existing + 1); earlier versions
are never modified.
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from videoscripts.models import Script
from videoscripts.schemas import ItemOutcome, ScriptResponse, StageResult, StageStatus
from videoscripts.services.llm_gateway import LLMGateway
from videoscripts.stages.base import StageProcessor
from videoscripts.stages.prompts import (
    SCRIPT_CONFIG,
    SCRIPT_FRAMEWORK,
    SCRIPT_INSTRUCTIONS,
    TOPIC_PLACEHOLDER,
)
from videoscripts.utils import count_words, truncate_words

logger = logging.getLogger(__name__)

MAX_WORDS_PER_TRANSCRIPT = 1500
TRUNCATION_MARKER = "... [transcript truncated for length]"
WORDS_PER_MINUTE = 150


def build_script_prompt(topic: str, videos: list) -> str:
    """Framework + per-video source material + writing instructions."""
    parts = [
        SCRIPT_FRAMEWORK.replace(TOPIC_PLACEHOLDER, topic),
        "",
        "SOURCE MATERIAL:",
        "You have access to the following video transcripts to draw insights, stories, and content from:",
        "",
    ]
    for index, video in enumerate(videos, start=1):
        parts.append(f"=== VIDEO {index}: {video.title} ===")
        parts.append(truncate_words(video.raw_transcript, MAX_WORDS_PER_TRANSCRIPT, TRUNCATION_MARKER))
        parts.append("")
    parts.append(SCRIPT_INSTRUCTIONS.format(topic=topic))
    return "\n".join(parts)


def estimate_minutes(word_count: int) -> float:
    return round(word_count / WORDS_PER_MINUTE, 1)


class ScriptSynthesisStage(StageProcessor):
    name = "script"

    def __init__(self, db: Session, llm: LLMGateway, clock: Callable[[], datetime] = datetime.utcnow):
        super().__init__(db)
        self.llm = llm
        self.clock = clock

    def get_status(self, project_name: str) -> StageStatus:
        project = self.get_project(project_name)
        if project is None:
            return self.missing_status(project_name)

        with_transcripts = sum(1 for v in project.videos if v.has_transcript)
        existing = len(project.scripts)
        return StageStatus(
            stage=self.name,
            project_name=project.name,
            total_items=len(project.videos),
            completed_items=existing,
            pending_items=1 if with_transcripts and not existing else 0,
            details={
                "videos_with_transcripts": with_transcripts,
                "existing_scripts": existing,
                "is_ready": with_transcripts > 0,
            },
        )

    def next_version(self, project) -> int:
        # Soft-deleted versions still count so numbers are never reused
        current = (
            self.db.query(func.max(Script.version))
            .filter(Script.project_id == project.id)
            .execution_options(include_deleted=True)
            .scalar()
        )
        return (current or 0) + 1

    def process_project(self, project_name: str, custom_title: Optional[str] = None) -> StageResult:
        project = self.get_project(project_name)
        if project is None:
            return self.missing_result(project_name)

        result = StageResult(stage=self.name, project_name=project.name)
        sources = [v for v in project.videos if v.has_transcript]
        if not sources:
            result.message = "No videos with transcripts found for this project"
            return result

        topic = project.topic or project.name
        logger.info(f"Creating script for '{project.name}' from {len(sources)} transcripts")

        def handle(_) -> ItemOutcome:
            return self._create(project, topic, sources, custom_title)

        return self.run_items(result, [project], handle, lambda p: (None, f"{p.name} script"))

    def _create(self, project, topic: str, sources: list, custom_title: Optional[str]) -> ItemOutcome:
        response = self.llm.complete(build_script_prompt(topic, sources), SCRIPT_CONFIG)
        content = response.content.strip()

        version = self.next_version(project)
        title = custom_title or (
            f"{project.name} - {topic} Script v{version} ({self.clock():%Y-%m-%d})"
        )

        script = Script(
            project_id=project.id,
            title=title,
            content=content,
            version=version,
            prompt_tokens=response.usage.prompt_tokens,
            completion_tokens=response.usage.completion_tokens,
            total_tokens=response.usage.total_tokens,
        )
        self.db.add(script)
        self.db.commit()

        words = count_words(content)
        return ItemOutcome(
            item_id=script.id,
            title=title,
            success=True,
            message=f"Created version {version} ({words} words, ~{estimate_minutes(words)} min)",
            metrics={
                "version": version,
                "word_count": words,
                "estimated_minutes": estimate_minutes(words),
                "source_videos": len(sources),
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
                "total_tokens": response.usage.total_tokens,
                "estimated_cost_usd": round(response.estimated_cost_usd, 4),
            },
        )

    def list_scripts(self, project_name: str) -> list[ScriptResponse]:
        """Every script version for the project, newest first."""
        project = self.get_project(project_name)
        if project is None:
            return []
        scripts = (
            self.db.query(Script)
            .filter(Script.project_id == project.id)
            .order_by(Script.version.desc())
            .all()
        )
        return [ScriptResponse.model_validate(s) for s in scripts]
