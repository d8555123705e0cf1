"""
Video Importer
Turns one spreadsheet row (project name + video URLs) into Project, Channel
and Video rows.

Projects and channels are get-or-create. A video that already exists is
re-linked to the row's project instead of duplicated.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from videoscripts.models import Channel, Project, Video
from videoscripts.schemas import ItemOutcome, StageResult
from videoscripts.services.youtube_service import (
    YouTubeServiceError,
    extract_video_id,
    get_channel_info,
    get_videos_info,
)

logger = logging.getLogger(__name__)


class VideoImporter:
    name = "import"

    def __init__(self, db: Session, youtube):
        self.db = db
        self.youtube = youtube

    def get_or_create_project(self, project_name: str, topic: Optional[str] = None) -> Project:
        project = self.db.query(Project).filter(Project.name == project_name).first()
        if project is None:
            project = Project(name=project_name, topic=topic or f"Project for {project_name}")
            self.db.add(project)
            self.db.commit()
            logger.info(f"Created project '{project_name}'")
        elif topic and topic != project.topic:
            project.topic = topic
            self.db.commit()
        return project

    def get_or_create_channel(self, youtube_channel_id: str, fallback_title: Optional[str] = None) -> Channel:
        channel = (
            self.db.query(Channel)
            .filter(Channel.youtube_channel_id == youtube_channel_id)
            .execution_options(include_deleted=True)
            .first()
        )
        if channel is not None:
            channel.is_deleted = False
            return channel

        info = get_channel_info(self.youtube, youtube_channel_id) or {}
        channel = Channel(
            youtube_channel_id=youtube_channel_id,
            title=info.get("title") or fallback_title or youtube_channel_id,
            description=info.get("description"),
            thumbnail_url=info.get("thumbnail_url"),
            subscriber_count=info.get("subscriber_count", 0),
            video_count=info.get("video_count", 0),
            view_count=info.get("view_count", 0),
        )
        self.db.add(channel)
        self.db.flush()
        logger.info(f"Created channel '{channel.title}'")
        return channel

    def import_project(self, project_name: str, video_urls: list[str], topic: Optional[str] = None) -> StageResult:
        """
        Import every URL of one row into the named project.

        Returns:
            StageResult with one outcome per URL; success if any video was
            imported or linked
        """
        project_name = project_name.strip()
        project = self.get_or_create_project(project_name, topic)
        result = StageResult(stage=self.name, project_name=project.name)

        video_ids = []
        for url in video_urls:
            video_id = extract_video_id(url)
            if video_id is None:
                result.add(ItemOutcome(title=url, success=False, message="Could not extract video id from URL"))
            elif video_id not in video_ids:
                video_ids.append(video_id)

        if not video_ids:
            result.message = "No valid video URLs"
            return result

        try:
            infos = {info["video_id"]: info for info in get_videos_info(self.youtube, video_ids)}
        except YouTubeServiceError as e:
            logger.error(f"Metadata lookup failed for '{project.name}': {e}")
            for video_id in video_ids:
                result.add(ItemOutcome(title=video_id, success=False, message=str(e)))
            return result

        for video_id in video_ids:
            try:
                outcome = self._import_video(project, video_id, infos.get(video_id))
            except Exception as e:
                self.db.rollback()
                logger.error(f"Failed to import {video_id}: {e}")
                outcome = ItemOutcome(title=video_id, success=False, message=str(e))
            result.add(outcome)

        result.message = f"{result.successful_count} of {len(video_ids)} videos imported"
        return result

    def _import_video(self, project: Project, video_id: str, info: Optional[dict]) -> ItemOutcome:
        existing = (
            self.db.query(Video)
            .filter(Video.youtube_video_id == video_id)
            .execution_options(include_deleted=True)
            .first()
        )
        if existing is not None:
            existing.project_id = project.id
            existing.is_deleted = False
            self.db.commit()
            return ItemOutcome(
                item_id=existing.id,
                title=existing.title,
                success=True,
                message="Video already exists - updated project association",
            )

        if info is None:
            return ItemOutcome(title=video_id, success=False, message="Video not found on YouTube")
        if not info.get("channel_id"):
            return ItemOutcome(title=info["title"] or video_id, success=False, message="Video has no channel id")

        channel = self.get_or_create_channel(info["channel_id"], info.get("channel_title"))
        video = Video(
            youtube_video_id=video_id,
            project_id=project.id,
            channel_id=channel.id,
            title=info["title"] or video_id,
            description=info.get("description"),
            thumbnail_url=info.get("thumbnail_url"),
            duration=info.get("duration_seconds", 0),
            published_at=info.get("published_at"),
            view_count=info.get("view_count", 0),
            like_count=info.get("like_count", 0),
            comment_count=info.get("comment_count", 0),
        )
        self.db.add(video)
        self.db.commit()

        return ItemOutcome(
            item_id=video.id,
            title=video.title,
            success=True,
            message="Imported",
            metrics={"duration_seconds": video.duration, "channel": channel.title},
        )
