"""
Tests for the spreadsheet-row importer.
"""
from datetime import datetime
from unittest.mock import patch

from conftest import make_channel, make_project, make_video
from videoscripts.importer import VideoImporter
from videoscripts.models import Channel, Project, Video
from videoscripts.services.youtube_service import YouTubeServiceError


def video_info(video_id, channel_id="UC_new_channel", title=None):
    return {
        "video_id": video_id,
        "title": title or f"Title {video_id}",
        "description": "desc",
        "published_at": datetime(2024, 1, 1),
        "channel_id": channel_id,
        "channel_title": "New Channel",
        "thumbnail_url": None,
        "duration_seconds": 600,
        "view_count": 10,
        "like_count": 2,
        "comment_count": 1,
    }


class TestVideoImporter:

    @patch("videoscripts.importer.get_channel_info")
    @patch("videoscripts.importer.get_videos_info")
    def test_imports_new_project_and_videos(self, mock_videos, mock_channel, db):
        mock_videos.return_value = [video_info("aaaaaaaaaaa"), video_info("bbbbbbbbbbb")]
        mock_channel.return_value = {"title": "Growth Channel", "subscriber_count": 100}

        result = VideoImporter(db, youtube=object()).import_project(
            " Demo ",
            ["https://www.youtube.com/watch?v=aaaaaaaaaaa", "https://youtu.be/bbbbbbbbbbb"],
        )

        assert result.success
        assert result.message == "2 of 2 videos imported"
        project = db.query(Project).one()
        assert project.name == "Demo"
        assert project.topic == "Project for Demo"
        assert db.query(Video).count() == 2
        channel = db.query(Channel).one()
        assert channel.title == "Growth Channel"
        assert channel.created_by == "test-runner"
        mock_channel.assert_called_once()

    @patch("videoscripts.importer.get_channel_info")
    @patch("videoscripts.importer.get_videos_info")
    def test_bad_urls_and_duplicates(self, mock_videos, mock_channel, db):
        mock_videos.return_value = [video_info("aaaaaaaaaaa")]
        mock_channel.return_value = None

        result = VideoImporter(db, youtube=object()).import_project(
            "Demo",
            ["not a url", "aaaaaaaaaaa", "https://www.youtube.com/watch?v=aaaaaaaaaaa", "ccccccccccc"],
            topic="Pricing",
        )

        assert mock_videos.call_args.args[1] == ["aaaaaaaaaaa", "ccccccccccc"]
        messages = {item.title: item.message for item in result.items}
        assert messages["not a url"] == "Could not extract video id from URL"
        assert messages["ccccccccccc"] == "Video not found on YouTube"
        assert result.successful_count == 1
        assert db.query(Project).one().topic == "Pricing"
        assert db.query(Channel).one().title == "New Channel"

    @patch("videoscripts.importer.get_videos_info")
    def test_existing_video_is_relinked(self, mock_videos, db):
        old_project = make_project(db, name="Old")
        video = make_video(db, old_project, make_channel(db), "aaaaaaaaaaa", transcript="keep me")
        mock_videos.return_value = [video_info("aaaaaaaaaaa")]

        result = VideoImporter(db, youtube=object()).import_project("New", ["aaaaaaaaaaa"])

        assert result.success
        assert result.items[0].message == "Video already exists - updated project association"
        db.refresh(video)
        assert video.project.name == "New"
        assert video.raw_transcript == "keep me"
        assert db.query(Video).count() == 1

    @patch("videoscripts.importer.get_videos_info")
    def test_api_failure_fails_every_id(self, mock_videos, db):
        mock_videos.side_effect = YouTubeServiceError("Failed to get video details: quota")

        result = VideoImporter(db, youtube=object()).import_project("Demo", ["aaaaaaaaaaa", "bbbbbbbbbbb"])

        assert not result.success
        assert result.failed_count == 2
        assert db.query(Video).count() == 0

    def test_existing_project_is_reused(self, db):
        make_project(db, name="Demo", topic="Original")
        importer = VideoImporter(db, youtube=object())

        project = importer.get_or_create_project("Demo")

        assert project.topic == "Original"
        assert db.query(Project).count() == 1
