"""
Tests for the Transcript stage.
"""
from unittest.mock import MagicMock

from conftest import make_channel, make_project, make_video
from videoscripts.services.transcript_service import Transcript, TranscriptEntry, TranscriptError
from videoscripts.stages.transcript import TranscriptStage


def transcript_for(text):
    return lambda url: Transcript(video_url=url, entries=[TranscriptEntry(text=text)])


class TestTranscriptStage:

    def test_status_counts_pending_videos(self, db):
        project = make_project(db)
        channel = make_channel(db)
        make_video(db, project, channel, "aaaaaaaaaaa", transcript="Already here")
        make_video(db, project, channel, "bbbbbbbbbbb")

        status = TranscriptStage(db, MagicMock()).get_status(project.name)

        assert status.total_items == 2
        assert status.completed_items == 1
        assert status.pending_items == 1
        assert not status.is_complete

    def test_fetches_only_missing_transcripts(self, db):
        project = make_project(db)
        channel = make_channel(db)
        make_video(db, project, channel, "aaaaaaaaaaa", transcript="Already here")
        pending = make_video(db, project, channel, "bbbbbbbbbbb")
        fetcher = MagicMock()
        fetcher.fetch.side_effect = transcript_for("Fresh words from the video")

        result = TranscriptStage(db, fetcher, delay_seconds=0).process_project(project.name)

        assert result.success
        assert result.successful_count == 1
        fetcher.fetch.assert_called_once_with(pending.url)
        db.refresh(pending)
        assert pending.raw_transcript == "Fresh words from the video"
        assert result.items[0].metrics["word_count"] == 5

    def test_second_run_is_noop(self, db):
        project = make_project(db)
        channel = make_channel(db)
        make_video(db, project, channel, "aaaaaaaaaaa")
        fetcher = MagicMock()
        fetcher.fetch.side_effect = transcript_for("Some transcript text")
        stage = TranscriptStage(db, fetcher, delay_seconds=0)

        stage.process_project(project.name)
        second = stage.process_project(project.name)

        assert fetcher.fetch.call_count == 1
        assert second.items == []
        assert not second.success
        assert stage.get_status(project.name).is_complete

    def test_failures_are_recorded_per_item(self, db):
        project = make_project(db)
        channel = make_channel(db)
        make_video(db, project, channel, "aaaaaaaaaaa", days_ago=2)
        ok = make_video(db, project, channel, "bbbbbbbbbbb", days_ago=1)
        fetcher = MagicMock()
        fetcher.fetch.side_effect = [TranscriptError("Transcripts are disabled"), Transcript(ok.url, [TranscriptEntry("Works")])]

        result = TranscriptStage(db, fetcher, delay_seconds=0).process_project(project.name)

        assert result.success
        assert result.failed_count == 1
        assert result.items[0].message == "Transcripts are disabled"
        db.refresh(ok)
        assert ok.raw_transcript == "Works"

    def test_empty_transcript_is_failure(self, db):
        project = make_project(db)
        channel = make_channel(db)
        video = make_video(db, project, channel, "aaaaaaaaaaa")
        fetcher = MagicMock()
        fetcher.fetch.side_effect = transcript_for("   ")

        result = TranscriptStage(db, fetcher, delay_seconds=0).process_project(project.name)

        assert not result.success
        assert result.items[0].message == "Transcript is empty"
        db.refresh(video)
        assert video.raw_transcript is None

    def test_sleeps_between_requests_only(self, db):
        project = make_project(db)
        channel = make_channel(db)
        for video_id in ["aaaaaaaaaaa", "bbbbbbbbbbb", "ccccccccccc"]:
            make_video(db, project, channel, video_id)
        fetcher = MagicMock()
        fetcher.fetch.side_effect = transcript_for("text")
        sleep = MagicMock()

        TranscriptStage(db, fetcher, delay_seconds=2.0, sleep=sleep).process_project(project.name)

        assert sleep.call_count == 2
        sleep.assert_called_with(2.0)

    def test_unknown_project(self, db):
        stage = TranscriptStage(db, MagicMock())

        assert stage.get_status("Nope").project_exists is False
        result = stage.process_project("Nope")
        assert result.project_exists is False
        assert result.message == "Project 'Nope' not found"
