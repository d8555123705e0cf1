"""
Tests for Topic Discovery and Summary, including the full
transcript -> topics -> summary path for one project.
"""
import json
from datetime import timedelta

from conftest import FakeLLM, fixed, make_channel, make_project, make_video
from videoscripts.models import TranscriptTopic
from videoscripts.services.llm_gateway import LLMGatewayError
from videoscripts.stages.summary import SummaryStage
from videoscripts.stages.topic_discovery import TopicDiscoveryStage

FIFTY_WORDS = " ".join(f"word{i}" for i in range(50))

TWO_TOPICS = {
    "topics": [
        {
            "starttime": "00:00:00",
            "title": "Opening hook",
            "summary": "Why most newsletters stall",
            "content": "The speaker explains the plateau.",
            "blueprint_elements": ["Audit your list", "Pick one channel"],
        },
        {
            "starttime": "00:01:30",
            "title": "Referral loop",
            "summary": "Turning readers into promoters",
            "content": "",
            "blueprint_elements": [],
        },
    ]
}

SUMMARY = {
    "video_topic": "Newsletter growth",
    "main_summary": "A walkthrough of growing a newsletter from zero.",
    "structured_content": "1. Hook\n2. Referrals",
}


class TestTopicDiscovery:

    def test_creates_topics_with_parsed_start_times(self, db):
        project = make_project(db, name="Demo")
        video = make_video(db, project, make_channel(db), "aaaaaaaaaaa", transcript=FIFTY_WORDS)
        llm = FakeLLM(fixed(TWO_TOPICS))

        result = TopicDiscoveryStage(db, llm).process_project("Demo")

        assert result.success
        topics = db.query(TranscriptTopic).filter(TranscriptTopic.video_id == video.id).all()
        assert len(topics) == 2
        assert sorted(t.start_time for t in topics) == [timedelta(0), timedelta(minutes=1, seconds=30)]
        hook = next(t for t in topics if t.title == "Opening hook")
        assert hook.blueprint_list == ["Audit your list", "Pick one channel"]
        referral = next(t for t in topics if t.title == "Referral loop")
        assert referral.blueprint_elements is None
        assert FIFTY_WORDS in llm.calls[0][0]

    def test_invalid_topics_are_skipped(self, db):
        project = make_project(db, name="Demo")
        make_video(db, project, make_channel(db), "aaaaaaaaaaa", transcript=FIFTY_WORDS)
        payload = {"topics": [TWO_TOPICS["topics"][0], {"starttime": "00:02:00", "title": ""}]}

        result = TopicDiscoveryStage(db, FakeLLM(fixed(payload))).process_project("Demo")

        assert result.items[0].metrics["topic_count"] == 1
        assert result.items[0].metrics["skipped_topics"] == 1
        assert db.query(TranscriptTopic).count() == 1

    def test_numeric_start_times_are_seconds(self, db):
        project = make_project(db, name="Demo")
        make_video(db, project, make_channel(db), "aaaaaaaaaaa", transcript=FIFTY_WORDS)
        payload = {"topics": [
            {"starttime": 0, "title": "Intro", "summary": "Opening"},
            {"starttime": 90, "title": "Referrals", "summary": "Word of mouth"},
        ]}

        result = TopicDiscoveryStage(db, FakeLLM(fixed(payload))).process_project("Demo")

        assert result.success
        starts = sorted(t.start_time for t in db.query(TranscriptTopic).all())
        assert starts == [timedelta(0), timedelta(seconds=90)]

    def test_malformed_json_writes_nothing(self, db):
        project = make_project(db, name="Demo")
        make_video(db, project, make_channel(db), "aaaaaaaaaaa", transcript=FIFTY_WORDS)
        stage = TopicDiscoveryStage(db, FakeLLM(fixed("{topics: oops")))

        result = stage.process_project("Demo")

        assert not result.success
        assert "invalid JSON" in result.items[0].message
        assert db.query(TranscriptTopic).count() == 0
        assert stage.get_status("Demo").pending_items == 1

    def test_no_valid_topics_is_failure(self, db):
        project = make_project(db, name="Demo")
        make_video(db, project, make_channel(db), "aaaaaaaaaaa", transcript=FIFTY_WORDS)

        result = TopicDiscoveryStage(db, FakeLLM(fixed({"topics": []}))).process_project("Demo")

        assert not result.success
        assert result.items[0].message == "No valid topics found in response"

    def test_videos_without_transcripts_are_not_eligible(self, db):
        project = make_project(db, name="Demo")
        make_video(db, project, make_channel(db), "aaaaaaaaaaa")
        llm = FakeLLM(fixed(TWO_TOPICS))

        stage = TopicDiscoveryStage(db, llm)
        result = stage.process_project("Demo")

        assert llm.calls == []
        assert result.message == "No videos need topic discovery"
        assert stage.get_status("Demo").total_items == 0


class TestSummary:

    def test_gateway_error_leaves_video_pending(self, db):
        project = make_project(db, name="Demo")
        make_video(db, project, make_channel(db), "aaaaaaaaaaa", transcript=FIFTY_WORDS)

        def fail(prompt, config):
            raise LLMGatewayError("OpenAI API error: timeout")

        stage = SummaryStage(db, FakeLLM(fail))
        result = stage.process_project("Demo")

        assert not result.success
        assert result.items[0].message == "OpenAI API error: timeout"
        assert stage.get_status("Demo").pending_items == 1

    def test_missing_field_fails_item(self, db):
        project = make_project(db, name="Demo")
        video = make_video(db, project, make_channel(db), "aaaaaaaaaaa", transcript=FIFTY_WORDS)

        result = SummaryStage(db, FakeLLM(fixed({"main_summary": "x"}))).process_project("Demo")

        assert not result.success
        assert "video_topic" in result.items[0].message
        db.refresh(video)
        assert video.video_topic is None


class TestEndToEnd:

    def test_topics_then_summary(self, db):
        project = make_project(db, name="Demo")
        video = make_video(db, project, make_channel(db), "aaaaaaaaaaa", transcript=FIFTY_WORDS)

        def respond(prompt, config):
            # Summary prompts ask for video_topic; topic prompts ask for topics
            return json.dumps(SUMMARY if "video_topic" in prompt else TWO_TOPICS)

        llm = FakeLLM(respond)
        topics = TopicDiscoveryStage(db, llm)
        summary = SummaryStage(db, llm)

        assert topics.process_project("Demo").success
        assert db.query(TranscriptTopic).count() == 2

        assert summary.get_status("Demo").pending_items == 1
        result = summary.process_project("Demo")

        assert result.success
        db.refresh(video)
        assert video.video_topic == "Newsletter growth"
        assert video.main_summary.startswith("A walkthrough")
        assert video.structured_content == "1. Hook\n2. Referrals"
        status = summary.get_status("Demo")
        assert status.pending_items == 0
        assert status.completed_items == 1
