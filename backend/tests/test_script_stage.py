"""
Tests for Script Synthesis versioning and prompt assembly.
"""
from datetime import datetime

from conftest import FakeLLM, fixed, make_channel, make_project, make_video
from videoscripts.models import Script
from videoscripts.services.llm_gateway import LLMGatewayError
from videoscripts.stages.script_synthesis import (
    TRUNCATION_MARKER,
    ScriptSynthesisStage,
    build_script_prompt,
)

SCRIPT_TEXT = "HOOK: Most newsletters stall at a thousand readers. " * 10


def stage_for(db, content=SCRIPT_TEXT):
    return ScriptSynthesisStage(db, FakeLLM(fixed(content)), clock=lambda: datetime(2024, 6, 1))


class TestScriptSynthesis:

    def test_first_script_is_version_one(self, db):
        project = make_project(db, name="Demo", topic="Newsletter growth")
        make_video(db, project, make_channel(db), "aaaaaaaaaaa", transcript="words here")

        result = stage_for(db).process_project("Demo")

        assert result.success
        script = db.query(Script).one()
        assert script.version == 1
        assert script.title == "Demo - Newsletter growth Script v1 (2024-06-01)"
        assert script.total_tokens == 150
        assert result.items[0].metrics["word_count"] == script.word_count

    def test_versions_increase_from_max(self, db):
        project = make_project(db, name="Demo")
        make_video(db, project, make_channel(db), "aaaaaaaaaaa", transcript="words here")
        for version in (1, 2, 5):
            db.add(Script(project_id=project.id, title=f"v{version}", content="old", version=version))
        db.commit()

        stage = stage_for(db)
        stage.process_project("Demo")
        stage.process_project("Demo", custom_title="My take")

        versions = sorted(v for (v,) in db.query(Script.version).all())
        assert versions == [1, 2, 5, 6, 7]
        assert db.query(Script).filter(Script.version == 7).one().title == "My take"
        assert db.query(Script).filter(Script.version == 1).one().content == "old"

    def test_soft_deleted_versions_are_not_reused(self, db):
        project = make_project(db, name="Demo")
        make_video(db, project, make_channel(db), "aaaaaaaaaaa", transcript="words here")
        old = Script(project_id=project.id, title="v1", content="old", version=1)
        db.add(old)
        db.commit()
        old.soft_delete()
        db.commit()

        stage_for(db).process_project("Demo")

        assert stage_for(db).list_scripts("Demo")[0].version == 2

    def test_requires_transcripts(self, db):
        project = make_project(db, name="Demo")
        make_video(db, project, make_channel(db), "aaaaaaaaaaa")
        stage = stage_for(db)

        result = stage.process_project("Demo")

        assert not result.success
        assert result.message == "No videos with transcripts found for this project"
        assert stage.get_status("Demo").details["is_ready"] is False

    def test_gateway_failure_writes_nothing(self, db):
        project = make_project(db, name="Demo")
        make_video(db, project, make_channel(db), "aaaaaaaaaaa", transcript="words")

        def fail(prompt, config):
            raise LLMGatewayError("OpenAI API error: overloaded")

        result = ScriptSynthesisStage(db, FakeLLM(fail)).process_project("Demo")

        assert not result.success
        assert db.query(Script).count() == 0

    def test_status_and_listing(self, db):
        project = make_project(db, name="Demo")
        make_video(db, project, make_channel(db), "aaaaaaaaaaa", transcript="words")
        stage = stage_for(db)

        assert stage.get_status("Demo").pending_items == 1
        stage.process_project("Demo")
        stage.process_project("Demo")

        assert stage.get_status("Demo").pending_items == 0
        assert [s.version for s in stage.list_scripts("Demo")] == [2, 1]
        assert stage.list_scripts("Nope") == []


class TestScriptPrompt:

    def test_prompt_includes_topic_and_truncated_sources(self, db):
        project = make_project(db, name="Demo")
        channel = make_channel(db)
        long_video = make_video(db, project, channel, "aaaaaaaaaaa", title="Long one", transcript="word " * 2000)
        short_video = make_video(db, project, channel, "bbbbbbbbbbb", title="Short one", transcript="brief text")

        prompt = build_script_prompt("Newsletter growth", [long_video, short_video])

        assert "[INSERT TOPIC]" not in prompt
        assert "Newsletter growth" in prompt
        assert "=== VIDEO 1: Long one ===" in prompt
        assert "=== VIDEO 2: Short one ===" in prompt
        assert prompt.count(TRUNCATION_MARKER) == 1
        assert prompt.rstrip().endswith("Begin writing the script now:")
