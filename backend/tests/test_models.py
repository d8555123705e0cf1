"""
Tests for audit stamping and soft-delete filtering.
"""
import pytest
from sqlalchemy.exc import IntegrityError

from conftest import make_channel, make_cluster, make_project, make_topic, make_video
from videoscripts.models import Channel, Script, TopicClusterAssignment, Video


class TestAuditColumns:

    def test_insert_stamps_actor(self, db):
        channel = make_channel(db)

        assert channel.created_by == "test-runner"
        assert channel.last_modified_by == "test-runner"
        assert channel.created_at is not None
        assert channel.is_deleted is False

    def test_update_stamps_modifier(self, db):
        channel = make_channel(db)
        created_at = channel.created_at

        db.info["actor"] = "editor"
        channel.title = "Renamed"
        db.commit()

        assert channel.created_by == "test-runner"
        assert channel.last_modified_by == "editor"
        assert channel.created_at == created_at
        assert channel.last_modified_at >= created_at


class TestSoftDelete:

    def test_soft_deleted_rows_are_hidden(self, db):
        project = make_project(db)
        channel = make_channel(db)
        keep = make_video(db, project, channel, "aaaaaaaaaaa")
        gone = make_video(db, project, channel, "bbbbbbbbbbb")

        gone.soft_delete()
        db.commit()
        db.expire_all()

        assert [v.id for v in db.query(Video).all()] == [keep.id]
        assert [v.id for v in project.videos] == [keep.id]
        everything = db.query(Video).execution_options(include_deleted=True).all()
        assert {v.id for v in everything} == {keep.id, gone.id}

    def test_soft_deleted_channel_hidden_from_lookup(self, db):
        channel = make_channel(db, youtube_channel_id="UC_deleted")
        channel.soft_delete()
        db.commit()

        assert db.query(Channel).filter(Channel.youtube_channel_id == "UC_deleted").first() is None


class TestConstraints:

    def test_topic_has_one_cluster(self, db):
        project = make_project(db)
        video = make_video(db, project, make_channel(db), "aaaaaaaaaaa", transcript="t")
        topic = make_topic(db, video, "Hook")
        make_cluster(db, project, "First", [topic])
        second = make_cluster(db, project, "Second", [], display_order=2)

        db.add(TopicClusterAssignment(topic_cluster_id=second.id, transcript_topic_id=topic.id))
        with pytest.raises(IntegrityError):
            db.commit()
        db.rollback()

    def test_script_version_unique_per_project(self, db):
        project = make_project(db)
        db.add(Script(project_id=project.id, title="a", content="x", version=1))
        db.add(Script(project_id=project.id, title="b", content="y", version=1))
        with pytest.raises(IntegrityError):
            db.commit()
        db.rollback()

    def test_video_helpers(self, db):
        video = make_video(db, make_project(db), make_channel(db), "dQw4w9WgXcQ", transcript="  ")

        assert video.url == "https://www.youtube.com/watch?v=dQw4w9WgXcQ"
        assert not video.has_transcript
        assert not video.has_summary
