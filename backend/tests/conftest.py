"""
Shared fixtures: an in-memory database and a scripted LLM gateway.
"""
import json
import threading
from datetime import datetime, timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from videoscripts.db.database import Base
from videoscripts.models import (
    Channel,
    Project,
    TopicCluster,
    TopicClusterAssignment,
    TranscriptTopic,
    Video,
)
from videoscripts.services.llm_gateway import LLMResponse, TokenUsage


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    Session = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = Session(info={"actor": "test-runner"})
    yield session
    session.close()


class FakeLLM:
    """
    Stands in for LLMGateway.

    `responder(prompt, config)` returns the raw content string, or raises.
    Calls are recorded as (prompt, config) tuples.
    """

    def __init__(self, responder):
        self.responder = responder
        self.calls = []
        self._lock = threading.Lock()

    def complete(self, user_prompt, config):
        with self._lock:
            self.calls.append((user_prompt, config))
        content = self.responder(user_prompt, config)
        return LLMResponse(
            content=content,
            model=config.model,
            usage=TokenUsage(prompt_tokens=100, completion_tokens=50, total_tokens=150),
        )


def fixed(content):
    """Responder that always returns the same content."""
    if not isinstance(content, str):
        content = json.dumps(content)
    return lambda prompt, config: content


def make_project(db, name="Growth Playbook", topic="How to grow a newsletter"):
    project = Project(name=name, topic=topic)
    db.add(project)
    db.commit()
    return project


def make_channel(db, youtube_channel_id="UC_test_channel_1", title="Test Channel"):
    channel = Channel(youtube_channel_id=youtube_channel_id, title=title)
    db.add(channel)
    db.commit()
    return channel


def make_video(db, project, channel, youtube_video_id, title=None, transcript=None, days_ago=0, **fields):
    video = Video(
        youtube_video_id=youtube_video_id,
        project_id=project.id if project is not None else None,
        channel_id=channel.id,
        title=title or f"Video {youtube_video_id}",
        published_at=datetime(2024, 6, 1) - timedelta(days=days_ago),
        raw_transcript=transcript,
        **fields,
    )
    db.add(video)
    db.commit()
    return video


def make_topic(db, video, title, seconds=0, summary=None, blueprint=None):
    topic = TranscriptTopic(
        video_id=video.id,
        start_time=timedelta(seconds=seconds),
        title=title,
        topic_summary=summary or f"Summary of {title}",
        content=f"Content of {title}",
        blueprint_elements=json.dumps(blueprint) if blueprint else None,
    )
    db.add(topic)
    db.commit()
    return topic


def make_cluster(db, project, name, topics, display_order=1):
    cluster = TopicCluster(project_id=project.id, cluster_name=name, display_order=display_order)
    db.add(cluster)
    db.commit()
    for topic in topics:
        db.add(TopicClusterAssignment(
            topic_cluster_id=cluster.id,
            transcript_topic_id=topic.id,
            assignment_reason=f"{topic.title} fits {name}",
        ))
    db.commit()
    return cluster
