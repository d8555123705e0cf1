from videoscripts.models.base import AuditMixin
from videoscripts.models.project import Project
from videoscripts.models.channel import Channel
from videoscripts.models.video import Video
from videoscripts.models.transcript_topic import TranscriptTopic
from videoscripts.models.topic_cluster import TopicCluster, TopicClusterAssignment
from videoscripts.models.script import Script

__all__ = [
    "AuditMixin",
    "Project",
    "Channel",
    "Video",
    "TranscriptTopic",
    "TopicCluster",
    "TopicClusterAssignment",
    "Script",
]
