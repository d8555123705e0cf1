"""
Clustering
Groups every topic of a project into ordered clusters.

Clustering is a full replace: each run deletes the project's clusters and
assignments, then rebuilds them from the complete topic list. The model's
clusters have no stable identity between runs, so there is nothing to merge
against. A failed run therefore leaves the project with no clusters until
the next successful run.
"""

import logging

from sqlalchemy.orm import Session

from videoscripts.models import TopicCluster, TopicClusterAssignment, TranscriptTopic, Video
from videoscripts.schemas import (
    ClusterTopicView,
    ClusterView,
    ItemOutcome,
    ProjectClustersView,
    StageResult,
    StageStatus,
)
from videoscripts.services.llm_gateway import LLMGateway
from videoscripts.stages.base import StageProcessor
from videoscripts.stages.contracts import (
    ClusteringResponse,
    ClusterProposal,
    ResponseValidationError,
    parse_json,
    validate_payload,
)
from videoscripts.stages.prompts import CLUSTERING_CONFIG, CLUSTERING_TEMPLATE
from videoscripts.utils import format_timestamp, truncate_text

logger = logging.getLogger(__name__)

MAX_CLUSTER_NAME_LENGTH = 200


def format_topic_list(topics: list[TranscriptTopic]) -> str:
    lines = []
    for index, topic in enumerate(topics):
        lines.append(f"{index}: {topic.title}")
        lines.append(f"   Summary: {topic.topic_summary}")
        if topic.blueprint_elements:
            lines.append(f"   Blueprint: {topic.blueprint_elements}")
        lines.append("")
    return "\n".join(lines)


class ClusteringStage(StageProcessor):
    name = "clustering"

    def __init__(self, db: Session, llm: LLMGateway):
        super().__init__(db)
        self.llm = llm

    def project_topics(self, project) -> list[TranscriptTopic]:
        """All topics of the project's videos, in publish then start-time order."""
        return (
            self.db.query(TranscriptTopic)
            .join(Video, TranscriptTopic.video_id == Video.id)
            .filter(Video.project_id == project.id)
            .order_by(Video.published_at, Video.id, TranscriptTopic.start_time, TranscriptTopic.id)
            .all()
        )

    def get_status(self, project_name: str) -> StageStatus:
        project = self.get_project(project_name)
        if project is None:
            return self.missing_status(project_name)

        topics = self.project_topics(project)
        clustered = sum(1 for t in topics if t.cluster_assignment is not None)
        return StageStatus(
            stage=self.name,
            project_name=project.name,
            total_items=len(topics),
            completed_items=clustered,
            pending_items=len(topics) - clustered,
            details={"total_clusters": len(project.topic_clusters)},
        )

    def clear_clusters(self, project) -> int:
        """Hard-delete every cluster and assignment of the project, soft-deleted ones included."""
        clusters = (
            self.db.query(TopicCluster)
            .filter(TopicCluster.project_id == project.id)
            .execution_options(include_deleted=True)
            .all()
        )
        assignments = []
        if clusters:
            assignments = (
                self.db.query(TopicClusterAssignment)
                .filter(TopicClusterAssignment.topic_cluster_id.in_([c.id for c in clusters]))
                .execution_options(include_deleted=True)
                .all()
            )
        for assignment in assignments:
            self.db.delete(assignment)
        for cluster in clusters:
            self.db.delete(cluster)
        self.db.commit()

        if clusters:
            logger.info(f"Removed {len(clusters)} existing clusters from '{project.name}'")
        return len(clusters)

    def process_project(self, project_name: str) -> StageResult:
        project = self.get_project(project_name)
        if project is None:
            return self.missing_result(project_name)

        result = StageResult(stage=self.name, project_name=project.name)
        try:
            topics = self.project_topics(project)
            if not topics:
                result.message = "No topics available for clustering"
                return result

            topic_ids = [t.id for t in topics]
            prompt = CLUSTERING_TEMPLATE.format(
                project_name=project.name,
                topic_count=len(topics),
                topic_list=format_topic_list(topics),
            )
            self.clear_clusters(project)

            logger.info(f"Clustering {len(topic_ids)} topics for '{project.name}'")
            response = self.llm.complete(prompt, CLUSTERING_CONFIG)
            proposals = self._parse_proposals(response.content)
        except Exception as e:
            self.db.rollback()
            logger.error(f"[{self.name}] {project.name}: {e}")
            result.message = f"Clustering failed: {e}"
            return result

        claimed = set()
        for proposal in proposals:
            members = []
            for assignment in proposal.topics:
                index = assignment.topic_index
                # Out-of-range and already-claimed indices are dropped
                if index is None or not 0 <= index < len(topic_ids) or index in claimed:
                    continue
                claimed.add(index)
                members.append((topic_ids[index], assignment.assignment_reason))

            if not members:
                logger.debug(f"Discarding cluster '{proposal.cluster_name}' with no valid topics")
                continue

            result.add(self._save_cluster(project, proposal, members))

        if not result.items:
            result.message = "No valid clusters in response"
        else:
            result.message = (
                f"Created {result.successful_count} clusters covering "
                f"{len(claimed)} of {len(topic_ids)} topics"
            )
        return result

    def _parse_proposals(self, content: str) -> list[ClusterProposal]:
        payload = parse_json(content)
        if isinstance(payload, list):
            payload = {"clusters": payload}
        envelope = validate_payload(payload, ClusteringResponse)

        proposals = []
        for raw in envelope.clusters:
            try:
                proposals.append(validate_payload(raw, ClusterProposal))
            except ResponseValidationError as e:
                logger.debug(f"Skipping invalid cluster: {e}")
        return sorted(proposals, key=lambda p: p.display_order)

    def _save_cluster(self, project, proposal: ClusterProposal, members: list[tuple]) -> ItemOutcome:
        name = truncate_text(proposal.cluster_name, MAX_CLUSTER_NAME_LENGTH)
        try:
            cluster = TopicCluster(
                project_id=project.id,
                cluster_name=name,
                cluster_description=proposal.cluster_description,
                display_order=proposal.display_order,
            )
            self.db.add(cluster)
            self.db.commit()

            for topic_id, reason in members:
                self.db.add(TopicClusterAssignment(
                    topic_cluster_id=cluster.id,
                    transcript_topic_id=topic_id,
                    assignment_reason=reason,
                ))
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"[{self.name}] failed to save cluster '{name}': {e}")
            return ItemOutcome(title=name, success=False, message=str(e))

        return ItemOutcome(
            item_id=cluster.id,
            title=name,
            success=True,
            message=f"{len(members)} topics assigned",
            metrics={"topic_count": len(members), "display_order": proposal.display_order},
        )

    def get_project_clusters(self, project_name: str) -> ProjectClustersView:
        """Read-only view of the current clusters, in display order."""
        project = self.get_project(project_name)
        if project is None:
            return ProjectClustersView(project_name=project_name, project_exists=False)

        view = ProjectClustersView(project_name=project.name)
        for cluster in project.topic_clusters:
            assignments = sorted(
                cluster.assignments,
                key=lambda a: (a.transcript_topic.start_time, a.transcript_topic.id),
            )
            view.clusters.append(ClusterView(
                cluster_id=cluster.id,
                cluster_name=cluster.cluster_name,
                cluster_description=cluster.cluster_description,
                display_order=cluster.display_order,
                topics=[
                    ClusterTopicView(
                        topic_id=a.transcript_topic.id,
                        title=a.transcript_topic.title,
                        start_time=format_timestamp(a.transcript_topic.start_time),
                        video_title=a.transcript_topic.video.title,
                        summary=a.transcript_topic.topic_summary,
                        assignment_reason=a.assignment_reason,
                    )
                    for a in assignments
                ],
            ))
        return view
