"""
Cluster Analysis
Scores each cluster for script readiness, content density and structure.

The three sub-analyses for a cluster run concurrently and independently: a
failure in one leaves the others intact. Results are returned for display and
never persisted.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed

from sqlalchemy.orm import Session

from videoscripts.models import TopicCluster
from videoscripts.schemas import (
    ClusterAnalysisResult,
    ClusterAnalysisStageResult,
    ItemOutcome,
    StageStatus,
)
from videoscripts.services.llm_gateway import LLMGateway
from videoscripts.stages.base import StageProcessor
from videoscripts.stages.contracts import (
    DensityAnalysis,
    ReadinessAnalysis,
    StructuralAnalysis,
    parse_response,
)
from videoscripts.stages.prompts import (
    CLUSTER_ANALYSIS_CONFIG,
    CLUSTER_DATA_PLACEHOLDER,
    DENSITY_TEMPLATE,
    READINESS_TEMPLATE,
    STRUCTURAL_TEMPLATE,
)
from videoscripts.utils import format_timestamp

logger = logging.getLogger(__name__)

# kind -> (prompt template, response contract, result field)
ANALYSES = {
    "readiness": (READINESS_TEMPLATE, ReadinessAnalysis, "readiness_analysis"),
    "density": (DENSITY_TEMPLATE, DensityAnalysis, "density_analysis"),
    "structural": (STRUCTURAL_TEMPLATE, StructuralAnalysis, "structural_analysis"),
}


def build_cluster_data(cluster: TopicCluster) -> str:
    """Serialize a cluster and its topics for the analysis prompts."""
    topics = sorted(
        (a.transcript_topic for a in cluster.assignments),
        key=lambda t: (t.start_time, t.id),
    )

    lines = [
        f"CLUSTER: {cluster.cluster_name}",
        f"DISPLAY ORDER: {cluster.display_order}",
        f"TOTAL TOPICS: {len(topics)}",
        "",
    ]
    for topic in topics:
        lines.append(f"TOPIC: {topic.title}")
        lines.append(f"START TIME: {format_timestamp(topic.start_time)}")
        lines.append(f"VIDEO: {topic.video.title}")
        lines.append(f"SUMMARY: {topic.topic_summary}")
        if topic.content:
            lines.append(f"CONTENT: {topic.content}")
        blueprint = topic.blueprint_list
        if blueprint:
            lines.append(f"BLUEPRINT ELEMENTS: {', '.join(blueprint)}")
        lines.append("---")
    return "\n".join(lines)


class ClusterAnalysisStage(StageProcessor):
    name = "cluster_analysis"

    def __init__(self, db: Session, llm: LLMGateway, max_workers: int = 3):
        super().__init__(db)
        self.llm = llm
        self.max_workers = max_workers

    def get_status(self, project_name: str) -> StageStatus:
        project = self.get_project(project_name)
        if project is None:
            return self.missing_status(project_name)

        clusters = project.topic_clusters
        with_topics = [c for c in clusters if c.assignments]
        return StageStatus(
            stage=self.name,
            project_name=project.name,
            total_items=len(clusters),
            completed_items=0,
            pending_items=len(with_topics),
            details={"total_topics": sum(len(c.assignments) for c in with_topics)},
        )

    def process_project(self, project_name: str) -> ClusterAnalysisStageResult:
        project = self.get_project(project_name)
        if project is None:
            return ClusterAnalysisStageResult(
                stage=self.name,
                project_name=project_name,
                project_exists=False,
                message=f"Project '{project_name}' not found",
            )

        result = ClusterAnalysisStageResult(stage=self.name, project_name=project.name)
        clusters = [c for c in project.topic_clusters if c.assignments]
        if not clusters:
            result.message = "No clusters with topics found; run clustering first"
            return result

        logger.info(f"Analyzing {len(clusters)} clusters for '{project.name}'")
        for cluster in clusters:
            analysis = self._analyze(cluster, project.name)
            result.analyses.append(analysis)
            result.add(ItemOutcome(
                item_id=cluster.id,
                title=cluster.cluster_name,
                success=analysis.success,
                message=self._describe(analysis),
                metrics={
                    "topic_count": analysis.topic_count,
                    "readiness_score": (
                        analysis.readiness_analysis.overall_readiness_score
                        if analysis.readiness_analysis else None
                    ),
                },
            ))
        return result

    def analyze_cluster(self, cluster_id: int) -> ClusterAnalysisResult:
        """Analyze one cluster by id; unknown ids yield found=False."""
        cluster = self.db.query(TopicCluster).filter(TopicCluster.id == cluster_id).first()
        if cluster is None:
            return ClusterAnalysisResult(
                cluster_id=cluster_id,
                found=False,
                errors={"cluster": f"Cluster {cluster_id} not found"},
            )
        return self._analyze(cluster, cluster.project.name)

    def _analyze(self, cluster: TopicCluster, project_name: str) -> ClusterAnalysisResult:
        # Serialize on this thread; workers only talk to the gateway
        cluster_data = build_cluster_data(cluster)
        result = ClusterAnalysisResult(
            cluster_id=cluster.id,
            cluster_name=cluster.cluster_name,
            project_name=project_name,
            topic_count=len(cluster.assignments),
        )

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = {
                executor.submit(self._run_analysis, kind, cluster_data): kind
                for kind in ANALYSES
            }
            for future in as_completed(futures):
                kind = futures[future]
                field = ANALYSES[kind][2]
                try:
                    setattr(result, field, future.result())
                except Exception as e:
                    logger.warning(f"{kind} analysis failed for '{cluster.cluster_name}': {e}")
                    result.errors[kind] = str(e)

        return result

    def _run_analysis(self, kind: str, cluster_data: str):
        template, contract, _ = ANALYSES[kind]
        prompt = template.replace(CLUSTER_DATA_PLACEHOLDER, cluster_data)
        response = self.llm.complete(prompt, CLUSTER_ANALYSIS_CONFIG)
        return parse_response(response.content, contract)

    @staticmethod
    def _describe(analysis: ClusterAnalysisResult) -> str:
        done = [kind for kind, (_, _, field) in ANALYSES.items() if getattr(analysis, field) is not None]
        if not done:
            return "All analyses failed: " + "; ".join(f"{k}: {v}" for k, v in analysis.errors.items())
        message = f"Completed {', '.join(done)}"
        if analysis.errors:
            message += f" (failed: {', '.join(analysis.errors)})"
        return message
