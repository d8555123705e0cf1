"""
Console reporting for stage runs, cluster views and analyses.

Everything goes through logging so --quiet / --verbose apply uniformly.
"""

import logging

from videoscripts.schemas import (
    ClusterAnalysisResult,
    ProjectClustersView,
    ScriptResponse,
    StageResult,
    StageStatus,
)

logger = logging.getLogger("videoscripts")

RULE = "=" * 60


def banner(title: str) -> None:
    logger.info(RULE)
    logger.info(title)
    logger.info(RULE)


def log_status(status: StageStatus) -> None:
    if not status.project_exists:
        logger.warning(f"Project '{status.project_name}' not found")
        return

    logger.info(f"[{status.stage}] {status.project_name}")
    logger.info(f"  Total items:     {status.total_items}")
    logger.info(f"  Completed:       {status.completed_items}")
    logger.info(f"  Pending:         {status.pending_items}")
    for key, value in status.details.items():
        logger.info(f"  {key.replace('_', ' ').capitalize() + ':':<17}{value}")


def log_result(result: StageResult) -> None:
    if not result.project_exists:
        logger.warning(result.message or f"Project '{result.project_name}' not found")
        return

    for item in result.items:
        icon = "✅" if item.success else "❌"
        line = f"  {icon} {item.title}: {item.message}"
        if item.success and item.metrics:
            line += " (" + ", ".join(f"{k}={v}" for k, v in item.metrics.items() if v is not None) + ")"
        if item.success:
            logger.info(line)
        else:
            logger.warning(line)

    if result.message:
        logger.info(f"  {result.message}")
    logger.info(f"  Successful: {result.successful_count}  Failed: {result.failed_count}")


def log_clusters(view: ProjectClustersView) -> None:
    if not view.project_exists:
        logger.warning(f"Project '{view.project_name}' not found")
        return

    banner(f"Clusters for {view.project_name}")
    if not view.clusters:
        logger.info("No clusters yet; run the clustering stage first")
        return

    for cluster in view.clusters:
        logger.info(f"{cluster.display_order}. {cluster.cluster_name} ({len(cluster.topics)} topics)")
        if cluster.cluster_description:
            logger.info(f"   {cluster.cluster_description}")
        for topic in cluster.topics:
            logger.info(f"   [{topic.start_time}] {topic.title} ({topic.video_title})")
            if topic.assignment_reason:
                logger.debug(f"      {topic.assignment_reason}")
    logger.info(f"Total: {len(view.clusters)} clusters, {view.total_topics} topics")


def log_analysis(analysis: ClusterAnalysisResult) -> None:
    if not analysis.found:
        logger.warning(analysis.errors.get("cluster", "Cluster not found"))
        return

    icon = "✅" if analysis.success else "❌"
    logger.info(f"{icon} {analysis.cluster_name} ({analysis.topic_count} topics)")

    readiness = analysis.readiness_analysis
    if readiness:
        logger.info(
            f"   Readiness {readiness.overall_readiness_score}/10, "
            f"narrative {readiness.narrative_completeness_score}/10, "
            f"coherence {readiness.structural_coherence_score}/10 ({readiness.cluster_type})"
        )
        if readiness.script_usage_recommendation:
            logger.info(f"   Recommendation: {readiness.script_usage_recommendation}")

    density = analysis.density_analysis
    if density:
        logger.info(
            f"   Density {density.overall_density}, cognitive load {density.cognitive_load}, "
            f"{density.depth_breadth_ratio}"
        )

    structure = analysis.structural_analysis
    if structure:
        logger.info(
            f"   {structure.total_structural_elements} structural elements, "
            f"anchor: {structure.primary_anchor_element}"
        )

    for kind, error in analysis.errors.items():
        logger.warning(f"   {kind} analysis failed: {error}")


def log_scripts(project_name: str, scripts: list[ScriptResponse]) -> None:
    banner(f"Scripts for {project_name}")
    if not scripts:
        logger.info("No scripts yet")
        return
    for script in scripts:
        logger.info(
            f"v{script.version}: {script.title} ({script.word_count} words, "
            f"{script.total_tokens} tokens, {script.created_at:%Y-%m-%d %H:%M})"
        )
