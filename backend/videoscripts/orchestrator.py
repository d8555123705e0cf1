"""
Pipeline Orchestrator
Runs the configured stage sequence for each project.

For every stage the orchestrator asks for the status first, skips the stage
when nothing is pending, and otherwise processes it and reports per-item
results. A stage that fails never blocks the next one: each stage only looks
at persisted data to decide whether it has work.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Session

from videoscripts import reporting
from videoscripts.config import ConfigurationError, Settings, get_settings
from videoscripts.importer import VideoImporter
from videoscripts.models import Project
from videoscripts.schemas import ProjectClustersView, StageResult, StageStatus
from videoscripts.services.llm_gateway import LLMGateway, create_llm_gateway
from videoscripts.services.sheets_service import SheetsService, create_sheets_service
from videoscripts.services.transcript_service import TranscriptFetcher, create_transcript_fetcher
from videoscripts.services.youtube_service import get_youtube_client
from videoscripts.stages.base import StageProcessor
from videoscripts.stages.cluster_analysis import ClusterAnalysisStage
from videoscripts.stages.clustering import ClusteringStage
from videoscripts.stages.script_synthesis import ScriptSynthesisStage
from videoscripts.stages.summary import SummaryStage
from videoscripts.stages.topic_discovery import TopicDiscoveryStage
from videoscripts.stages.transcript import TranscriptStage

logger = logging.getLogger(__name__)

LLM_STAGES = ["topic_discovery", "clustering", "summary", "cluster_analysis", "script"]
STAGE_NAMES = ["transcript"] + LLM_STAGES


@dataclass
class StageRunReport:
    stage: str
    project_name: str
    status: Optional[StageStatus] = None
    result: Optional[StageResult] = None
    skipped: bool = False
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        if self.error:
            return False
        return self.skipped or bool(self.result and self.result.success)


class PipelineOrchestrator:
    def __init__(
        self,
        db: Session,
        stages: dict[str, StageProcessor],
        stage_order: list[str],
        importer: Optional[VideoImporter] = None,
        sheets: Optional[SheetsService] = None,
        settings: Optional[Settings] = None,
        unavailable: Optional[dict[str, str]] = None,
    ):
        unknown = [name for name in stage_order if name not in STAGE_NAMES]
        if unknown:
            raise ConfigurationError(f"Unknown pipeline stages: {', '.join(unknown)}")

        self.db = db
        self.stages = stages
        self.stage_order = stage_order
        self.importer = importer
        self.sheets = sheets
        self.settings = settings or get_settings()
        # stage/service name -> configuration error that keeps it from running
        self.unavailable = unavailable or {}

    def project_names(self) -> list[str]:
        return [name for (name,) in self.db.query(Project.name).order_by(Project.name).all()]

    def _stage(self, stage_name: str) -> StageProcessor:
        stage = self.stages.get(stage_name)
        if stage is None:
            reason = self.unavailable.get(stage_name, f"Unknown stage '{stage_name}'")
            raise ConfigurationError(reason)
        return stage

    def run_stage(self, stage_name: str, project_name: str, force: bool = False) -> StageRunReport:
        """
        Status check, then process unless already complete.

        `force` processes even when the status reports nothing pending.
        """
        report = StageRunReport(stage=stage_name, project_name=project_name)
        try:
            stage = self._stage(stage_name)
            report.status = stage.get_status(project_name)
            reporting.log_status(report.status)

            if not report.status.project_exists:
                report.error = f"Project '{project_name}' not found"
                return report

            if report.status.is_complete and not force:
                logger.info(f"  ⏭  {stage_name} already complete, skipping")
                report.skipped = True
                return report

            report.result = stage.process_project(project_name)
            reporting.log_result(report.result)

        except ConfigurationError as e:
            logger.error(f"  ❌ {stage_name} unavailable: {e}")
            report.error = str(e)
        except Exception as e:
            self.db.rollback()
            logger.exception(f"  ❌ {stage_name} failed for '{project_name}': {e}")
            report.error = str(e)

        return report

    def run_project(self, project_name: str, stages: Optional[list[str]] = None) -> list[StageRunReport]:
        reporting.banner(f"Processing project: {project_name}")

        reports = []
        for stage_name in stages or self.stage_order:
            report = self.run_stage(stage_name, project_name)
            reports.append(report)
            if report.status is not None and not report.status.project_exists:
                break
        return reports

    def run_import(self) -> list[str]:
        """
        Import every unimported spreadsheet row and mark it imported.

        Returns:
            Names of projects that received at least one video
        """
        if self.sheets is None or self.importer is None:
            raise ConfigurationError(
                self.unavailable.get("import", "Spreadsheet import is not configured")
            )

        spreadsheet_id = self.settings.spreadsheet_id or self.sheets.find_spreadsheet_id(
            self.settings.spreadsheet_name
        )
        rows = self.sheets.get_unimported_rows(spreadsheet_id)
        if not rows:
            logger.info("No new rows to import")
            return []

        reporting.banner(f"Importing {len(rows)} spreadsheet rows")
        imported_rows = []
        imported_projects = []
        for row in rows:
            if not row.project_name:
                logger.warning(f"  Row {row.row_number}: no project name, skipping")
                continue
            if not row.video_urls:
                logger.warning(f"  Row {row.row_number}: no video URLs, skipping")
                continue

            logger.info(f"Row {row.row_number}: {row.project_name} ({len(row.video_urls)} videos)")
            result = self.importer.import_project(row.project_name, row.video_urls, row.topic)
            reporting.log_result(result)

            if result.success:
                imported_rows.append(row.row_number)
                if result.project_name not in imported_projects:
                    imported_projects.append(result.project_name)

        if imported_rows:
            self.sheets.mark_rows_imported(spreadsheet_id, imported_rows, rows[0].headers)
        return imported_projects

    def run_all(self) -> dict[str, list[StageRunReport]]:
        """Import new rows (when configured), then run the pipeline for every project."""
        if self.sheets is not None and self.importer is not None:
            try:
                self.run_import()
            except Exception as e:
                self.db.rollback()
                logger.error(f"Import failed: {e}")
        else:
            logger.info("Spreadsheet import not configured, processing existing projects")

        reports = {}
        for name in self.project_names():
            reports[name] = self.run_project(name)

        succeeded = sum(1 for rs in reports.values() if all(r.success for r in rs))
        reporting.banner("Pipeline Summary")
        logger.info(f"Projects:      {len(reports)}")
        logger.info(f"Fully ok:      {succeeded}")
        logger.info(f"With failures: {len(reports) - succeeded}")
        return reports

    def show_clusters(self, project_name: str) -> ProjectClustersView:
        # Read-only views work without an LLM key
        stage = self.stages.get("clustering") or ClusteringStage(self.db, llm=None)
        view = stage.get_project_clusters(project_name)
        reporting.log_clusters(view)
        return view

    def analyze_clusters(self, project_name: str) -> StageResult:
        reporting.banner(f"Cluster analysis: {project_name}")
        result = self._stage("cluster_analysis").process_project(project_name)
        for analysis in getattr(result, "analyses", []):
            reporting.log_analysis(analysis)
        reporting.log_result(result)
        return result

    def create_script(self, project_name: str, title: Optional[str] = None) -> StageResult:
        reporting.banner(f"Script synthesis: {project_name}")
        result = self._stage("script").process_project(project_name, custom_title=title)
        reporting.log_result(result)
        return result

    def list_scripts(self, project_name: str):
        stage = self.stages.get("script") or ScriptSynthesisStage(self.db, llm=None)
        scripts = stage.list_scripts(project_name)
        reporting.log_scripts(project_name, scripts)
        return scripts


def build_orchestrator(
    db: Session,
    settings: Optional[Settings] = None,
    llm: Optional[LLMGateway] = None,
    fetcher: Optional[TranscriptFetcher] = None,
    youtube=None,
    sheets: Optional[SheetsService] = None,
) -> PipelineOrchestrator:
    """
    Wire services and stages for one run.

    Services that cannot be configured are recorded as unavailable; stages
    that depend on them report the configuration error instead of running.
    """
    settings = settings or get_settings()
    unavailable = {}

    if llm is None:
        try:
            llm = create_llm_gateway(settings)
        except ConfigurationError as e:
            unavailable.update({name: str(e) for name in LLM_STAGES})

    if fetcher is None:
        try:
            fetcher = create_transcript_fetcher(settings)
        except ConfigurationError as e:
            unavailable["transcript"] = str(e)

    if youtube is None:
        try:
            youtube = get_youtube_client(settings)
        except ConfigurationError as e:
            unavailable["import"] = str(e)

    if sheets is None and "import" not in unavailable:
        try:
            sheets = create_sheets_service(settings)
        except ConfigurationError as e:
            unavailable["import"] = str(e)

    stages: dict[str, StageProcessor] = {}
    if fetcher is not None:
        stages["transcript"] = TranscriptStage(
            db, fetcher, delay_seconds=settings.transcript_request_delay_seconds
        )
    if llm is not None:
        stages["topic_discovery"] = TopicDiscoveryStage(db, llm)
        stages["clustering"] = ClusteringStage(db, llm)
        stages["summary"] = SummaryStage(db, llm)
        stages["cluster_analysis"] = ClusterAnalysisStage(db, llm)
        stages["script"] = ScriptSynthesisStage(db, llm)

    importer = VideoImporter(db, youtube) if youtube is not None else None

    for name, reason in unavailable.items():
        logger.warning(f"{name} unavailable: {reason}")

    return PipelineOrchestrator(
        db,
        stages,
        stage_order=list(settings.pipeline_stages),
        importer=importer,
        sheets=sheets,
        settings=settings,
        unavailable=unavailable,
    )
