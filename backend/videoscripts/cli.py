"""
VideoScripts command line.

Usage:
    videoscripts                          # interactive menu
    videoscripts init-db
    videoscripts import
    videoscripts run-all
    videoscripts run "My Project" [--stages transcript summary]
    videoscripts run-stage clustering "My Project" [--force]
    videoscripts status "My Project"
    videoscripts clusters "My Project"
    videoscripts analyze "My Project" [--cluster-id 12]
    videoscripts script "My Project" [--title "Custom title"]
    videoscripts scripts "My Project"
"""

import argparse
import logging
import sys

from videoscripts.config import ConfigurationError, get_settings
from videoscripts.db.database import get_db, init_db
from videoscripts.orchestrator import STAGE_NAMES, PipelineOrchestrator, build_orchestrator
from videoscripts import reporting
from videoscripts.services.llm_gateway import LLMGatewayError
from videoscripts.services.sheets_service import SheetsServiceError
from videoscripts.services.transcript_service import TranscriptError
from videoscripts.services.youtube_service import YouTubeServiceError

logger = logging.getLogger("videoscripts")

SERVICE_ERRORS = (SheetsServiceError, YouTubeServiceError, TranscriptError, LLMGatewayError)

MENU = """
VideoScripts
  1. View clusters
  2. Run all stages
  3. Run one stage for one project
  4. Analyze clusters
  5. Create script
  6. Exit
"""


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="videoscripts",
        description="Turn YouTube videos into clustered topics and narrative scripts",
    )

    output_group = parser.add_argument_group("Output Options")
    output_group.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    output_group.add_argument("--quiet", "-q", action="store_true", help="Warnings and errors only")

    sub = parser.add_subparsers(dest="command")

    sub.add_parser("menu", help="Interactive menu (default)")
    sub.add_parser("init-db", help="Create database tables")
    sub.add_parser("import", help="Import unimported spreadsheet rows")
    sub.add_parser("run-all", help="Import, then run the pipeline for every project")

    run = sub.add_parser("run", help="Run the configured stage sequence for one project")
    run.add_argument("project", help="Project name")
    run.add_argument("--stages", nargs="+", choices=STAGE_NAMES, help="Override the stage sequence")

    run_stage = sub.add_parser("run-stage", help="Run one stage for one project")
    run_stage.add_argument("stage", choices=STAGE_NAMES)
    run_stage.add_argument("project", help="Project name")
    run_stage.add_argument("--force", action="store_true", help="Process even if the stage reports complete")

    status = sub.add_parser("status", help="Show every stage's status for a project")
    status.add_argument("project", help="Project name")

    clusters = sub.add_parser("clusters", help="Show a project's clusters")
    clusters.add_argument("project", help="Project name")

    analyze = sub.add_parser("analyze", help="Analyze a project's clusters")
    analyze.add_argument("project", help="Project name")
    analyze.add_argument("--cluster-id", type=int, help="Analyze only this cluster")

    script = sub.add_parser("script", help="Create a new script version")
    script.add_argument("project", help="Project name")
    script.add_argument("--title", help="Custom script title")

    scripts = sub.add_parser("scripts", help="List a project's script versions")
    scripts.add_argument("project", help="Project name")

    return parser.parse_args(argv)


def configure_logging(args: argparse.Namespace) -> None:
    level = get_settings().log_level.upper()
    if args.verbose:
        level = "DEBUG"
    elif args.quiet:
        level = "WARNING"

    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def show_status(orchestrator: PipelineOrchestrator, project_name: str) -> int:
    reporting.banner(f"Status: {project_name}")
    for stage_name in STAGE_NAMES:
        stage = orchestrator.stages.get(stage_name)
        if stage is None:
            logger.warning(f"[{stage_name}] unavailable: {orchestrator.unavailable.get(stage_name)}")
            continue
        status = stage.get_status(project_name)
        reporting.log_status(status)
        if not status.project_exists:
            return 1
    return 0


def ask(prompt: str) -> str:
    return input(prompt).strip()


def run_menu_choice(orchestrator: PipelineOrchestrator, choice: str) -> None:
    if choice == "1":
        orchestrator.show_clusters(ask("Project name: "))
    elif choice == "2":
        orchestrator.run_all()
    elif choice == "3":
        print("Stages: " + ", ".join(STAGE_NAMES))
        stage_name = ask("Stage: ")
        if stage_name not in STAGE_NAMES:
            print(f"Unknown stage '{stage_name}'")
            return
        orchestrator.run_stage(stage_name, ask("Project name: "), force=True)
    elif choice == "4":
        orchestrator.analyze_clusters(ask("Project name: "))
    elif choice == "5":
        project_name = ask("Project name: ")
        title = ask("Custom title (blank for default): ") or None
        orchestrator.create_script(project_name, title)
    else:
        print("Invalid option")


def run_menu(orchestrator: PipelineOrchestrator) -> int:
    while True:
        print(MENU)
        choice = ask("Select an option: ")
        if choice in ("6", "q", "exit"):
            return 0

        # A failed option is reported and the menu stays open
        try:
            run_menu_choice(orchestrator, choice)
        except Exception as e:
            orchestrator.db.rollback()
            logger.error(f"Option {choice} failed: {e}")


def dispatch(args: argparse.Namespace, orchestrator: PipelineOrchestrator) -> int:
    command = args.command or "menu"

    if command == "menu":
        return run_menu(orchestrator)

    if command == "import":
        projects = orchestrator.run_import()
        logger.info(f"Imported projects: {', '.join(projects) if projects else 'none'}")
        return 0

    if command == "run-all":
        reports = orchestrator.run_all()
        return 0 if all(r.success for rs in reports.values() for r in rs) else 1

    if command == "run":
        reports = orchestrator.run_project(args.project, args.stages)
        return 0 if all(r.success for r in reports) else 1

    if command == "run-stage":
        report = orchestrator.run_stage(args.stage, args.project, force=args.force)
        return 0 if report.success else 1

    if command == "status":
        return show_status(orchestrator, args.project)

    if command == "clusters":
        view = orchestrator.show_clusters(args.project)
        return 0 if view.project_exists else 1

    if command == "analyze":
        if args.cluster_id is not None:
            stage = orchestrator.stages.get("cluster_analysis")
            if stage is None:
                raise ConfigurationError(orchestrator.unavailable.get("cluster_analysis", "Cluster analysis unavailable"))
            analysis = stage.analyze_cluster(args.cluster_id)
            reporting.log_analysis(analysis)
            return 0 if analysis.success else 1
        result = orchestrator.analyze_clusters(args.project)
        return 0 if result.success else 1

    if command == "script":
        result = orchestrator.create_script(args.project, args.title)
        return 0 if result.success else 1

    if command == "scripts":
        orchestrator.list_scripts(args.project)
        return 0

    logger.error(f"Unknown command: {command}")
    return 2


def main(argv=None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    configure_logging(args)

    init_db()
    if args.command == "init-db":
        logger.info("Database tables created")
        return 0

    try:
        with get_db(actor="videoscripts-cli") as db:
            orchestrator = build_orchestrator(db)
            return dispatch(args, orchestrator)
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return 1
    except SERVICE_ERRORS as e:
        logger.error(f"{args.command} failed: {e}")
        return 1
    except KeyboardInterrupt:
        logger.warning("Interrupted")
        return 130


if __name__ == "__main__":
    sys.exit(main())
