"""Command-line entry point for the tutor/course matcher."""

import argparse
import json
import os
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Dict, Optional, Tuple

from dotenv import load_dotenv

from .catalog import CatalogError, CatalogSource, YAMLCatalog
from .config.environment import EnvironmentConfig
from .config.exceptions import ConfigurationError
from .config.loader import load_config
from .config.models import AppConfig
from .domain.models import CandidateDocument
from .embeddings.exceptions import EmbeddingFailure
from .extraction.text import infer_media_type
from .logging import get_logger
from .logging.config import configure_logging
from .matching.utils import serialize_ranked_item
from .persistence.database import close_database, init_database
from .persistence.exceptions import PersistenceError
from .pipeline.models import PullResult, PushRunResult
from .pipeline.service import build_matching_service

logger = get_logger(__name__, component="cli")


def load_runtime_config(
    config_path: Optional[Path], log_level_override: Optional[str]
) -> Tuple[AppConfig, EnvironmentConfig]:
    """Load configuration and settle the effective log level.

    Priority: CLI flag, then LOG_LEVEL, then the config file.
    """
    app_config, env_config = load_config(config_path)

    if log_level_override:
        env_config.log_level = log_level_override
    elif not env_config.log_level:
        env_config.log_level = app_config.logging.level

    return app_config, env_config


def pull_result_to_dict(result: PullResult, catalog: CatalogSource) -> Dict:
    targets = {target.target_id: target for target in catalog.list_targets()}
    return {
        "candidate_unreadable": result.candidate_unreadable,
        "fallback_used": result.fallback_used,
        "partial": result.partial,
        "excluded_count": result.excluded_count,
        "expertise": result.expertise.model_dump(),
        "courses": [
            serialize_ranked_item(score, targets.get(score.target_id)) for score in result.ranked
        ],
    }


def push_result_to_dict(result: PushRunResult) -> Dict:
    return asdict(result)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tutormatch",
        description="Match tutor CVs and courses by semantic similarity",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file (default: config.yaml or config/config.yaml)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (overrides config and environment)",
    )

    subcommands = parser.add_subparsers(dest="command", required=True)

    rank = subcommands.add_parser("rank", help="Recommend courses for a CV")
    rank.add_argument("--catalog", type=Path, required=True, help="Catalog YAML file")
    rank.add_argument("--cv", type=Path, required=True, help="CV file (pdf, docx or text)")
    rank.add_argument("--timeout", type=float, default=None, help="Run budget in seconds")

    notify = subcommands.add_parser("notify", help="Notify tutors about a new course")
    notify.add_argument("--catalog", type=Path, required=True, help="Catalog YAML file")
    notify.add_argument("--course-id", required=True, help="Id of the new course")

    return parser


def run_rank(args, app_config: AppConfig, env_config: EnvironmentConfig) -> int:
    catalog = YAMLCatalog(args.catalog)
    try:
        content = args.cv.read_bytes()
    except OSError as e:
        print(f"Cannot read CV {args.cv}: {e}", file=sys.stderr)
        return 1

    document = CandidateDocument(
        content=content, media_type=infer_media_type(args.cv.name), filename=args.cv.name
    )
    service = build_matching_service(app_config, env_config, catalog)
    try:
        result = service.rank_targets_for_candidate_document(document, timeout=args.timeout)
    finally:
        service.shutdown()

    print(json.dumps(pull_result_to_dict(result, catalog), indent=2))
    return 2 if result.candidate_unreadable else 0


def run_notify(args, app_config: AppConfig, env_config: EnvironmentConfig) -> int:
    catalog = YAMLCatalog(args.catalog)
    target = catalog.get_target(args.course_id)
    if target is None:
        print(f"Unknown course id: {args.course_id}", file=sys.stderr)
        return 1

    init_database(env_config.database_url)
    service = build_matching_service(app_config, env_config, catalog)
    try:
        result = service.submit_new_target(target).result()
    finally:
        service.shutdown()
        close_database()

    print(json.dumps(push_result_to_dict(result), indent=2, default=str))
    return 0


def main(argv=None) -> int:
    """Run the CLI.

    Returns:
        Exit code: 0 success, 1 run-level failure, 2 unreadable CV
    """
    load_dotenv()
    args = build_parser().parse_args(argv)

    try:
        app_config, env_config = load_runtime_config(args.config, args.log_level)
    except ConfigurationError as e:
        print(f"Configuration Error: {e}", file=sys.stderr)
        return 1

    configure_logging(
        level=env_config.log_level,
        format_type=app_config.logging.format,
        environment=os.environ.get("ENVIRONMENT", "local"),
    )

    try:
        if args.command == "rank":
            return run_rank(args, app_config, env_config)
        return run_notify(args, app_config, env_config)
    except CatalogError as e:
        logger.error(f"Catalog error: {e}", extra={"event": "cli.catalog.failed"})
        return 1
    except (EmbeddingFailure, PersistenceError) as e:
        logger.error(
            f"Run failed: {e}",
            exc_info=True,
            extra={"event": "cli.run.failed", "error_type": type(e).__name__},
        )
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
