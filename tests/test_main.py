"""Unit tests for the command-line entry point.

Tests cover:
- CLI argument parsing
- Log level priority (CLI > env > config)
- Exit codes for the rank and notify commands
- Error handling
"""

import json
from concurrent.futures import Future
from pathlib import Path
from unittest.mock import Mock, patch

import pytest

from tutormatch.catalog import CatalogError
from tutormatch.config.environment import EnvironmentConfig
from tutormatch.config.exceptions import ConfigurationError
from tutormatch.config.models import AppConfig
from tutormatch.domain.models import Expertise
from tutormatch.embeddings.exceptions import EmbeddingFailure
from tutormatch.main import build_parser, load_runtime_config, main
from tutormatch.matching.models import BoostBreakdown, MatchScore, RankedResult
from tutormatch.pipeline.models import PullResult, PushRunResult

FIXTURES_DIR = Path(__file__).parent / "fixtures"
CATALOG = str(FIXTURES_DIR / "catalog.yaml")
CV = str(FIXTURES_DIR / "cvs" / "dana.txt")


def make_env(log_level=None):
    return EnvironmentConfig(
        openai_api_key="sk-test",
        smtp_host="smtp.example.com",
        smtp_port=587,
        smtp_user=None,
        smtp_pass=None,
        sender_address="courses@example.com",
        log_level=log_level,
        database_url="sqlite:///:memory:",
    )


@pytest.fixture
def runtime():
    """Patch config loading, dotenv and logging setup around main()."""
    with patch("tutormatch.main.load_dotenv"), patch(
        "tutormatch.main.configure_logging"
    ), patch("tutormatch.main.load_runtime_config") as mock_load:
        mock_load.return_value = (AppConfig(), make_env("INFO"))
        yield mock_load


class TestBuildParser:
    def test_rank_command(self):
        args = build_parser().parse_args(["rank", "--catalog", "c.yaml", "--cv", "cv.pdf"])

        assert args.command == "rank"
        assert args.catalog == Path("c.yaml")
        assert args.cv == Path("cv.pdf")
        assert args.timeout is None
        assert args.config is None

    def test_notify_command(self):
        args = build_parser().parse_args(
            ["--log-level", "DEBUG", "notify", "--catalog", "c.yaml", "--course-id", "101"]
        )

        assert args.command == "notify"
        assert args.course_id == "101"
        assert args.log_level == "DEBUG"

    def test_command_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_rank_requires_cv(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["rank", "--catalog", "c.yaml"])

    def test_rejects_unknown_log_level(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--log-level", "LOUD", "rank", "--catalog", "c", "--cv", "x"])


class TestLoadRuntimeConfig:
    """Test log level priority."""

    def test_cli_override_wins(self):
        with patch("tutormatch.main.load_config", return_value=(AppConfig(), make_env("WARNING"))):
            _, env = load_runtime_config(None, "DEBUG")
        assert env.log_level == "DEBUG"

    def test_environment_beats_config(self):
        with patch("tutormatch.main.load_config", return_value=(AppConfig(), make_env("WARNING"))):
            _, env = load_runtime_config(None, None)
        assert env.log_level == "WARNING"

    def test_config_is_last_resort(self):
        app_config = AppConfig(logging={"level": "ERROR"})
        with patch("tutormatch.main.load_config", return_value=(app_config, make_env())):
            _, env = load_runtime_config(None, None)
        assert env.log_level == "ERROR"


class TestMain:
    """Test main() exit codes."""

    def test_configuration_error_returns_1(self, capsys):
        with patch("tutormatch.main.load_dotenv"), patch(
            "tutormatch.main.load_runtime_config",
            side_effect=ConfigurationError("Missing required environment variable: OPENAI_API_KEY"),
        ):
            exit_code = main(["rank", "--catalog", CATALOG, "--cv", CV])

        assert exit_code == 1
        assert "Configuration Error" in capsys.readouterr().err

    def test_rank_prints_courses(self, runtime, capsys):
        score = MatchScore.build("cv", "101", 0.62, BoostBreakdown(category=0.08))
        result = PullResult(
            ranked=RankedResult(items=[score]),
            expertise=Expertise(primary_field="pharmacy"),
        )
        service = Mock()
        service.rank_targets_for_candidate_document.return_value = result

        with patch("tutormatch.main.build_matching_service", return_value=service):
            exit_code = main(["rank", "--catalog", CATALOG, "--cv", CV, "--timeout", "5"])

        assert exit_code == 0
        output = json.loads(capsys.readouterr().out)
        assert output["candidate_unreadable"] is False
        assert output["expertise"]["primary_field"] == "pharmacy"
        assert output["courses"][0]["course_id"] == "101"
        assert output["courses"][0]["title"] == "Intro to Pharmacology"

        document = service.rank_targets_for_candidate_document.call_args.args[0]
        assert document.filename == "dana.txt"
        assert service.rank_targets_for_candidate_document.call_args.kwargs["timeout"] == 5.0
        service.shutdown.assert_called_once()

    def test_rank_unreadable_cv_returns_2(self, runtime, capsys):
        service = Mock()
        service.rank_targets_for_candidate_document.return_value = PullResult(
            candidate_unreadable=True
        )

        with patch("tutormatch.main.build_matching_service", return_value=service):
            exit_code = main(["rank", "--catalog", CATALOG, "--cv", CV])

        assert exit_code == 2
        assert json.loads(capsys.readouterr().out)["courses"] == []

    def test_rank_missing_cv_file_returns_1(self, runtime, tmp_path):
        with patch("tutormatch.main.build_matching_service") as mock_build:
            exit_code = main(["rank", "--catalog", CATALOG, "--cv", str(tmp_path / "none.pdf")])

        assert exit_code == 1
        mock_build.assert_not_called()

    def test_rank_missing_catalog_returns_1(self, runtime, tmp_path):
        exit_code = main(["rank", "--catalog", str(tmp_path / "none.yaml"), "--cv", CV])
        assert exit_code == 1

    def test_embedding_failure_returns_1(self, runtime):
        service = Mock()
        service.rank_targets_for_candidate_document.side_effect = EmbeddingFailure("down")

        with patch("tutormatch.main.build_matching_service", return_value=service):
            exit_code = main(["rank", "--catalog", CATALOG, "--cv", CV])

        assert exit_code == 1
        service.shutdown.assert_called_once()

    def test_keyboard_interrupt_returns_130(self, runtime):
        with patch("tutormatch.main.run_rank", side_effect=KeyboardInterrupt):
            exit_code = main(["rank", "--catalog", CATALOG, "--cv", CV])
        assert exit_code == 130

    def test_catalog_error_returns_1(self, runtime):
        with patch("tutormatch.main.run_notify", side_effect=CatalogError("bad")):
            exit_code = main(["notify", "--catalog", CATALOG, "--course-id", "101"])
        assert exit_code == 1

    def test_notify_unknown_course_returns_1(self, runtime, capsys):
        with patch("tutormatch.main.build_matching_service") as mock_build:
            exit_code = main(["notify", "--catalog", CATALOG, "--course-id", "999"])

        assert exit_code == 1
        assert "Unknown course id" in capsys.readouterr().err
        mock_build.assert_not_called()

    def test_notify_prints_run_summary(self, runtime, capsys):
        future = Future()
        future.set_result(PushRunResult(target_id="101", notified_count=1, qualified_count=1))
        service = Mock()
        service.submit_new_target.return_value = future

        with patch("tutormatch.main.build_matching_service", return_value=service), patch(
            "tutormatch.main.init_database"
        ) as mock_init, patch("tutormatch.main.close_database") as mock_close:
            exit_code = main(["notify", "--catalog", CATALOG, "--course-id", "101"])

        assert exit_code == 0
        output = json.loads(capsys.readouterr().out)
        assert output["target_id"] == "101"
        assert output["notified_count"] == 1
        assert service.submit_new_target.call_args.args[0].title == "Intro to Pharmacology"
        mock_init.assert_called_once_with("sqlite:///:memory:")
        mock_close.assert_called_once()
        service.shutdown.assert_called_once()
