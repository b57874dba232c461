"""Tests for CLI module."""

import json
from pathlib import Path
from typing import Any
from unittest.mock import Mock, patch

import pytest
from aioresponses import CallbackResult
from aioresponses import aioresponses as aioresponses_cls
from pydantic import SecretStr
from yarl import URL

from qase_reporter.cli import run
from qase_reporter.config import ReporterConfig
from qase_reporter.testing.payloads import (
    project,
    result_created,
    run_completed,
    run_created,
)

API_BASE_URL = "http://qase.test"
QASE_VARIABLES = (
    "QASE_REPORT",
    "QASE_API_TOKEN",
    "QASE_RUN_ID",
    "QASE_RUN_NAME",
    "QASE_RUN_DESCRIPTION",
    "QASE_RUN_COMPLETE",
)


@pytest.fixture(autouse=True)
def _clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Run every test without QASE_* variables and restore them afterwards."""
    for name in QASE_VARIABLES:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)


def echo_result(url: URL, **kwargs: Any) -> CallbackResult:
    """Answer a create result request for the posted case."""
    case_id = kwargs["json"]["case_id"]
    return CallbackResult(
        payload=result_created(case_id=case_id, result_hash=f"hash-{case_id}")
    )


@pytest.fixture
def config() -> ReporterConfig:
    """Create reporter configuration."""
    return ReporterConfig(
        project_code="DEMO",
        api_token=SecretStr("test-token"),
        api_base_url=API_BASE_URL,
        enable_logging=True,
        run_complete=True,
    )


@pytest.fixture
def report_path(tmp_path: Path) -> Path:
    """Write a Jest report with two matched tests and one unmatched."""
    report: dict[str, Any] = {
        "testResults": [
            {
                "name": "/repo/a.test.js",
                "assertionResults": [
                    {
                        "title": "works (Qase ID: 1)",
                        "status": "passed",
                        "duration": 3,
                        "failureMessages": [],
                    },
                    {
                        "title": "no case",
                        "status": "passed",
                        "duration": 1,
                        "failureMessages": [],
                    },
                ],
            },
            {
                "name": "/repo/b.test.js",
                "assertionResults": [
                    {
                        "title": "breaks (Qase ID: 2)",
                        "status": "failed",
                        "duration": 8,
                        "failureMessages": ["Error: broken"],
                    }
                ],
            },
        ]
    }
    path = tmp_path / "report.json"
    path.write_text(json.dumps(report))
    return path


async def test_publishes_report_and_completes_run(
    config: ReporterConfig,
    report_path: Path,
    aioresponses: aioresponses_cls,
    capsys: pytest.CaptureFixture[str],
) -> None:
    """Creates a run, publishes matched tests and completes the run."""
    aioresponses.get(f"{API_BASE_URL}/v1/project/DEMO", payload=project())
    aioresponses.post(f"{API_BASE_URL}/v1/run/DEMO", payload=run_created(run_id=42))
    aioresponses.post(
        f"{API_BASE_URL}/v1/result/DEMO/42",
        callback=echo_result,
        repeat=True,
    )
    aioresponses.post(
        f"{API_BASE_URL}/v1/run/DEMO/42/complete", payload=run_completed()
    )

    exit_code = await run(report_path, config)

    assert exit_code == 0
    output = json.loads(capsys.readouterr().out)
    assert output["run_id"] == 42
    assert output["published"] == 2
    assert sorted(output["results"], key=lambda r: r["case_id"]) == [
        {"title": "works (Qase ID: 1)", "case_id": 1, "hash": "hash-1"},
        {"title": "breaks (Qase ID: 2)", "case_id": 2, "hash": "hash-2"},
    ]


async def test_returns_zero_when_publishing_fails(
    config: ReporterConfig,
    report_path: Path,
    aioresponses: aioresponses_cls,
    capsys: pytest.CaptureFixture[str],
) -> None:
    """Reporter faults do not change the exit code."""
    aioresponses.get(f"{API_BASE_URL}/v1/project/DEMO", payload=project())
    aioresponses.post(f"{API_BASE_URL}/v1/run/DEMO", payload=run_created(run_id=42))
    aioresponses.post(
        f"{API_BASE_URL}/v1/result/DEMO/42",
        status=500,
        body="Server Error",
        repeat=True,
    )
    aioresponses.post(
        f"{API_BASE_URL}/v1/run/DEMO/42/complete", payload=run_completed()
    )

    exit_code = await run(report_path, config)

    assert exit_code == 0
    output = json.loads(capsys.readouterr().out)
    assert output["published"] == 0


async def test_returns_zero_when_project_missing(
    config: ReporterConfig,
    report_path: Path,
    aioresponses: aioresponses_cls,
    capsys: pytest.CaptureFixture[str],
) -> None:
    """Publishes nothing when the project does not exist."""
    aioresponses.get(f"{API_BASE_URL}/v1/project/DEMO", status=404, body="")

    exit_code = await run(report_path, config)

    assert exit_code == 0
    output = json.loads(capsys.readouterr().out)
    assert output == {"run_id": None, "published": 0, "results": []}


async def test_returns_one_for_missing_report(
    config: ReporterConfig, tmp_path: Path
) -> None:
    """Fails when the report cannot be read."""
    assert await run(tmp_path / "missing.json", config) == 1


async def test_returns_one_for_malformed_report(
    config: ReporterConfig, tmp_path: Path
) -> None:
    """Fails when the report is not valid JSON."""
    path = tmp_path / "report.json"
    path.write_text("not json")

    assert await run(path, config) == 1


async def test_returns_one_for_invalid_environment(
    config: ReporterConfig, report_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Fails when QASE_* variables cannot be parsed."""
    monkeypatch.setenv("QASE_RUN_ID", "not-a-number")

    assert await run(report_path, config) == 1


class TestMain:
    """Tests for main CLI entry point."""

    def test_exits_with_run_result(self) -> None:
        """Main function builds configuration and exits with run() result."""
        from qase_reporter.cli import main

        with (
            patch(
                "sys.argv",
                [
                    "qase-report",
                    "report.json",
                    "--project",
                    "DEMO",
                    "--api-token",
                    "secret",
                    "--run-id",
                    "7",
                    "--complete-run",
                    "--quiet",
                ],
            ),
            patch("qase_reporter.cli.run", new=Mock()) as mock_run,
            patch("qase_reporter.cli.asyncio.run", return_value=0),
            pytest.raises(SystemExit) as exc_info,
        ):
            main()

        assert exc_info.value.code == 0
        config = mock_run.call_args.kwargs["config"]
        assert mock_run.call_args.kwargs["report_path"] == "report.json"
        assert config.project_code == "DEMO"
        assert config.api_token == SecretStr("secret")
        assert config.run_id == 7
        assert config.run_complete is True
        assert config.enable_logging is False

    def test_exits_with_failure_code(self) -> None:
        """Main function exits with code 1 when the report is unreadable."""
        from qase_reporter.cli import main

        with (
            patch("sys.argv", ["qase-report", "report.json", "--project", "DEMO"]),
            patch("qase_reporter.cli.run", new=Mock()),
            patch("qase_reporter.cli.asyncio.run", return_value=1),
            pytest.raises(SystemExit) as exc_info,
        ):
            main()

        assert exc_info.value.code == 1
