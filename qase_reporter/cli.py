"""CLI entry point publishing a Jest JSON report to Qase."""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

from pydantic import SecretStr, ValidationError

from qase_reporter.client import QaseClient
from qase_reporter.config import QaseEnv, ReporterConfig
from qase_reporter.jest_report import load_jest_report
from qase_reporter.reporter import QaseReporter


async def run(report_path: Path | str, config: ReporterConfig) -> int:
    """Replay a Jest report through the reporter and return exit code."""
    log = logging.getLogger("qase_reporter")

    try:
        env = QaseEnv.read()
    except ValidationError as exc:
        log.error("Invalid Qase environment: %s", exc)
        return 1

    try:
        report = load_jest_report(report_path)
    except (OSError, ValidationError) as exc:
        log.error("Could not read Jest report %s: %s", report_path, exc)
        return 1

    log.info(
        "Publishing %d test file(s) to project %s",
        len(report.test_results),
        config.project_code,
    )

    async with QaseClient.from_config(config, env) as client:
        reporter = QaseReporter(config=config, client=client)
        reporter.on_run_start()
        for test_file in report.test_results:
            reporter.on_test_result(test_file.to_outcomes())

        await reporter.run_started()
        await reporter.on_run_complete()
        await reporter.settle()

    print(json.dumps(format_output(reporter), indent=2))
    return 0


def format_output(reporter: QaseReporter) -> dict[str, Any]:
    """Format published results for JSON output."""
    return {
        "run_id": reporter.run_id,
        "published": len(reporter.results),
        "results": [
            {
                "title": published.outcome.title,
                "case_id": published.result.case_id,
                "hash": published.result.hash,
            }
            for published in reporter.results
        ],
    }


def main() -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Publish Jest test results to a Qase test run"
    )
    parser.add_argument(
        "report",
        help="Path to a report written by `jest --json`, or - for stdin",
    )
    parser.add_argument(
        "--project",
        required=True,
        help="Qase project code",
    )
    parser.add_argument(
        "--api-token",
        default=None,
        help="Qase API token (default: QASE_API_TOKEN)",
    )
    parser.add_argument(
        "--run-id",
        type=int,
        default=None,
        help="Existing run to publish to (QASE_RUN_ID takes precedence)",
    )
    parser.add_argument(
        "--run-prefix",
        default=None,
        help="Prefix of the generated run name",
    )
    parser.add_argument(
        "--complete-run",
        action="store_true",
        help="Complete the run once all results are published",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Disable reporter logging",
    )
    parser.add_argument(
        "--api-base-url",
        default="https://api.qase.io",
        help="Qase API base URL",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    config = ReporterConfig(
        project_code=args.project,
        api_token=SecretStr(args.api_token) if args.api_token else None,
        run_id=args.run_id,
        run_prefix=args.run_prefix,
        enable_logging=not args.quiet,
        run_complete=args.complete_run,
        api_base_url=args.api_base_url,
    )

    exit_code = asyncio.run(run(report_path=args.report, config=config))
    sys.exit(exit_code)


if __name__ == "__main__":  # pragma: no cover
    main()
