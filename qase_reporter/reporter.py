"""Reporter publishing test outcomes to a Qase run."""

import asyncio
import logging
import os
from collections import deque
from collections.abc import Coroutine, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import ValidationError

from qase_reporter.case_ids import extract_case_ids
from qase_reporter.client import QaseClient
from qase_reporter.config import QaseEnv, ReporterConfig
from qase_reporter.models.api import ResultStatus
from qase_reporter.models.outcome import PublishedResult, TestOutcome
from qase_reporter.models.result import build_case_result, map_status

log = logging.getLogger(__name__)

type FinalizerState = Literal["idle", "polling", "completed", "timed-out"]

DEFAULT_RUN_NAME = "Automated run"
DEFAULT_RUN_DESCRIPTION = "Jest automated run"


class ReporterLog(logging.LoggerAdapter[logging.Logger]):
    """Logger adapter honouring the reporter's logging toggle."""

    def __init__(self, logger: logging.Logger, *, enabled: bool) -> None:
        super().__init__(logger, None)
        self.enabled = enabled

    def isEnabledFor(self, level: int) -> bool:  # noqa: N802
        """Return False for every level when logging is switched off."""
        return self.enabled and self.logger.isEnabledFor(level)


@dataclass(frozen=True, kw_only=True)
class PendingPublish:
    """A publish waiting for the run id to become known."""

    outcome: TestOutcome
    case_id: int
    status: ResultStatus


@dataclass(kw_only=True)
class QaseReporter:
    """Publishes test outcomes to Qase while a test run progresses.

    Lifecycle methods are driven by the test runner on a running event loop.
    ``on_run_start`` and ``on_test_result`` return immediately and schedule
    their network calls as tasks; ``on_run_complete`` waits, up to
    ``completion_timeout`` seconds, for in-flight publishes before completing
    the run.

    Publishes submitted before the run id is resolved are queued and
    dispatched in arrival order once it is. ``in_flight`` counts publishes
    that were started and have not yet settled.
    """

    config: ReporterConfig
    client: QaseClient
    poll_interval: float = 0.2
    completion_timeout: float = 30
    environ: Mapping[str, str] | None = field(default=None, repr=False)

    run_id: int | None = field(default=None, init=False)
    in_flight: int = field(default=0, init=False)
    initiated: int = field(default=0, init=False)
    results: list[PublishedResult] = field(default_factory=list, init=False)
    finalizer_state: FinalizerState = field(default="idle", init=False)

    _pending: deque[PendingPublish] = field(
        default_factory=deque, init=False, repr=False
    )
    _tasks: set[asyncio.Task[None]] = field(default_factory=set, init=False, repr=False)
    _run_start: asyncio.Task[None] | None = field(default=None, init=False, repr=False)
    _log: ReporterLog = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._log = ReporterLog(log, enabled=self.config.enable_logging)
        try:
            report = self._env().report
        except ValidationError as exc:
            self._log.error("Invalid Qase environment: %s", exc)
            return
        if report:
            self._log.info("Current PID: %d", os.getpid())

    @property
    def pending(self) -> int:
        """Number of publishes waiting for the run id."""
        return len(self._pending)

    def on_run_start(self) -> None:
        """Resolve the run that results are published to."""
        if self._run_start is not None:
            return
        self._run_start = self._spawn(self._resolve_run())

    def on_test_result(self, outcomes: Sequence[TestOutcome]) -> None:
        """Publish the outcomes of one test file."""
        for outcome in outcomes:
            self.publish_case_result(outcome)

    async def on_run_complete(self) -> None:
        """Finish reporting once the test runner is done."""
        if self.initiated == 0:
            log.warning(
                "No testcases were matched. "
                "Ensure that your tests are declared correctly."
            )
        await self.finalize()

    async def run_started(self) -> int | None:
        """Wait for run resolution to finish and return the run id."""
        if self._run_start is not None:
            await self._run_start
        return self.run_id

    async def settle(self) -> None:
        """Wait for every task spawned by the reporter, including new ones."""
        while self._tasks:
            await asyncio.gather(*self._tasks)

    def publish_case_result(self, outcome: TestOutcome) -> None:
        """Start publishing an outcome for every case id in its title."""
        self._log.info("Test %s %s", outcome.title, outcome.status)

        case_ids = extract_case_ids(outcome.title)
        if not case_ids:
            return

        if (status := map_status(outcome.status)) is None:
            self._log.info(
                "Status %s has no Qase equivalent, not publishing %s",
                outcome.status,
                outcome.title,
            )
            return

        for case_id in case_ids:
            self.in_flight += 1
            self.initiated += 1
            action = PendingPublish(outcome=outcome, case_id=case_id, status=status)

            if self.run_id is not None:
                self._dispatch(action, self.run_id)
            else:
                self._pending.append(action)

    async def finalize(self) -> None:
        """Complete the run once all publishes settle, within the timeout."""
        if self.finalizer_state != "idle":
            return
        if self.run_id is None or self.initiated == 0:
            return
        try:
            run_complete = self.config.resolve_run_complete(self._env())
        except ValidationError as exc:
            self._log.error("Invalid Qase environment: %s", exc)
            return
        if not run_complete:
            return

        self.finalizer_state = "polling"
        run_id = self.run_id
        self._log.info(
            "Waiting for %g seconds to publish pending results",
            self.completion_timeout,
        )

        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.completion_timeout

        while True:
            await asyncio.sleep(self.poll_interval)

            if self.in_flight == 0:
                self.finalizer_state = "completed"
                await self._complete_run(run_id)
                return

            if loop.time() >= deadline:
                self.finalizer_state = "timed-out"
                self._log.warning(
                    "Could not send all results for %g seconds after run, "
                    "%d result(s) still unconfirmed",
                    self.completion_timeout,
                    self.in_flight,
                )
                return

    def _env(self) -> QaseEnv:
        return QaseEnv.read(self.environ)

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> asyncio.Task[None]:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def _save_run_id(self, run_id: int) -> bool:
        if self.run_id is not None:
            return False
        self.run_id = run_id

        while self._pending:
            self._log.info("Number of pending: %d", len(self._pending))
            self._dispatch(self._pending.popleft(), run_id)
        return True

    def _dispatch(self, action: PendingPublish, run_id: int) -> None:
        self._spawn(self._publish(action, run_id))

    async def _resolve_run(self) -> None:
        code = self.config.project_code
        try:
            env = self._env()
            if self.config.resolve_api_token(env) is None:
                self._log.error("No API token configured, results will not be sent")
                return

            if not await self.client.project_exists(code):
                self._log.error("Project %s does not exist", code)
                return
            self._log.info("Project %s exists", code)

            if (run_id := self.config.resolve_run_id(env)) is not None:
                self._save_run_id(run_id)
                await self._check_run(run_id)
            else:
                await self._create_run(env)
        except Exception as exc:
            self._log.error("Error on resolving run: %s", exc, exc_info=exc)

    async def _check_run(self, run_id: int) -> None:
        try:
            exists = await self.client.run_exists(self.config.project_code, run_id)
        except Exception as exc:
            self._log.error("Error on checking run %s: %s", run_id, exc)
            return

        if exists:
            self._log.info("Using run %s to publish test results", run_id)
        else:
            self._log.warning("Run %s does not exist", run_id)

    async def _create_run(self, env: QaseEnv) -> None:
        code = self.config.project_code
        name = env.run_name or self._default_run_name()
        description = env.run_description or DEFAULT_RUN_DESCRIPTION

        try:
            created = await self.client.create_run(
                code, name, [], description=description
            )
        except Exception as exc:
            self._log.error("Could not create run in project %s: %s", code, exc)
            return

        if not self._save_run_id(created.id):
            self._log.warning(
                "Run %s was created after run %s was resolved, ignoring it",
                created.id,
                self.run_id,
            )
            return
        os.environ["QASE_RUN_ID"] = str(created.id)
        self._log.info("Using run %s to publish test results", created.id)

    def _default_run_name(self) -> str:
        prefix = self.config.run_prefix or DEFAULT_RUN_NAME
        return f"{prefix} {datetime.now(timezone.utc).isoformat()}"

    async def _publish(self, action: PendingPublish, run_id: int) -> None:
        title = action.outcome.title
        try:
            self._log.info("Start publishing: %s (case %d)", title, action.case_id)
            result = await self.client.create_result(
                self.config.project_code,
                run_id,
                build_case_result(action.outcome, action.case_id, action.status),
            )
            self.results.append(PublishedResult(outcome=action.outcome, result=result))
            self._log.info(
                "Result published: %s %s (case %d)", title, result.hash, action.case_id
            )
        except Exception as exc:
            self._log.error(
                "Error on publishing %s (case %d): %s", title, action.case_id, exc
            )
        finally:
            self.in_flight -= 1

    async def _complete_run(self, run_id: int) -> None:
        try:
            await self.client.complete_run(self.config.project_code, run_id)
        except Exception as exc:
            self._log.error("Error on completing run %s: %s", run_id, exc)
            return
        self._log.info("Run %s completed", run_id)
