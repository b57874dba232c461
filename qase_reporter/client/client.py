"""Qase API client."""

import logging
from collections.abc import AsyncGenerator, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any

import aiohttp

from qase_reporter.config import QaseEnv, ReporterConfig
from qase_reporter.models.api import (
    ResultCreate,
    ResultCreated,
    ResultCreatedResponse,
    RunCreate,
    RunCreated,
    RunCreatedResponse,
)

log = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class QaseClient:
    """Client for the subset of the Qase v1 API used by the reporter."""

    session: aiohttp.ClientSession = field(repr=False)

    @classmethod
    @asynccontextmanager
    async def from_config(
        cls, config: ReporterConfig, env: QaseEnv | None = None
    ) -> AsyncGenerator["QaseClient", None]:
        """Create client with managed session lifecycle."""
        token = config.resolve_api_token(env or QaseEnv.read())
        headers = {"Accept": "application/json"}
        if token is not None:
            headers["Token"] = token.get_secret_value()

        async with aiohttp.ClientSession(
            base_url=config.api_base_url,
            headers=headers,
        ) as session:
            yield cls(session=session)

    async def project_exists(self, code: str) -> bool:
        """Check whether a project exists."""
        return await self._exists(f"/v1/project/{code}", "get project")

    async def run_exists(self, code: str, run_id: int) -> bool:
        """Check whether a run exists in a project."""
        return await self._exists(f"/v1/run/{code}/{run_id}", "get run")

    async def create_run(
        self,
        code: str,
        name: str,
        tags: Sequence[str] = (),
        *,
        description: str | None = None,
    ) -> RunCreated:
        """Create a run and return its id."""
        payload = RunCreate(title=name, description=description, tags=list(tags))
        data = await self._post(f"/v1/run/{code}", payload.model_dump(), "create run")
        return RunCreatedResponse.model_validate(data).result

    async def create_result(
        self, code: str, run_id: int, result: ResultCreate
    ) -> ResultCreated:
        """Record the result of one case in a run."""
        data = await self._post(
            f"/v1/result/{code}/{run_id}",
            result.model_dump(exclude_none=True),
            "create result",
        )
        return ResultCreatedResponse.model_validate(data).result

    async def complete_run(self, code: str, run_id: int) -> None:
        """Mark a run as complete."""
        await self._post(f"/v1/run/{code}/{run_id}/complete", None, "complete run")

    async def _exists(self, url: str, operation: str) -> bool:
        async with self.session.get(url) as response:
            if response.status == 404:
                return False
            if response.status != 200:
                text = await response.text()
                raise RuntimeError(
                    f"Failed to {operation}: {response.status} {text}"
                )
            return True

    async def _post(
        self, url: str, payload: dict[str, Any] | None, operation: str
    ) -> Any:
        log.debug("POST %s", url)
        async with self.session.post(url, json=payload) as response:
            if response.status != 200:
                text = await response.text()
                raise RuntimeError(
                    f"Failed to {operation}: {response.status} {text}"
                )
            return await response.json()
