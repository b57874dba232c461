"""Configuration for the Qase reporter."""

import os
from collections.abc import Mapping
from typing import Any

from pydantic import ConfigDict, Field, SecretStr, field_validator

from qase_reporter.models.base import Model

FALSE_VALUES = frozenset({"", "0", "false", "no", "off"})


class QaseEnv(Model):
    """Reporter settings read from environment variables."""

    model_config = ConfigDict(frozen=True, populate_by_name=False)

    report: bool = Field(default=False, alias="QASE_REPORT")
    api_token: SecretStr | None = Field(default=None, alias="QASE_API_TOKEN")
    run_id: int | None = Field(default=None, alias="QASE_RUN_ID")
    run_name: str | None = Field(default=None, alias="QASE_RUN_NAME")
    run_description: str | None = Field(default=None, alias="QASE_RUN_DESCRIPTION")
    run_complete: bool = Field(default=False, alias="QASE_RUN_COMPLETE")

    @field_validator("report", "run_complete", mode="before")
    @classmethod
    def _parse_flag(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower() not in FALSE_VALUES
        return value

    @field_validator(
        "api_token", "run_id", "run_name", "run_description", mode="before"
    )
    @classmethod
    def _empty_as_unset(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @classmethod
    def read(cls, environ: Mapping[str, str] | None = None) -> "QaseEnv":
        """Read settings from the given mapping, or the process environment."""
        return cls.model_validate(dict(os.environ if environ is None else environ))


class ReporterConfig(Model):
    """Options passed to the reporter explicitly.

    Some options may also be given through the environment; the resolution
    methods take a freshly read QaseEnv so the environment is consulted at
    the time a value is needed.
    """

    project_code: str
    api_token: SecretStr | None = None
    run_id: int | None = None
    run_prefix: str | None = None
    enable_logging: bool = False
    run_complete: bool = False
    api_base_url: str = "https://api.qase.io"

    def resolve_api_token(self, env: QaseEnv) -> SecretStr | None:
        """Explicit token, falling back to QASE_API_TOKEN."""
        if self.api_token is not None and self.api_token.get_secret_value():
            return self.api_token
        return env.api_token

    def resolve_run_id(self, env: QaseEnv) -> int | None:
        """QASE_RUN_ID, falling back to the explicit run id."""
        return env.run_id if env.run_id is not None else self.run_id

    def resolve_run_complete(self, env: QaseEnv) -> bool:
        """Complete the run if requested explicitly or by QASE_RUN_COMPLETE."""
        return self.run_complete or env.run_complete
