"""Base model configuration for API payloads, reports and settings."""

from pydantic import BaseModel, ConfigDict


class Model(BaseModel):
    """Immutable model accepting both field names and aliases."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)
