"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, flatgoose.toml only contains
overrides. A store needs no config file at all.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

# --- flatgoose.toml sections ---


class StorageConfig(BaseModel):
    """[storage] section."""

    model_config = {"frozen": True}

    extension: str = ".yaml"
    create_root: bool = True

    @field_validator("extension")
    @classmethod
    def _leading_dot(cls, value: str) -> str:
        return value if value.startswith(".") else f".{value}"


class ModelsConfig(BaseModel):
    """[models] section."""

    model_config = {"frozen": True}

    max_name_length: int = Field(default=50, ge=1)

