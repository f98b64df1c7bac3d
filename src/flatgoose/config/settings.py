"""FlatgooseSettings — one frozen object for a store's configuration.

Sources, strongest first:

1. keyword overrides (``connect(**overrides)`` or CLI flags)
2. ``FLATGOOSE_*`` environment variables (``__`` reaches into sections)
3. ``flatgoose.toml`` (explicit path, ``FLATGOOSE_CONFIG``, or walk-up)
4. defaults baked into :mod:`flatgoose.config.models`

The TOML file is wired in as a pydantic-settings source; which file to
read is handed to :meth:`FlatgooseSettings.settings_customise_sources`
through a thread-local for the duration of one construction.
"""

from __future__ import annotations

import os
import threading
import tomllib
from pathlib import Path
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from flatgoose.config.discovery import find_config
from flatgoose.config.models import ModelsConfig, StorageConfig


def _read_toml(path: Path | None) -> dict[str, Any]:
    if path is None or not path.is_file():
        return {}
    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        msg = f"Invalid TOML in {path}: {exc}"
        raise ValueError(msg) from exc


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Settings values read from one ``flatgoose.toml``."""

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._data = _read_toml(toml_path)

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        return self._data.get(field_name), field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        return self._data


_construction = threading.local()


class FlatgooseSettings(BaseSettings):
    """Settings for a store and the CLI.

    Attributes:
        root: Directory holding one file per collection. A relative root
            written in ``flatgoose.toml`` is relative to that file; any
            other relative root is relative to the working directory.
        config_path: The TOML file that was read, if any.
        json_output: CLI only. Emit JSON envelopes.
        verbose: Log ``flatgoose.*`` at DEBUG.
        log_json: Log as JSON lines.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "FLATGOOSE_",
        "env_nested_delimiter": "__",
    }

    root: Path = Path("data")
    config_path: Path | None = None

    json_output: bool = False
    verbose: bool = False
    log_json: bool = False

    storage: StorageConfig = Field(default_factory=StorageConfig)
    models: ModelsConfig = Field(default_factory=ModelsConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Overrides, then env vars, then the TOML file (no dotenv or secrets)."""
        toml_source = TomlSettingsSource(settings_cls, getattr(_construction, "toml_path", None))
        return init_settings, env_settings, toml_source

    @classmethod
    def load(
        cls,
        *,
        config_path: str | Path | None = None,
        start: Path | None = None,
        **overrides: Any,
    ) -> FlatgooseSettings:
        """Build settings, discovering ``flatgoose.toml`` from *start* unless
        *config_path* is given. ``None``-valued *overrides* are ignored so
        unset CLI options fall through to lower sources.
        """
        if config_path:
            explicit = Path(config_path)
            toml_path = explicit if explicit.is_file() else None
        else:
            toml_path = find_config(start)

        overrides = {key: value for key, value in overrides.items() if value is not None}
        _construction.toml_path = toml_path
        try:
            settings = cls(config_path=toml_path, **overrides)
        finally:
            _construction.toml_path = None

        if settings.root.is_absolute():
            return settings
        root_from_file = (
            toml_path is not None
            and "root" in _read_toml(toml_path)
            and "root" not in overrides
            and "FLATGOOSE_ROOT" not in os.environ
        )
        base = toml_path.parent if root_from_file and toml_path else Path.cwd()
        return settings.model_copy(update={"root": base / settings.root})
