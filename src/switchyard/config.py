"""Application configuration.

AppConfig is a frozen dataclass — immutable after creation, IDE-autocompletable,
no string-key dict lookups.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = AppConfig(debug=True, port=3000, static_dir="./public")
    """

    # Server
    host: str = "127.0.0.1"
    port: int = 8000
    debug: bool = False

    # Static fallback
    static_dir: str | Path | None = "static"
    mime_types: Mapping[str, str] = field(default_factory=dict)  # Extension overrides, e.g. {".map": "application/json"}

    # Limits
    max_content_length: int = 16 * 1024 * 1024  # 16 MB

    # Logging
    log_level: str = "info"

    @classmethod
    def from_env(
        cls,
        prefix: str = "SWITCHYARD_",
        environ: Mapping[str, str] | None = None,
        **overrides: Any,
    ) -> AppConfig:
        """Build a config from environment variables.

        Each field is read from ``{prefix}{FIELD_NAME}`` (e.g.
        ``SWITCHYARD_PORT``). Unset variables keep their defaults and
        keyword *overrides* win over the environment. ``mime_types`` is
        not read from the environment.
        """
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {}
        for f in fields(cls):
            if f.name == "mime_types":
                continue
            raw = env.get(f"{prefix}{f.name.upper()}")
            if raw is None:
                continue
            values[f.name] = _coerce(f.name, raw)
        values.update(overrides)
        return cls(**values)


_BOOL_FIELDS = frozenset({"debug"})
_INT_FIELDS = frozenset({"port", "max_content_length"})


def _coerce(name: str, raw: str) -> Any:
    if name in _BOOL_FIELDS:
        return raw.strip().lower() in ("1", "true", "yes", "on")
    if name in _INT_FIELDS:
        try:
            return int(raw)
        except ValueError:
            from switchyard.errors import ConfigurationError

            msg = f"Environment value for {name!r} must be an integer, got {raw!r}"
            raise ConfigurationError(msg) from None
    if name == "static_dir" and raw == "":
        return None
    return raw
