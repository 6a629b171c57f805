"""Process-level settings read from the environment."""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from acai.errors import ConfigurationError
from acai.responses import DEFAULT_BASE_URL


def _default_data_dir() -> str:
    return str(Path.home() / ".cache" / "acai")


@dataclass(frozen=True)
class Settings:
    api_key: str = ""
    base_url: str = DEFAULT_BASE_URL
    data_dir: str = ""
    log_level: str = "INFO"
    max_retries: int = 2
    request_timeout: float = 120.0

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        """Read settings from ``environ`` (defaults to ``os.environ``)."""
        env = os.environ if environ is None else environ
        try:
            max_retries = int(env.get("ACAI_MAX_RETRIES", "2"))
            request_timeout = float(env.get("ACAI_REQUEST_TIMEOUT", "120"))
        except ValueError as e:
            raise ConfigurationError(f"Invalid numeric setting: {e}", cause=e) from e
        return cls(
            api_key=env.get("OPENROUTER_API_KEY", ""),
            base_url=env.get("ACAI_BASE_URL", DEFAULT_BASE_URL),
            data_dir=env.get("ACAI_DATA_DIR") or _default_data_dir(),
            log_level=env.get("ACAI_LOG_LEVEL", "INFO").upper(),
            max_retries=max_retries,
            request_timeout=request_timeout,
        )
