"""Runtime settings read from the environment.

A ``.env`` file in the working directory is loaded first, so local
development can keep the rate API key out of the shell profile.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

DEFAULT_RATES_TIMEOUT = 10.0
DEFAULT_LOG_LEVEL = "WARNING"


@dataclass(frozen=True)
class Settings:
    api_ninjas_key: Optional[str] = None
    rates_timeout: float = DEFAULT_RATES_TIMEOUT
    log_level: str = DEFAULT_LOG_LEVEL
    secret_key: str = "dev-secret-key"


def _float_env(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number of seconds; got {raw!r}") from exc


def load_settings(dotenv_path: Optional[str] = None) -> Settings:
    """Build ``Settings`` from ``.env`` and the process environment."""
    load_dotenv(dotenv_path)
    return Settings(
        api_ninjas_key=os.environ.get("API_NINJAS_KEY") or None,
        rates_timeout=_float_env("MORTGAGE_RATES_TIMEOUT", DEFAULT_RATES_TIMEOUT),
        log_level=os.environ.get("MORTGAGE_CALC_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper(),
        secret_key=os.environ.get("FLASK_SECRET_KEY", "dev-secret-key"),
    )
