"""Client configuration, with defaults read from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from . import __version__


DEFAULT_HOST = "https://api.arize.com"
SDK_NAME = "python"


def _env_timeout() -> Optional[float]:
    raw = os.getenv("ARIZE_TIMEOUT")
    if not raw:
        return None
    return float(raw)


@dataclass(frozen=True)
class Config:  # pylint: disable=too-few-public-methods
    """Configuration for `Client`.

    `timeout` is passed to ``requests`` unchanged; ``None`` leaves the call
    unbounded.
    """

    host: str = DEFAULT_HOST
    timeout: Optional[float] = None
    verify_ssl: bool = True
    user_agent: str = f"arize-log-client/{__version__}"


# default config constructed from environment variables when available
DEFAULT_CONFIG = Config(
    host=os.getenv("ARIZE_HOST", DEFAULT_HOST),
    timeout=_env_timeout(),
    verify_ssl=(os.getenv("ARIZE_VERIFY_SSL", "true").lower() not in ("0", "false")),
)


__all__ = ["Config", "DEFAULT_CONFIG", "DEFAULT_HOST", "SDK_NAME"]
