# =============================================================================
# core/settings.py  -  Runtime Configuration
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Reads the server's limits from environment variables into one frozen
#   Settings object.  main.py loads a .env file (python-dotenv) before the
#   server module builds its Settings, so either source works.
#
# VARIABLES:
#   JSON_TOOLS_MAX_OUTPUT          Output budget in characters (25000)
#   JSON_TOOLS_MAX_FILE_MB         Largest file the loader accepts (100)
#   JSON_TOOLS_EXPRESSION_STEPS    Node evaluations per expression run (1000000)
#   JSON_TOOLS_MAX_PATTERN_LENGTH  Longest accepted regex pattern (1000)
#   JSON_TOOLS_SEARCH_TIMEOUT      Seconds one search may spend matching (5)
#   JSON_TOOLS_LOG_LEVEL           Logging level name (INFO)
#
# The object is built once at process start and passed where it is needed.
# Nothing mutates it afterwards.
# =============================================================================

import logging
import os
from dataclasses import dataclass
from typing import Mapping

from core.errors import InvalidArgument

DEFAULT_MAX_OUTPUT_LENGTH = 25000


@dataclass(frozen=True)
class Settings:
    """Limits applied to every tool call."""

    max_output_length: int = DEFAULT_MAX_OUTPUT_LENGTH
    max_file_bytes: int = 100 * 1024 * 1024
    expression_step_limit: int = 1_000_000
    max_pattern_length: int = 1000
    search_timeout: float = 5.0
    log_level: str = "INFO"


def _positive_int(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise InvalidArgument(f"{name} must be an integer, got {raw!r}") from None
    if value <= 0:
        raise InvalidArgument(f"{name} must be positive, got {value}")
    return value


def _positive_float(environ: Mapping[str, str], name: str, default: float) -> float:
    raw = environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise InvalidArgument(f"{name} must be a number, got {raw!r}") from None
    if not value > 0:
        raise InvalidArgument(f"{name} must be positive, got {value}")
    return value


def load_settings(environ: Mapping[str, str] = os.environ) -> Settings:
    """Build Settings from environment variables, falling back to defaults.

    Args:
        environ: Mapping to read from.  Tests pass a plain dict.

    Returns:
        A frozen Settings instance.

    Raises:
        InvalidArgument: A variable is set to something unusable.
    """
    log_level = environ.get("JSON_TOOLS_LOG_LEVEL", "INFO").strip().upper() or "INFO"
    if not isinstance(logging.getLevelName(log_level), int):
        raise InvalidArgument(f"JSON_TOOLS_LOG_LEVEL is not a logging level: {log_level!r}")

    max_file_mb = _positive_int(environ, "JSON_TOOLS_MAX_FILE_MB", 100)

    return Settings(
        max_output_length=_positive_int(environ, "JSON_TOOLS_MAX_OUTPUT", DEFAULT_MAX_OUTPUT_LENGTH),
        max_file_bytes=max_file_mb * 1024 * 1024,
        expression_step_limit=_positive_int(environ, "JSON_TOOLS_EXPRESSION_STEPS", 1_000_000),
        max_pattern_length=_positive_int(environ, "JSON_TOOLS_MAX_PATTERN_LENGTH", 1000),
        search_timeout=_positive_float(environ, "JSON_TOOLS_SEARCH_TIMEOUT", 5.0),
        log_level=log_level,
    )
