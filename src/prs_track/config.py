"""Centralized configuration for the PRS member lookup.

All settings live here so they can be overridden by environment variables or a
``.env`` file without touching source code.

**Profile system:** Set ``PRS_PROFILE=dev`` (default) or ``PRS_PROFILE=prod``
to get sensible defaults for each environment.  Any individual ``PRS_*`` var
still overrides the profile value.

The resolution core reads these once at import time and treats them as
constants; nothing here is re-read per request.

Usage::

    from prs_track.config import BASE_URL, MP_SESSIONS

    url = f"{BASE_URL}/mptrack/{MP_SESSIONS[0]}/rahul-gandhi"
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from current working directory (project root when running uvicorn / scripts)
load_dotenv()

LOGGER = logging.getLogger(__name__)

# ── Profile: one knob for the whole environment ──────────────────────────────

PROFILE: str = os.getenv("PRS_PROFILE", "dev").lower().strip()

_PROFILE_DEFAULTS: dict[str, dict[str, str]] = {
    "dev": {
        "PRS_CORS_ORIGINS": "*",
        "PRS_REQUEST_DELAY": "0",
        "PRS_LOG_LEVEL": "DEBUG",
    },
    "prod": {
        "PRS_CORS_ORIGINS": "",  # empty → must be explicitly set
        "PRS_REQUEST_DELAY": "0",
        "PRS_LOG_LEVEL": "INFO",
    },
}

if PROFILE not in _PROFILE_DEFAULTS:
    LOGGER.warning("Unknown PRS_PROFILE=%r, falling back to 'dev'.", PROFILE)
    PROFILE = "dev"

_defaults = _PROFILE_DEFAULTS[PROFILE]


def _env(key: str, fallback: str = "") -> str:
    """Read an env var, falling back to profile default then *fallback*."""
    return os.getenv(key, _defaults.get(key, fallback))


def _env_list(key: str, fallback: str) -> tuple[str, ...]:
    raw = _env(key, fallback)
    return tuple(item.strip() for item in raw.split(",") if item.strip())


# ── Site ─────────────────────────────────────────────────────────────────────
BASE_URL: str = _env("PRS_BASE_URL", "https://prsindia.org").rstrip("/")

# Lok Sabha sessions probed for MPs, newest first.
MP_SESSIONS: tuple[str, ...] = _env_list(
    "PRS_SESSIONS", "18th-lok-sabha,17th-lok-sabha,16th-lok-sabha"
)[:3]

# Disambiguation suffixes the site appends to duplicate slugs.
SLUG_SUFFIXES: tuple[str, ...] = ("", "-1", "-2", "-3")
REDUCED_SLUG_SUFFIXES: tuple[str, ...] = ("", "-1")
REDUCED_CANDIDATE_CAP: int = int(_env("PRS_REDUCED_CANDIDATE_CAP", "5"))

# ── Probing ──────────────────────────────────────────────────────────────────
MAX_CONCURRENCY: int = int(_env("PRS_MAX_CONCURRENCY", "8"))
FETCH_TIMEOUT_SECONDS: float = float(_env("PRS_FETCH_TIMEOUT", "12"))
FETCH_RETRIES: int = int(_env("PRS_FETCH_RETRIES", "2"))
REQUEST_DELAY: float = float(_env("PRS_REQUEST_DELAY", "0"))
MIN_PAGE_LENGTH: int = int(_env("PRS_MIN_PAGE_LENGTH", "1000"))

# ── Logging / run log ────────────────────────────────────────────────────────
LOG_LEVEL: str = _env("PRS_LOG_LEVEL", "INFO").upper()
RUN_LOG_PATH: Path = Path(_env("PRS_RUN_LOG", ".lookup_log.jsonl"))

# ── Security / network ──────────────────────────────────────────────────────
CORS_ORIGINS: str = _env("PRS_CORS_ORIGINS").strip()
API_KEY: str = _env("PRS_API_KEY").strip()

# ── Production guard: warn if CORS is wide-open or API_KEY is missing ────────
if PROFILE == "prod":
    if CORS_ORIGINS in ("*", ""):
        LOGGER.warning(
            "PRS_PROFILE=prod but PRS_CORS_ORIGINS=%r. "
            "Set it to your front-end origin(s) for security.",
            CORS_ORIGINS,
        )
    if not API_KEY:
        LOGGER.warning("PRS_PROFILE=prod but PRS_API_KEY is empty. /member is unprotected.")

if len(MP_SESSIONS) < 3:
    LOGGER.warning("Only %d MP session(s) configured: %s", len(MP_SESSIONS), MP_SESSIONS)
