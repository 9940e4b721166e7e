"""Centralized configuration for the policy-subject map builder.

All settings live here so they can be overridden by environment variables or a
``.env`` file without touching source code.

**Profile system:** Set ``PSM_PROFILE=session`` (default) to build the map for
the current Congress only, or ``PSM_PROFILE=multi`` to aggregate several
Congresses into one global matrix.  Any individual ``PSM_*`` var still
overrides the profile value.

Usage::

    from policy_subject_map.config import load_settings

    settings = load_settings()
    settings.output_path  # Path("policy-subject-map-119.json")
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from current working directory (project root when running scripts/)
load_dotenv()

LOGGER = logging.getLogger(__name__)

# ── Profile: one knob for the corpus size ────────────────────────────────────
# "session" = one Congress, "multi" = several Congresses in one matrix.
# Individual vars always override the profile.

_PROFILE_DEFAULTS: dict[str, dict[str, str]] = {
    "session": {
        "PSM_CONGRESSES": "119",
        "PSM_MIN_SUPPORT": "5",
    },
    "multi": {
        "PSM_CONGRESSES": "116,117,118,119",
        "PSM_MIN_SUPPORT": "10",
    },
}


def _resolve_profile() -> str:
    profile = os.getenv("PSM_PROFILE", "session").lower().strip()
    if profile not in _PROFILE_DEFAULTS:
        LOGGER.warning("Unknown PSM_PROFILE=%r, falling back to 'session'.", profile)
        return "session"
    return profile


PROFILE: str = _resolve_profile()


def _env(key: str, fallback: str = "", *, profile: str | None = None) -> str:
    """Read an env var, falling back to profile default then *fallback*."""
    defaults = _PROFILE_DEFAULTS[profile or PROFILE]
    return os.getenv(key, defaults.get(key, fallback))


def _split_csv(raw: str) -> list[str]:
    return [part.strip() for part in raw.split(",") if part.strip()]


_ALL_TYPES = "hr,s,hjres,sjres,hconres,sconres,hres,sres"


def _read_env(profile: str) -> dict:
    """Every ``Settings`` field as currently set in the environment."""

    def env(key: str, fallback: str = "") -> str:
        return _env(key, fallback, profile=profile)

    output = env("PSM_OUTPUT").strip()
    return {
        # Corpus scope
        "congresses": tuple(int(c) for c in _split_csv(env("PSM_CONGRESSES", "119"))),
        "bill_types": tuple(t.lower() for t in _split_csv(env("PSM_BILL_TYPES", _ALL_TYPES))),
        # A subject links to every policy area holding >= threshold of its peak count.
        "min_support": int(env("PSM_MIN_SUPPORT", "5")),
        "threshold": float(env("PSM_THRESHOLD", "0.30")),
        # Network
        "sitemap_base": env(
            "PSM_SITEMAP_BASE", "https://www.govinfo.gov/sitemap/bulkdata/BILLSTATUS"
        ).rstrip("/"),
        "max_concurrency": int(env("PSM_MAX_CONCURRENCY", "12")),
        "retries": int(env("PSM_RETRIES", "3")),
        "backoff_s": float(env("PSM_BACKOFF_S", "1.0")),
        "timeout_s": float(env("PSM_TIMEOUT_S", "12")),
        # Directories / files
        "data_dir": Path(env("PSM_DATA_DIR", "data")),
        "output": Path(output) if output else None,
    }


# Import-time snapshot; these are the ``Settings`` field defaults.
_IMPORT_ENV = _read_env(PROFILE)

CONGRESSES: tuple[int, ...] = _IMPORT_ENV["congresses"]
BILL_TYPES: tuple[str, ...] = _IMPORT_ENV["bill_types"]
MIN_SUPPORT: int = _IMPORT_ENV["min_support"]
THRESHOLD: float = _IMPORT_ENV["threshold"]
SITEMAP_BASE: str = _IMPORT_ENV["sitemap_base"]
MAX_CONCURRENCY: int = _IMPORT_ENV["max_concurrency"]
RETRIES: int = _IMPORT_ENV["retries"]
BACKOFF_S: float = _IMPORT_ENV["backoff_s"]
TIMEOUT_S: float = _IMPORT_ENV["timeout_s"]
DATA_DIR: Path = _IMPORT_ENV["data_dir"]


def default_output_path(congresses: tuple[int, ...]) -> Path:
    """``policy-subject-map-119.json`` or ``policy-subject-map-116-119.json``."""
    if len(congresses) == 1:
        return Path(f"policy-subject-map-{congresses[0]}.json")
    return Path(f"policy-subject-map-{congresses[0]}-{congresses[-1]}.json")


@dataclass(frozen=True)
class Settings:
    """Immutable snapshot of every knob the pipeline reads."""

    congresses: tuple[int, ...] = CONGRESSES
    bill_types: tuple[str, ...] = BILL_TYPES
    min_support: int = MIN_SUPPORT
    threshold: float = THRESHOLD
    max_concurrency: int = MAX_CONCURRENCY
    retries: int = RETRIES
    backoff_s: float = BACKOFF_S
    timeout_s: float = TIMEOUT_S
    data_dir: Path = DATA_DIR
    sitemap_base: str = SITEMAP_BASE
    output: Path | None = field(default=None)

    def __post_init__(self) -> None:
        if not self.congresses:
            raise ValueError("at least one congress is required")
        if not self.bill_types:
            raise ValueError("at least one bill type is required")
        if not 0.0 <= self.threshold <= 1.0:
            raise ValueError(f"threshold must be within [0, 1], got {self.threshold}")
        if self.min_support < 0:
            raise ValueError(f"min_support must be >= 0, got {self.min_support}")
        if self.max_concurrency < 1:
            raise ValueError(f"max_concurrency must be >= 1, got {self.max_concurrency}")
        if self.retries < 1:
            raise ValueError(f"retries must be >= 1, got {self.retries}")
        if self.backoff_s < 0:
            raise ValueError(f"backoff_s must be >= 0, got {self.backoff_s}")
        if self.timeout_s <= 0:
            raise ValueError(f"timeout_s must be > 0, got {self.timeout_s}")

    @property
    def output_path(self) -> Path:
        return self.output if self.output is not None else default_output_path(self.congresses)


def load_settings() -> Settings:
    """Build ``Settings`` from the environment as it is now (and ``.env``).

    Unlike the module-level constants, which are read once at import, this
    re-reads ``PSM_PROFILE`` and every ``PSM_*`` var on each call.
    """
    return Settings(**_read_env(_resolve_profile()))
