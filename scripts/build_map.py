#!/usr/bin/env python3
"""Build the policy-area → subject-term map from BILLSTATUS bulk data.

  Phase 1: Download  -- mirror sitemap-listed XML into data/{congress}/{type}/
                        (cached files are never re-fetched)
  Phase 2: Aggregate -- count policy/subject co-occurrence over the cache
  Phase 3: Cluster   -- support filter + relative-threshold soft assignment
  Phase 4: Export    -- write policy-subject-map-<congress(es)>.json

Usage::

    python scripts/build_map.py                          # 119th Congress
    PSM_PROFILE=multi python scripts/build_map.py        # 116th-119th
    python scripts/build_map.py --congresses 117,118 --min-support 10
    python scripts/build_map.py --skip-download          # rebuild from cache
    python scripts/build_map.py --download-only          # just refresh cache

Exit status: 0 on success (skipped files are reported, not fatal),
1 if the cache or output can't be written, 2 on invalid settings.
"""

from __future__ import annotations

import argparse
import dataclasses
import logging
import sys
from pathlib import Path

# Ensure the project is importable
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT / "src"))

from policy_subject_map.config import load_settings  # noqa: E402
from policy_subject_map.pipeline import print_summary, run_pipeline  # noqa: E402


def _int_list(raw: str) -> tuple[int, ...]:
    return tuple(int(part) for part in raw.split(",") if part.strip())


def _str_list(raw: str) -> tuple[str, ...]:
    return tuple(part.strip().lower() for part in raw.split(",") if part.strip())


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Soft-cluster CRS subject terms around policy areas.",
    )

    # ── Scope ─────────────────────────────────────────────────────────────
    parser.add_argument("--congresses", type=_int_list, help="Comma list, e.g. 116,117,118.")
    parser.add_argument("--types", type=_str_list, help="Bill types, e.g. hr,s,hjres.")
    parser.add_argument("--data-dir", type=Path, help="XML cache root (default: data/).")
    parser.add_argument("--output", type=Path, help="Output JSON path.")

    # ── Clustering ────────────────────────────────────────────────────────
    parser.add_argument("--min-support", type=int, help="Drop subjects seen on fewer bills.")
    parser.add_argument("--threshold", type=float, help="Fraction of a subject's peak count.")

    # ── Network ───────────────────────────────────────────────────────────
    parser.add_argument("--concurrency", type=int, help="Max parallel downloads.")
    parser.add_argument("--retries", type=int, help="Attempts per request.")
    parser.add_argument("--timeout", type=float, help="Per-request timeout in seconds.")

    # ── Modes ─────────────────────────────────────────────────────────────
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--skip-download",
        action="store_true",
        help="Build from the existing cache only.",
    )
    mode.add_argument(
        "--download-only",
        action="store_true",
        help="Refresh the cache and stop.",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger = logging.getLogger("build_map")

    overrides = {
        "congresses": args.congresses,
        "bill_types": args.types,
        "data_dir": args.data_dir,
        "output": args.output,
        "min_support": args.min_support,
        "threshold": args.threshold,
        "max_concurrency": args.concurrency,
        "retries": args.retries,
        "timeout_s": args.timeout,
    }
    try:
        settings = dataclasses.replace(
            load_settings(), **{k: v for k, v in overrides.items() if v is not None}
        )
    except ValueError as exc:
        logger.error("Invalid settings: %s", exc)
        return 2

    logger.info(
        "Congresses %s, types %s, min support %d, threshold %.2f",
        ",".join(str(c) for c in settings.congresses),
        ",".join(settings.bill_types),
        settings.min_support,
        settings.threshold,
    )

    try:
        result = run_pipeline(
            settings,
            skip_download=args.skip_download,
            download_only=args.download_only,
        )
    except OSError as exc:
        logger.error("Filesystem error, no map written: %s", exc)
        return 1

    print_summary(result)
    return 0


if __name__ == "__main__":
    sys.exit(main())
