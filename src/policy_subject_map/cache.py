"""On-disk BILLSTATUS cache: ``{data_dir}/{congress}/{bill_type}/{basename}``.

A file's presence is the only resumability signal, so every write goes to a
temporary sibling first and is moved into place with ``os.replace``.  An
interrupted run can leave a stray ``*.part`` file but never a truncated XML.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable, Iterator
from pathlib import Path

LOGGER = logging.getLogger(__name__)

_PART_SUFFIX = ".part"


def write_bytes_atomic(path: Path, data: bytes) -> None:
    """Write *data* to *path* so readers see either nothing or the full file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(path.name + _PART_SUFFIX)
    try:
        tmp.write_bytes(data)
        os.replace(tmp, path)
    except OSError:
        tmp.unlink(missing_ok=True)
        raise


def is_cached(path: Path) -> bool:
    return path.is_file()


def iter_cached_documents(data_dir: Path, congresses: Iterable[int]) -> Iterator[Path]:
    """Yield every cached XML for *congresses*, sorted for a stable build order."""
    for congress in congresses:
        congress_dir = data_dir / str(congress)
        if not congress_dir.is_dir():
            LOGGER.warning("No cache directory for congress %s at %s", congress, congress_dir)
            continue
        yield from sorted(p for p in congress_dir.rglob("*.xml") if p.is_file())
