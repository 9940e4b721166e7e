"""Write the cluster map as ``{policyArea: [sorted terms]}`` JSON.

Keys and term lists are both sorted and the file ends with a newline, so
rebuilding from an unchanged cache produces a byte-identical file.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from .cache import write_bytes_atomic
from .clustering import ClusterMap

LOGGER = logging.getLogger(__name__)


def serialize_clusters(clusters: ClusterMap) -> str:
    payload = {policy: sorted(terms) for policy, terms in clusters.items()}
    return json.dumps(payload, indent=2, ensure_ascii=False, sort_keys=True) + "\n"


def write_clusters(clusters: ClusterMap, path: Path) -> Path:
    """Serialize *clusters* to *path*.  ``OSError`` propagates: no map, no run."""
    write_bytes_atomic(path, serialize_clusters(clusters).encode("utf-8"))
    LOGGER.info("Wrote %s (%d policy areas)", path, len(clusters))
    return path
