"""Soft-cluster subject terms around policy areas.

Two passes over the term → policy counts:

1. **Support filter** -- a term seen on fewer than ``min_support`` bills in
   total is dropped; rare CRS terms are mostly noise.
2. **Relative threshold** -- each surviving term links to every policy area
   whose count is at least ``threshold`` × the term's peak count.  A term
   split evenly across areas links to all of them; an incidental pairing
   does not.

Every observed policy area appears in the result, even with no terms.
"""

from __future__ import annotations

import logging
from fractions import Fraction

from .matrix import CooccurrenceMatrix

LOGGER = logging.getLogger(__name__)

ClusterMap = dict[str, set[str]]


def assign_term(policy_counts: dict[str, int], threshold: float) -> set[str]:
    """Policy areas a single term links to.  Ties at the cutoff are included."""
    if not policy_counts:
        return set()
    peak = max(policy_counts.values())
    # Exact rational cutoff: 0.3 * 10 is 3.0000000000000004 in floating point.
    cutoff = Fraction(str(threshold)) * peak
    return {policy for policy, n in policy_counts.items() if n >= cutoff}


def build_clusters(
    matrix: CooccurrenceMatrix, *, min_support: int, threshold: float
) -> ClusterMap:
    clusters: ClusterMap = {policy: set() for policy in matrix.policies}
    dropped = 0
    for term, policy_counts in matrix.by_term().items():
        if sum(policy_counts.values()) < min_support:
            dropped += 1
            continue
        for policy in assign_term(policy_counts, threshold):
            clusters.setdefault(policy, set()).add(term)
    LOGGER.info(
        "Clustered into %d policy areas (%d terms below support %d)",
        len(clusters),
        dropped,
        min_support,
    )
    return clusters
