"""Policy-area × subject-term co-occurrence counts over the XML cache.

Counts live in one store keyed by ``(policy, term)``; the two lookup views
(``by_policy`` and ``by_term``) are derived from it on demand, so they can
never disagree.  Every document contributes at most 1 to a given pair
because its terms are collected into a set first.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable
from pathlib import Path

from .cache import iter_cached_documents
from .document import parse_document
from .models import BuildStats
from .terms import extract_policy_area, extract_subject_terms

LOGGER = logging.getLogger(__name__)


class CooccurrenceMatrix:
    def __init__(self) -> None:
        self._counts: Counter[tuple[str, str]] = Counter()
        # Insertion-ordered; a policy area is recorded even if it never gains a term.
        self._policies: dict[str, None] = {}

    def add_document(self, policy: str, terms: Iterable[str]) -> int:
        """Count one document; returns the number of distinct terms added."""
        self._policies.setdefault(policy, None)
        unique = set(terms)
        for term in unique:
            self._counts[(policy, term)] += 1
        return len(unique)

    @property
    def policies(self) -> list[str]:
        return list(self._policies)

    def count(self, policy: str, term: str) -> int:
        return self._counts.get((policy, term), 0)

    def triples(self) -> list[tuple[str, str, int]]:
        return [(p, t, c) for (p, t), c in self._counts.items()]

    def by_policy(self) -> dict[str, dict[str, int]]:
        view: dict[str, dict[str, int]] = {p: {} for p in self._policies}
        for (policy, term), n in self._counts.items():
            view[policy][term] = n
        return view

    def by_term(self) -> dict[str, dict[str, int]]:
        view: dict[str, dict[str, int]] = {}
        for (policy, term), n in self._counts.items():
            view.setdefault(term, {})[policy] = n
        return view

    def __len__(self) -> int:
        return len(self._counts)


def accumulate_document(matrix: CooccurrenceMatrix, markup: bytes, stats: BuildStats) -> None:
    """Parse one BILLSTATUS document and fold it into *matrix*."""
    root = parse_document(markup)
    policy = extract_policy_area(root)
    if policy is None:
        stats.missing_policy += 1
        return
    terms = extract_subject_terms(root)
    if not terms:
        stats.empty_terms += 1
        return
    stats.term_hits += matrix.add_document(policy, terms)
    stats.files_contributing += 1


def build_matrix(paths: Iterable[Path]) -> tuple[CooccurrenceMatrix, BuildStats]:
    """Stream *paths* through the parser; a bad file is skipped, never fatal."""
    matrix = CooccurrenceMatrix()
    stats = BuildStats()
    for path in paths:
        stats.files_parsed += 1
        try:
            accumulate_document(matrix, path.read_bytes(), stats)
        except Exception as exc:
            LOGGER.debug("Skipping malformed document %s: %s", path, exc)
            stats.malformed += 1
    LOGGER.info(
        "Parsed %d files, %d contributed terms, harvested %d term-hits",
        stats.files_parsed,
        stats.files_contributing,
        stats.term_hits,
    )
    return matrix, stats


def build_matrix_from_cache(
    data_dir: Path, congresses: Iterable[int]
) -> tuple[CooccurrenceMatrix, BuildStats]:
    return build_matrix(iter_cached_documents(data_dir, congresses))
