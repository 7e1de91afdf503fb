"""
Duplicate page detection for collections.

Magazine scans are often uploaded more than once, or the same article is
reprinted on another page. This module compares every page of a collection
against every other page and reports the pairs that are (near-)copies.

Pairwise comparison is O(n^2). Collections are bounded by page count
(tens of pages), so this is acceptable; it is not meant for whole archives.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from cinearchive.config import DuplicateConfig
from cinearchive.duplicates.similarity import similarity
from cinearchive.models import DuplicateReport, DuplicateResult, DuplicateTier, PageText

logger = logging.getLogger(__name__)


def classify_similarity(score: float, config: DuplicateConfig | None = None) -> DuplicateTier | None:
    """Map a similarity score to its band, or None below the similar threshold."""
    config = config or DuplicateConfig()
    if score >= config.exact_threshold:
        return DuplicateTier.EXACT
    if score >= config.near_duplicate_threshold:
        return DuplicateTier.NEAR_DUPLICATE
    if score >= config.similar_threshold:
        return DuplicateTier.SIMILAR
    return None


def _compare_pages(pages: Sequence[PageText], config: DuplicateConfig) -> list[DuplicateResult]:
    """Reportable pairs (i < j) in generation order."""
    candidates = [page for page in pages if page.text and page.text.strip()]
    skipped = len(pages) - len(candidates)
    if skipped:
        logger.debug("Skipping %d page(s) with no text", skipped)

    logger.debug(
        "Comparing %d pages (%d pairs)",
        len(candidates),
        len(candidates) * (len(candidates) - 1) // 2,
    )

    duplicates: list[DuplicateResult] = []
    for i, page1 in enumerate(candidates):
        for page2 in candidates[i + 1 :]:
            score = similarity(page1.text, page2.text, config.ngram_size)
            tier = classify_similarity(score, config)
            if tier is None:
                continue
            duplicates.append(
                DuplicateResult(
                    page_index1=page1.page_index,
                    page_index2=page2.page_index,
                    document_id1=page1.document_id,
                    document_id2=page2.document_id,
                    similarity=score,
                    tier=tier,
                )
            )

    return duplicates


def _by_similarity(duplicates: list[DuplicateResult]) -> list[DuplicateResult]:
    # Stable sort: equal scores keep generation order
    return sorted(duplicates, key=lambda d: d.similarity, reverse=True)


def detect_duplicate_pages(
    pages: Sequence[PageText],
    config: DuplicateConfig | None = None,
) -> list[DuplicateResult]:
    """
    Find all pairs of pages similar enough to report.

    Args:
        pages: Pages of one collection, in page order.
        config: Similarity bands (uses defaults if None).

    Returns:
        Pairs (i < j) sorted by similarity, highest first. Pages without
        text are never compared.
    """
    return _by_similarity(_compare_pages(pages, config or DuplicateConfig()))


def suggest_removals(duplicates: Sequence[DuplicateResult]) -> list[str]:
    """
    Suggest document ids to remove, keeping the first occurrence of each page.

    Pairs are walked in the order given, not by similarity. The first page
    of a pair is kept unless it is already marked for removal; the second is
    marked for removal unless it is already kept. A kept page is never
    removed by a later pair.

    Note: walking pairs in generation order can keep a lower-quality scan
    over a better one.
    """
    kept: set[str] = set()
    to_remove: dict[str, None] = {}  # insertion-ordered set

    for dup in duplicates:
        if dup.document_id1 not in to_remove and dup.document_id1 not in kept:
            kept.add(dup.document_id1)
        if dup.document_id2 not in kept:
            to_remove[dup.document_id2] = None

    return list(to_remove)


def group_duplicate_chains(duplicates: Sequence[DuplicateResult]) -> list[list[str]]:
    """
    Group document ids into chains of pages that are all linked as duplicates.

    Union-find over the pairs; a chain is a connected component. Chains and
    their members are listed in order of first appearance.
    """
    parent: dict[str, str] = {}

    def find(node: str) -> str:
        root = node
        while parent[root] != root:
            root = parent[root]
        while parent[node] != root:
            parent[node], node = root, parent[node]
        return root

    for dup in duplicates:
        for doc_id in (dup.document_id1, dup.document_id2):
            parent.setdefault(doc_id, doc_id)
        root1, root2 = find(dup.document_id1), find(dup.document_id2)
        if root1 != root2:
            parent[root2] = root1

    chains: dict[str, list[str]] = {}
    for doc_id in parent:  # dicts keep first-appearance order
        chains.setdefault(find(doc_id), []).append(doc_id)
    return list(chains.values())


def analyze_duplicates(
    pages: Sequence[PageText],
    config: DuplicateConfig | None = None,
) -> DuplicateReport:
    """
    Run the full duplicate check for a collection.

    Returns:
        DuplicateReport with the pairs, suggested removals and chains.
        Collections with fewer than two pages get an empty report.
    """
    if len(pages) < 2:
        logger.info("Not enough pages to check for duplicates (%d)", len(pages))
        return DuplicateReport()

    generated = _compare_pages(pages, config or DuplicateConfig())
    report = DuplicateReport(
        duplicates=_by_similarity(generated),
        suggested_removals=suggest_removals(generated),
        chains=group_duplicate_chains(generated),
    )
    logger.info(
        "Found %d duplicate pair(s) in %d pages, %d suggested removal(s)",
        len(report.duplicates),
        len(pages),
        len(report.suggested_removals),
    )
    return report
