"""
Tests for duplicate page detection, removal suggestions and chains.
"""

import pytest

from cinearchive.config import DuplicateConfig
from cinearchive.duplicates import (
    analyze_duplicates,
    classify_similarity,
    detect_duplicate_pages,
    group_duplicate_chains,
    suggest_removals,
)
from cinearchive.models import DuplicateResult, DuplicateTier, PageText

# Twelve words from letters a-p; the extra word shares no trigram with them
BASE_WORDS = "film cine page hold bank lamp deal mild hand gold fame mode"
EXTRA_WORD = "zyxwvutsrq"

ARTICLE = "صدر العدد الجديد من مجلة الكواكب وفيه مقال عن الفيلم المصري"
UNRELATED = "أعلنت شركة الإنتاج عن موعد عرض الرواية السينمائية في القاهرة"


def page(doc_id: str, index: int, text: str) -> PageText:
    return PageText(document_id=doc_id, page_index=index, text=text)


def pair(doc1: str, index1: int, doc2: str, index2: int, score: float = 1.0) -> DuplicateResult:
    return DuplicateResult(
        page_index1=index1,
        page_index2=index2,
        document_id1=doc1,
        document_id2=doc2,
        similarity=score,
        tier=classify_similarity(score) or DuplicateTier.SIMILAR,
    )


class TestClassifySimilarity:
    """Tests for mapping scores to similarity bands."""

    @pytest.mark.parametrize(
        "score,tier",
        [
            (1.0, DuplicateTier.EXACT),
            (0.95, DuplicateTier.EXACT),
            (0.92, DuplicateTier.NEAR_DUPLICATE),
            (0.80, DuplicateTier.NEAR_DUPLICATE),
            (0.65, DuplicateTier.SIMILAR),
            (0.60, DuplicateTier.SIMILAR),
            (0.59, None),
            (0.0, None),
        ],
    )
    def test_default_bands(self, score, tier):
        assert classify_similarity(score) is tier

    def test_custom_bands(self):
        config = DuplicateConfig(
            exact_threshold=0.99, near_duplicate_threshold=0.9, similar_threshold=0.5
        )
        assert classify_similarity(0.95, config) is DuplicateTier.NEAR_DUPLICATE
        assert classify_similarity(0.5, config) is DuplicateTier.SIMILAR


class TestDetectDuplicatePages:
    """Tests for pairwise page comparison."""

    def test_near_duplicate_pair(self):
        pages = [page("a", 1, BASE_WORDS), page("b", 2, f"{BASE_WORDS} {EXTRA_WORD}")]
        duplicates = detect_duplicate_pages(pages)

        assert len(duplicates) == 1
        assert duplicates[0].similarity == pytest.approx(12 / 13)
        assert duplicates[0].tier is DuplicateTier.NEAR_DUPLICATE

    def test_exact_copy(self):
        duplicates = detect_duplicate_pages([page("a", 1, ARTICLE), page("b", 2, ARTICLE)])
        assert duplicates[0].tier is DuplicateTier.EXACT
        assert duplicates[0].similarity == 1.0

    def test_unrelated_pages_not_reported(self):
        assert detect_duplicate_pages([page("a", 1, ARTICLE), page("b", 2, UNRELATED)]) == []

    def test_empty_pages_skipped(self):
        pages = [page("a", 1, ""), page("b", 2, "   "), page("c", 3, ARTICLE)]
        assert detect_duplicate_pages(pages) == []

    def test_pairs_ordered_by_page(self):
        duplicates = detect_duplicate_pages([page("a", 1, ARTICLE), page("b", 2, ARTICLE)])
        assert (duplicates[0].page_index1, duplicates[0].page_index2) == (1, 2)
        assert (duplicates[0].document_id1, duplicates[0].document_id2) == ("a", "b")

    def test_sorted_by_similarity_descending(self):
        pages = [
            page("a", 1, BASE_WORDS),
            page("b", 2, f"{BASE_WORDS} {EXTRA_WORD}"),
            page("c", 3, BASE_WORDS),
        ]
        scores = [d.similarity for d in detect_duplicate_pages(pages)]
        assert scores == sorted(scores, reverse=True)
        assert scores[0] == 1.0


class TestSuggestRemovals:
    """Tests for keep-first removal suggestions."""

    def test_single_pair_removes_second(self):
        assert suggest_removals([pair("a", 1, "b", 2)]) == ["b"]

    def test_three_way_duplicate_keeps_first(self):
        duplicates = [pair("a", 1, "b", 2), pair("a", 1, "c", 3), pair("b", 2, "c", 3)]
        assert suggest_removals(duplicates) == ["b", "c"]

    def test_kept_page_never_removed(self):
        """Once a page is kept by an earlier pair it survives later pairs."""
        duplicates = [pair("b", 2, "c", 3), pair("a", 1, "b", 2)]
        assert suggest_removals(duplicates) == ["c"]

    def test_pairs_walked_in_given_order(self):
        """Neither page order nor similarity reorders the pairs."""
        duplicates = [pair("a", 1, "b", 2, 0.7), pair("b", 2, "c", 3, 0.99)]
        assert suggest_removals(duplicates) == ["b", "c"]
        assert suggest_removals(list(reversed(duplicates))) == ["c"]

    def test_no_duplicates(self):
        assert suggest_removals([]) == []


class TestGroupDuplicateChains:
    """Tests for grouping linked pages."""

    def test_three_mutual_duplicates_form_one_chain(self):
        duplicates = [pair("a", 1, "b", 2), pair("a", 1, "c", 3), pair("b", 2, "c", 3)]
        assert group_duplicate_chains(duplicates) == [["a", "b", "c"]]

    def test_separate_chains(self):
        duplicates = [pair("a", 1, "b", 2), pair("c", 3, "d", 4)]
        assert group_duplicate_chains(duplicates) == [["a", "b"], ["c", "d"]]

    def test_chains_merge_through_later_pair(self):
        """Two chains joined by a later pair become one."""
        duplicates = [pair("a", 1, "b", 2), pair("c", 3, "d", 4), pair("b", 2, "d", 4)]
        assert group_duplicate_chains(duplicates) == [["a", "b", "c", "d"]]

    def test_no_duplicates(self):
        assert group_duplicate_chains([]) == []


class TestAnalyzeDuplicates:
    """Tests for the full duplicate report."""

    def test_three_similar_pages(self):
        pages = [page("a", 1, ARTICLE), page("b", 2, ARTICLE), page("c", 3, ARTICLE)]
        report = analyze_duplicates(pages)

        assert len(report.duplicates) == 3
        assert len(report.chains) == 1
        assert sorted(report.chains[0]) == ["a", "b", "c"]
        assert len(report.suggested_removals) == 2
        assert "a" not in report.suggested_removals

    def test_removals_use_generation_order(self):
        """The most similar pair (b, c) comes first in the report but not in removal."""
        pages = [
            page("a", 1, f"{BASE_WORDS} {EXTRA_WORD}"),
            page("b", 2, BASE_WORDS),
            page("c", 3, BASE_WORDS),
        ]
        report = analyze_duplicates(pages)

        assert (report.duplicates[0].document_id1, report.duplicates[0].document_id2) == ("b", "c")
        assert report.suggested_removals == ["b", "c"]

    def test_fewer_than_two_pages(self):
        report = analyze_duplicates([page("a", 1, ARTICLE)])
        assert report.duplicates == []
        assert report.suggested_removals == []
        assert report.chains == []

    def test_to_dict(self):
        report = analyze_duplicates([page("a", 1, ARTICLE), page("b", 2, ARTICLE)])
        data = report.to_dict()

        assert data["suggestedRemovals"] == ["b"]
        assert data["duplicateChains"] == [["a", "b"]]
        assert data["duplicates"][0]["type"] == "exact"
        assert data["duplicates"][0]["pageIndex1"] == 1
