"""
Duplicate page detection.

- similarity: token-set and character n-gram Jaccard similarity
- detector: pairwise page comparison, removal suggestions and chain grouping
"""

from cinearchive.duplicates.detector import (
    analyze_duplicates,
    classify_similarity,
    detect_duplicate_pages,
    group_duplicate_chains,
    suggest_removals,
)
from cinearchive.duplicates.similarity import (
    DEFAULT_NGRAM_SIZE,
    ngram_similarity,
    ngrams,
    normalize_text,
    similarity,
    token_similarity,
)

__all__ = [
    # Similarity
    "similarity",
    "token_similarity",
    "ngram_similarity",
    "ngrams",
    "normalize_text",
    "DEFAULT_NGRAM_SIZE",
    # Detection
    "detect_duplicate_pages",
    "classify_similarity",
    "suggest_removals",
    "group_duplicate_chains",
    "analyze_duplicates",
]
