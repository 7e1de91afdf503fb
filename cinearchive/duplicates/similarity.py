"""
Text similarity primitives for comparing OCR'd pages.

Two Jaccard measures over Unicode text, both in [0, 1] and symmetric:

- token_similarity: word sets after diacritic/case/whitespace normalization.
  Tolerates paraphrased or partially overlapping pages.
- ngram_similarity: character n-gram sets with whitespace removed.
  Favors near-exact repeats where OCR split or merged words differently.

similarity() takes the maximum of the two.
"""

from __future__ import annotations

import re
import unicodedata

DEFAULT_NGRAM_SIZE = 3

# Tokens this short carry no signal (particles, OCR debris)
MIN_TOKEN_LENGTH = 3

_WHITESPACE = re.compile(r"\s+")


def normalize_text(text: str) -> str:
    """Strip combining marks (Arabic harakat included), collapse whitespace, lowercase."""
    stripped = "".join(ch for ch in text if not unicodedata.combining(ch))
    return _WHITESPACE.sub(" ", stripped).strip().lower()


def _jaccard(a: set[str], b: set[str]) -> float:
    if not a or not b:
        return 0.0
    return len(a & b) / len(a | b)


def token_similarity(text1: str, text2: str) -> float:
    """Jaccard similarity over normalized word sets (words of 3+ characters)."""
    if not text1 or not text2:
        return 0.0

    normalized1 = normalize_text(text1)
    normalized2 = normalize_text(text2)

    if normalized1 and normalized1 == normalized2:
        return 1.0

    words1 = {w for w in normalized1.split(" ") if len(w) >= MIN_TOKEN_LENGTH}
    words2 = {w for w in normalized2.split(" ") if len(w) >= MIN_TOKEN_LENGTH}
    return _jaccard(words1, words2)


def ngrams(text: str, n: int = DEFAULT_NGRAM_SIZE) -> set[str]:
    """Set of character n-grams of text with all whitespace removed."""
    if n < 1:
        raise ValueError(f"n must be >= 1, got {n}")
    compact = _WHITESPACE.sub("", text)
    return {compact[i : i + n] for i in range(len(compact) - n + 1)}


def ngram_similarity(text1: str, text2: str, n: int = DEFAULT_NGRAM_SIZE) -> float:
    """Jaccard similarity over character n-gram sets."""
    if not text1 or not text2:
        return 0.0
    return _jaccard(ngrams(text1, n), ngrams(text2, n))


def similarity(text1: str, text2: str, n: int = DEFAULT_NGRAM_SIZE) -> float:
    """Combined page similarity: the better of token and n-gram similarity."""
    return max(token_similarity(text1, text2), ngram_similarity(text1, text2, n))
