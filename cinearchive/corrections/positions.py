"""
Locate a claimed substring in the source text.

The correction service reports where each word it wants to fix sits, but
its character counts are unreliable (especially for right-to-left text
laid out in columns). resolve_position() finds where the word really is,
trying progressively wider searches around the claimed span.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from cinearchive.models import Span

logger = logging.getLogger(__name__)

# Markers of contact details printed on scans (removed, never corrected)
EMAIL_URL_MARKERS = ("@", "www.", "http")

ANCHOR_RADIUS = 100
ANCHOR_TOLERANCE = 200
SEARCH_RADIUS = 500


def looks_like_email_or_url(text: str) -> bool:
    return any(marker in text for marker in EMAIL_URL_MARKERS)


@dataclass(frozen=True)
class ResolvedPosition:
    """Where a word was found. found=False means the span is just the claim."""

    span: Span
    found: bool
    method: str  # "anchored", "claimed", "window", "window_casefold", "pattern", "global", "none"


def _found(word: str, start: int, end: int, method: str) -> ResolvedPosition:
    logger.debug('Located "%s" at %d-%d (%s)', word, start, end, method)
    return ResolvedPosition(Span(start, end), True, method)


def _clamped_span(start: int, end: int, length: int) -> Span:
    start = min(max(start, 0), length)
    end = min(max(end, start), length)
    return Span(start, end)


def resolve_position(
    text: str,
    word: str,
    start: int,
    end: int,
    anchor_radius: int = ANCHOR_RADIUS,
    anchor_tolerance: int = ANCHOR_TOLERANCE,
    search_radius: int = SEARCH_RADIUS,
) -> ResolvedPosition:
    """
    Find the true span of word in text, starting from a claimed [start, end).

    Strategies, first success wins:
        1. The claimed span holds the word: snap to its exact bounds nearby.
        2. Exact match within search_radius of the claim.
        3. Case-insensitive match in the same window.
        4. Escaped literal pattern match for emails/URLs.
        5. Exact match anywhere in the text.

    Args:
        text: Source text the offsets refer to.
        word: Substring the service claims is there.
        start: Claimed start offset.
        end: Claimed end offset (exclusive).

    Returns:
        ResolvedPosition. When nothing matches, the clamped claimed span with
        found=False; callers must treat that as a rejection.
    """
    claimed = _clamped_span(start, end, len(text))
    word = word.strip()
    if not word:
        return ResolvedPosition(claimed, False, "none")

    # 1. Claimed span holds the word
    at_claim = text[claimed.start : claimed.end].strip()
    if at_claim == word or word in at_claim:
        anchored = text.find(word, max(0, claimed.start - anchor_radius))
        if anchored != -1 and abs(anchored - claimed.start) < anchor_tolerance:
            return _found(word, anchored, anchored + len(word), "anchored")
        if at_claim == word:
            return _found(word, claimed.start, claimed.end, "claimed")

    window_start = max(0, claimed.start - search_radius)
    window_end = min(len(text), claimed.end + search_radius)
    window = text[window_start:window_end]

    # 2. Exact match near the claim
    index = window.find(word)
    if index != -1:
        begin = window_start + index
        return _found(word, begin, begin + len(word), "window")

    # 3. Case-insensitive (services normalize case in emails/URLs).
    # lower() can change string length for a few scripts, so only trust
    # a hit whose length is preserved.
    lowered_window = window.lower()
    lowered_word = word.lower()
    if len(lowered_window) == len(window) and len(lowered_word) == len(word):
        index = lowered_window.find(lowered_word)
        if index != -1:
            begin = window_start + index
            return _found(word, begin, begin + len(word), "window_casefold")

    # 4. Literal pattern for emails/URLs
    if looks_like_email_or_url(word):
        match = re.search(re.escape(word), window, re.IGNORECASE)
        if match:
            begin = window_start + match.start()
            return _found(word, begin, window_start + match.end(), "pattern")

    # 5. Anywhere in the text
    index = text.find(word)
    if index != -1:
        return _found(word, index, index + len(word), "global")

    logger.debug('Could not locate "%s" near %d-%d', word, start, end)
    return ResolvedPosition(claimed, False, "none")
