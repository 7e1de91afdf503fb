"""
Apply reviewed corrections to the source text.

Corrections are spliced right to left: an edit never moves the offsets of
text to its left, so applying from the end backwards needs no offset
bookkeeping and the input order does not matter.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from cinearchive.models import Correction

logger = logging.getLogger(__name__)


def select_applicable(corrections: Iterable[Correction]) -> list[Correction]:
    """Approved and deleted corrections, rightmost first."""
    selected = [c for c in corrections if c.status.is_applied]
    return sorted(selected, key=lambda c: (c.span.start, c.span.end), reverse=True)


def apply_corrections(text: str, corrections: Iterable[Correction]) -> str:
    """
    Rewrite text with the corrections a reviewer approved or deleted.

    Spans must refer to this exact text and must not overlap; the
    validator guarantees both for corrections it produced. A correction
    that breaks either precondition is skipped with a warning.

    Args:
        text: Source text the spans were validated against.
        corrections: Corrections with any status; only approved and
            deleted ones are applied.

    Returns:
        The rewritten text.
    """
    result = text
    leftmost_applied = len(text)

    for correction in select_applicable(corrections):
        span = correction.span
        if span.end > len(text):
            logger.warning(
                "Skipping correction %s: span %d-%d is past the end of the text (%d chars)",
                correction.id,
                span.start,
                span.end,
                len(text),
            )
            continue
        if span.end > leftmost_applied:
            logger.warning(
                "Skipping correction %s: span %d-%d overlaps an applied correction",
                correction.id,
                span.start,
                span.end,
            )
            continue

        result = result[: span.start] + correction.replacement + result[span.end :]
        leftmost_applied = span.start

    return result
