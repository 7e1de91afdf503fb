"""
Validation of proposed corrections against the source text.

Nothing the correction service says is trusted: each proposed correction
must clear a confidence gate, carry a real change, and be found at a
verified position in the text before a reviewer ever sees it.

Rules:
- confidence >= threshold (inclusive)
- original must be non-blank; original != replacement unless deleting
- emails/URLs may only be deleted, and only where one is actually printed
- other corrections need a non-empty replacement that differs
- source[span] == original after position resolution
- spans of accepted corrections never overlap
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any

from cinearchive.config import DetectionConfig
from cinearchive.corrections.positions import looks_like_email_or_url, resolve_position
from cinearchive.models import (
    Correction,
    CorrectionKind,
    FormattingChange,
    FormattingKind,
    RejectionReason,
    ReviewStatus,
    Span,
    ValidationOutcome,
    ValidationStats,
)

logger = logging.getLogger(__name__)


@dataclass
class ValidationReport:
    """Accepted suggestions plus the verdict on every proposed correction."""

    corrections: list[Correction] = field(default_factory=list)
    formatting_changes: list[FormattingChange] = field(default_factory=list)
    outcomes: list[ValidationOutcome] = field(default_factory=list)
    stats: ValidationStats = field(default_factory=ValidationStats)


def coerce_float(value: Any, default: float = 0.0) -> float:
    if isinstance(value, bool):
        return default
    try:
        result = float(value)
    except (TypeError, ValueError):
        return default
    return default if math.isnan(result) else result


def _as_int(value: Any, default: int = 0) -> int:
    if isinstance(value, bool):
        return default
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return default


def _as_text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def _claimed_span(position: Any, word_length: int, text_length: int) -> tuple[int, int, Span]:
    """Claimed offsets as sent, and the same span clamped into the text."""
    position = position if isinstance(position, dict) else {}
    start = _as_int(position.get("start")) or 0
    end = _as_int(position.get("end")) or start + word_length
    clamped_start = min(max(start, 0), text_length)
    clamped_end = min(max(end, clamped_start), text_length)
    return start, end, Span(clamped_start, clamped_end)


def _unique_id(preferred: str, index: int, used: set[str]) -> str:
    """preferred, or correction_{index} (suffixed if needed) when already taken."""
    if preferred not in used:
        return preferred
    candidate = f"correction_{index}"
    suffix = 1
    while candidate in used:
        candidate = f"correction_{index}_{suffix}"
        suffix += 1
    logger.debug("Duplicate correction id %r renamed to %r", preferred, candidate)
    return candidate


def texts_are_close(found: str, original: str, length_tolerance: int = 3) -> bool:
    """Equal, one contains the other, or both longer than 2 chars with similar length."""
    if found == original or original in found or (found and found in original):
        return True
    return (
        len(found) > 2
        and len(original) > 2
        and abs(len(found) - len(original)) <= length_tolerance
    )


class CorrectionValidator:
    """
    Accepts or rejects each correction proposed by the service.

    Example:
        >>> validator = CorrectionValidator(DetectionConfig())
        >>> report = validator.validate(payload, page_text)
        >>> [c.original for c in report.corrections]
        ['الفلم']
    """

    def __init__(self, config: DetectionConfig | None = None) -> None:
        self.config = config or DetectionConfig()

    def validate(self, payload: dict[str, Any], source_text: str) -> ValidationReport:
        """
        Validate a repaired service payload against the text it describes.

        Args:
            payload: Output of repair_response().
            source_text: The exact text submitted to the service.

        Returns:
            ValidationReport with accepted corrections (status pending, in
            proposal order) and normalized formatting changes.
        """
        report = ValidationReport()

        proposed = payload.get("corrections")
        if not isinstance(proposed, list):
            proposed = []

        accepted_spans: list[Span] = []
        used_ids: set[str] = set()
        for index, item in enumerate(proposed):
            if not isinstance(item, dict):
                logger.debug("Skipping malformed correction entry %d: %r", index, item)
                continue
            report.stats.proposed += 1
            outcome = self._validate_one(item, index, source_text, accepted_spans)
            report.outcomes.append(outcome)
            report.stats.record(outcome)
            if outcome.accepted:
                outcome.correction.id = _unique_id(outcome.correction.id, index, used_ids)
                used_ids.add(outcome.correction.id)
                accepted_spans.append(outcome.resolved_span)
                report.corrections.append(outcome.correction)

        report.formatting_changes = normalize_formatting_changes(
            payload.get("formattingChanges"), len(source_text)
        )

        if report.stats.rejected_total:
            logger.info(
                "Accepted %d of %d proposed correction(s); rejected %s",
                report.stats.accepted,
                report.stats.proposed,
                report.stats.rejected,
            )
        return report

    def _validate_one(
        self,
        item: dict[str, Any],
        index: int,
        text: str,
        accepted_spans: list[Span],
    ) -> ValidationOutcome:
        original = _as_text(item.get("original"))
        replacement = _as_text(item.get("corrected"))
        confidence = coerce_float(item.get("confidence"))
        start, end, claimed = _claimed_span(item.get("position"), len(original), len(text))

        correction = Correction(
            id=str(item.get("id") or f"correction_{index}"),
            kind=CorrectionKind.parse(item.get("type")),
            original=original,
            replacement=replacement,
            reason=str(item.get("reason") or ""),
            span=claimed,
            confidence=min(max(confidence, 0.0), 1.0),
            status=ReviewStatus.PENDING,
        )

        def reject(
            reason: RejectionReason, span: Span = claimed, found: bool = False
        ) -> ValidationOutcome:
            return ValidationOutcome(
                correction=correction,
                resolved_span=span,
                found_text=text[span.start : span.end],
                position_found=found,
                accepted=False,
                rejection=reason,
            )

        if confidence < self.config.confidence_threshold:
            logger.debug(
                "Correction %s below confidence threshold (%.3f < %.3f)",
                correction.id,
                confidence,
                self.config.confidence_threshold,
            )
            return reject(RejectionReason.BELOW_CONFIDENCE)

        if not original:
            return reject(RejectionReason.MISSING_ORIGINAL)

        if replacement and replacement == original:
            return reject(RejectionReason.NO_CHANGE)

        resolved = resolve_position(
            text,
            original,
            start,
            end,
            anchor_radius=self.config.anchor_radius,
            anchor_tolerance=self.config.anchor_tolerance,
            search_radius=self.config.search_radius,
        )
        span = resolved.span
        found_text = text[span.start : span.end].strip()

        if looks_like_email_or_url(original):
            if not looks_like_email_or_url(found_text):
                logger.warning(
                    'Email/URL "%s" detected but text at position is "%s". Rejecting.',
                    original,
                    found_text,
                )
                return reject(RejectionReason.EMAIL_MISMATCH, span, resolved.found)
            lower_original, lower_found = original.lower(), found_text.lower()
            if lower_original not in lower_found and lower_found not in lower_original:
                logger.warning(
                    'Email/URL "%s" doesn\'t match text "%s". Rejecting.', original, found_text
                )
                return reject(RejectionReason.EMAIL_MISMATCH, span, resolved.found)
            if replacement:
                logger.warning(
                    'Email/URL "%s" must be removed, not replaced with "%s". Rejecting.',
                    original,
                    replacement,
                )
                return reject(RejectionReason.EMAIL_NOT_REMOVED, span, resolved.found)
        else:
            if not replacement:
                logger.warning('No meaningful correction provided for "%s". Rejecting.', original)
                return reject(RejectionReason.NO_CHANGE, span, resolved.found)
            if not resolved.found and not texts_are_close(
                found_text, original, self.config.length_tolerance
            ):
                logger.warning(
                    'Word "%s" doesn\'t match text "%s" at position. Rejecting.',
                    original,
                    found_text,
                )
                return reject(RejectionReason.POSITION_MISMATCH, span, resolved.found)

        # Nothing reaches a reviewer without source[span] == original
        at_span = text[span.start : span.end]
        if not resolved.found or at_span.lower() != original.lower():
            logger.warning('Could not verify "%s" in the source text. Rejecting.', original)
            return reject(RejectionReason.UNVERIFIED_POSITION, span, resolved.found)
        if at_span != original:
            logger.debug('Using source casing "%s" for "%s"', at_span, original)
            correction.original = at_span

        if any(span.overlaps(other) for other in accepted_spans):
            logger.warning(
                'Correction for "%s" at %d-%d overlaps an accepted correction. Rejecting.',
                original,
                span.start,
                span.end,
            )
            return reject(RejectionReason.OVERLAPPING_SPAN, span, resolved.found)

        if (start, end) != (span.start, span.end):
            logger.debug(
                'Relocated "%s" from %d-%d to %d-%d (%s)',
                original,
                start,
                end,
                span.start,
                span.end,
                resolved.method,
            )
        correction.span = span
        return ValidationOutcome(
            correction=correction,
            resolved_span=span,
            found_text=at_span,
            position_found=True,
            accepted=True,
        )


def normalize_formatting_changes(items: Any, text_length: int) -> list[FormattingChange]:
    """Turn service formatting suggestions into FormattingChange objects."""
    if not isinstance(items, list):
        return []

    changes = []
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            continue
        position = item.get("position") if isinstance(item.get("position"), dict) else {}
        start = min(max(_as_int(position.get("start")), 0), text_length)
        end = min(max(_as_int(position.get("end")), start), text_length)
        changes.append(
            FormattingChange(
                id=str(item.get("id") or f"fmt_{index}"),
                kind=FormattingKind.parse(item.get("type")),
                text=str(item.get("text") or ""),
                span=Span(start, end),
                suggestion=str(item.get("suggestion") or ""),
                status=ReviewStatus.PENDING,
            )
        )
    return changes
