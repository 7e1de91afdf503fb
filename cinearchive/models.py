"""
Data models for CineArchive.

These models represent corrections proposed for a page of OCR text, the
validated result of a detection run, and duplicate page matches.

Offsets are character offsets into a specific text snapshot. Once the
applier has rewritten a text, spans recorded against the old snapshot
are no longer meaningful.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from cinearchive.exceptions import InvalidCorrectionError

# =============================================================================
# SPANS
# =============================================================================


@dataclass(frozen=True)
class Span:
    """Half-open character range [start, end) into a text."""

    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start < 0:
            raise ValueError(f"start must be >= 0, got {self.start}")
        if self.end < self.start:
            raise ValueError(f"end ({self.end}) must be >= start ({self.start})")

    def __len__(self) -> int:
        return self.end - self.start

    def contains(self, position: int) -> bool:
        """Check if position falls inside the span (end exclusive)."""
        return self.start <= position < self.end

    def overlaps(self, other: Span) -> bool:
        """Check if two spans share at least one character. Adjacent spans don't."""
        return self.start < other.end and other.start < self.end

    def to_dict(self) -> dict[str, int]:
        return {"start": self.start, "end": self.end}


# =============================================================================
# ENUMS
# =============================================================================


class CorrectionKind(Enum):
    """What kind of error a correction fixes."""

    OCR_ERROR = "ocr_error"
    SPELLING = "spelling"
    FORMATTING = "formatting"

    @classmethod
    def parse(cls, value: Any) -> CorrectionKind:
        """Parse a service-supplied kind, defaulting to OCR_ERROR."""
        try:
            return cls(value)
        except ValueError:
            return cls.OCR_ERROR


class FormattingKind(Enum):
    """Structural role suggested for a stretch of text."""

    TITLE = "title"
    PARAGRAPH = "paragraph"
    QUOTE = "quote"
    SECTION_BREAK = "section_break"

    @classmethod
    def parse(cls, value: Any) -> FormattingKind:
        """Parse a service-supplied kind, defaulting to PARAGRAPH."""
        if isinstance(value, str):
            value = value.replace("-", "_")
        try:
            return cls(value)
        except ValueError:
            return cls.PARAGRAPH


class ReviewStatus(Enum):
    """Reviewer decision on a suggestion."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    DELETED = "deleted"

    @property
    def is_applied(self) -> bool:
        """Whether the applier acts on suggestions with this status."""
        return self in (ReviewStatus.APPROVED, ReviewStatus.DELETED)


class RejectionReason(Enum):
    """Why the validator discarded a proposed correction."""

    BELOW_CONFIDENCE = "below_confidence"
    MISSING_ORIGINAL = "missing_original"
    NO_CHANGE = "no_change"
    POSITION_MISMATCH = "position_mismatch"
    EMAIL_MISMATCH = "email_mismatch"
    EMAIL_NOT_REMOVED = "email_not_removed"
    UNVERIFIED_POSITION = "unverified_position"
    OVERLAPPING_SPAN = "overlapping_span"


class RepairStrategy(Enum):
    """Which rung of the repair ladder produced a payload."""

    STRICT = "strict"
    TRIMMED = "trimmed"
    CLOSED = "closed"
    CORRECTIONS_ONLY = "corrections_only"
    EMPTY = "empty"


class DuplicateTier(Enum):
    """Similarity band of a duplicate page pair."""

    EXACT = "exact"
    NEAR_DUPLICATE = "near_duplicate"
    SIMILAR = "similar"


# =============================================================================
# CORRECTIONS
# =============================================================================


def _span_from_dict(data: Any) -> Span:
    data = data if isinstance(data, dict) else {}
    try:
        start = max(int(data.get("start") or 0), 0)
        end = max(int(data.get("end") or 0), start)
    except (TypeError, ValueError) as e:
        raise InvalidCorrectionError(f"Invalid position {data!r}") from e
    return Span(start, end)


def _review_fields(data: Any, kind: str) -> tuple[str, ReviewStatus]:
    """Validate the id and status every reviewed entry must carry."""
    if not isinstance(data, dict):
        raise InvalidCorrectionError(f"{kind} entry must be a mapping, got {type(data).__name__}")
    if data.get("id") in (None, ""):
        raise InvalidCorrectionError(f"{kind} entry has no id")
    try:
        status = ReviewStatus(data.get("status") or "pending")
    except ValueError as e:
        raise InvalidCorrectionError(
            f"{kind} {data['id']}: unknown status {data.get('status')!r}"
        ) from e
    return str(data["id"]), status


@dataclass
class Correction:
    """
    A single proposed or confirmed text edit.

    An empty replacement is a deletion (e.g. removing an email address
    that was printed on the scanned page).
    """

    id: str
    kind: CorrectionKind
    original: str
    replacement: str
    reason: str
    span: Span
    confidence: float
    status: ReviewStatus = ReviewStatus.PENDING

    @property
    def is_deletion(self) -> bool:
        return self.replacement == ""

    def to_dict(self) -> dict[str, Any]:
        """Serialize using the correction service's field names."""
        return {
            "id": self.id,
            "type": self.kind.value,
            "original": self.original,
            "corrected": self.replacement,
            "reason": self.reason,
            "position": self.span.to_dict(),
            "confidence": self.confidence,
            "status": self.status.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Correction:
        """
        Rebuild a reviewed correction handed back by the review layer.

        A missing or null confidence reads as 0.0.

        Raises:
            InvalidCorrectionError: If the entry has no id, an unknown status
                or a non-numeric confidence or position.
        """
        correction_id, status = _review_fields(data, "Correction")
        try:
            confidence = float(data.get("confidence") or 0.0)
        except (TypeError, ValueError) as e:
            raise InvalidCorrectionError(
                f"Correction {correction_id}: invalid confidence {data.get('confidence')!r}"
            ) from e
        return cls(
            id=correction_id,
            kind=CorrectionKind.parse(data.get("type")),
            original=data.get("original") or "",
            replacement=data.get("corrected") or "",
            reason=data.get("reason") or "",
            span=_span_from_dict(data.get("position")),
            confidence=confidence,
            status=status,
        )


@dataclass
class FormattingChange:
    """Advisory structural annotation. Never rewrites text."""

    id: str
    kind: FormattingKind
    text: str
    span: Span
    suggestion: str = ""
    status: ReviewStatus = ReviewStatus.PENDING

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.kind.value,
            "text": self.text,
            "position": self.span.to_dict(),
            "suggestion": self.suggestion,
            "status": self.status.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FormattingChange:
        change_id, status = _review_fields(data, "Formatting change")
        return cls(
            id=change_id,
            kind=FormattingKind.parse(data.get("type")),
            text=data.get("text", ""),
            span=_span_from_dict(data.get("position")),
            suggestion=data.get("suggestion", ""),
            status=status,
        )


@dataclass(frozen=True)
class RawPayload:
    """
    Untrusted text returned by the correction service.

    Nothing reads fields out of this directly; it must go through
    repair_response() and CorrectionValidator first.
    """

    text: str

    def __bool__(self) -> bool:
        return bool(self.text and self.text.strip())


@dataclass
class ValidationOutcome:
    """Validator verdict on one proposed correction."""

    correction: Correction
    resolved_span: Span
    found_text: str
    position_found: bool
    accepted: bool
    rejection: RejectionReason | None = None


@dataclass
class ValidationStats:
    """Counts of what the validator did with a payload's corrections."""

    proposed: int = 0
    accepted: int = 0
    rejected: dict[str, int] = field(default_factory=dict)

    def record(self, outcome: ValidationOutcome) -> None:
        if outcome.accepted:
            self.accepted += 1
        elif outcome.rejection is not None:
            key = outcome.rejection.value
            self.rejected[key] = self.rejected.get(key, 0) + 1

    @property
    def rejected_total(self) -> int:
        return sum(self.rejected.values())


@dataclass
class DetectionResult:
    """
    Validated output of one detection run over one document.

    corrected_text is the service's own rewrite and is advisory only;
    the reviewed text is always produced by apply_corrections().
    """

    corrections: list[Correction]
    formatting_changes: list[FormattingChange]
    corrected_text: str
    confidence: float
    model_used: str
    cost: float = 0.0
    was_truncated: bool = False
    repair_strategy: RepairStrategy = RepairStrategy.STRICT
    stats: ValidationStats = field(default_factory=ValidationStats)
    outcomes: list[ValidationOutcome] = field(default_factory=list)

    @property
    def total_corrections(self) -> int:
        return len(self.corrections) + len(self.formatting_changes)

    @classmethod
    def empty(
        cls,
        text: str,
        model_used: str,
        cost: float = 0.0,
        was_truncated: bool = False,
        repair_strategy: RepairStrategy = RepairStrategy.EMPTY,
    ) -> DetectionResult:
        """A run that produced no suggestions (confidence 0)."""
        return cls(
            corrections=[],
            formatting_changes=[],
            corrected_text=text,
            confidence=0.0,
            model_used=model_used,
            cost=cost,
            was_truncated=was_truncated,
            repair_strategy=repair_strategy,
        )

    def to_dict(self) -> dict[str, Any]:
        """
        Convert to dictionary for JSON serialization.

        Returns:
            Dictionary representation handed to the review layer
        """
        return {
            "corrections": [c.to_dict() for c in self.corrections],
            "formattingChanges": [f.to_dict() for f in self.formatting_changes],
            "correctedText": self.corrected_text,
            "totalCorrections": self.total_corrections,
            "confidence": self.confidence,
            "cost": self.cost,
            "modelUsed": self.model_used,
            "wasTruncated": self.was_truncated,
            "repairStrategy": self.repair_strategy.value,
            "rejected": dict(self.stats.rejected),
        }


# =============================================================================
# DUPLICATE PAGES
# =============================================================================


@dataclass(frozen=True)
class PageText:
    """One page of a collection, as submitted for duplicate detection."""

    document_id: str
    page_index: int
    text: str


@dataclass(frozen=True)
class DuplicateResult:
    """A pair of pages whose texts are similar enough to report."""

    page_index1: int
    page_index2: int
    document_id1: str
    document_id2: str
    similarity: float
    tier: DuplicateTier

    def to_dict(self) -> dict[str, Any]:
        return {
            "pageIndex1": self.page_index1,
            "pageIndex2": self.page_index2,
            "documentId1": self.document_id1,
            "documentId2": self.document_id2,
            "similarity": self.similarity,
            "type": self.tier.value,
        }


@dataclass
class DuplicateReport:
    """Everything a reviewer needs to clean duplicates out of a collection."""

    duplicates: list[DuplicateResult] = field(default_factory=list)
    suggested_removals: list[str] = field(default_factory=list)
    chains: list[list[str]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "duplicates": [d.to_dict() for d in self.duplicates],
            "suggestedRemovals": list(self.suggested_removals),
            "duplicateChains": [list(chain) for chain in self.chains],
        }
