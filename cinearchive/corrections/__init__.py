"""
OCR correction detection, validation and application.

Pipeline for one document:
    CorrectionService reply (untrusted RawPayload)
      -> repair_response()        tolerant JSON parsing
      -> CorrectionValidator      confidence, position and sanity checks
      -> DetectionResult          shown to a reviewer
      -> apply_corrections()      approved/deleted corrections spliced in
"""

from cinearchive.corrections.applier import apply_corrections, select_applicable
from cinearchive.corrections.detector import (
    CorrectionDetector,
    build_detection_result,
    detect_corrections,
    truncate_text,
)
from cinearchive.corrections.positions import (
    ResolvedPosition,
    looks_like_email_or_url,
    resolve_position,
)
from cinearchive.corrections.repair import RepairResult, repair_response
from cinearchive.corrections.validator import (
    CorrectionValidator,
    ValidationReport,
    texts_are_close,
)

__all__ = [
    # Detection
    "CorrectionDetector",
    "detect_corrections",
    "build_detection_result",
    "truncate_text",
    # Repair
    "repair_response",
    "RepairResult",
    # Positions
    "resolve_position",
    "ResolvedPosition",
    "looks_like_email_or_url",
    # Validation
    "CorrectionValidator",
    "ValidationReport",
    "texts_are_close",
    # Application
    "apply_corrections",
    "select_applicable",
]
