"""
CineArchive: OCR correction and duplicate detection for Arabic cinema archives.

This library handles the text side of digitizing historical Arabic
cinema-magazine scans: it checks corrections proposed by an external
text-correction service against the OCR text, applies the ones a
reviewer accepted, and finds duplicate pages in a collection.

Example:
    >>> import cinearchive
    >>> service = cinearchive.create_openai_service()
    >>> result = await cinearchive.detect_corrections(page_text, service)
    >>> for c in result.corrections:
    ...     c.status = cinearchive.ReviewStatus.APPROVED
    >>> fixed = cinearchive.apply_corrections(page_text, result.corrections)

    >>> pairs = cinearchive.detect_duplicate_pages(pages)
    >>> cinearchive.similarity("الفلم الجميل", "الفلم الجميل")
    1.0
"""

from cinearchive.batch import BatchResult, DocumentText, process_documents
from cinearchive.config import BatchConfig, DetectionConfig, DuplicateConfig, ServiceConfig
from cinearchive.corrections import (
    CorrectionDetector,
    CorrectionValidator,
    apply_corrections,
    build_detection_result,
    detect_corrections,
    repair_response,
    resolve_position,
)
from cinearchive.duplicates import (
    analyze_duplicates,
    detect_duplicate_pages,
    group_duplicate_chains,
    ngram_similarity,
    similarity,
    suggest_removals,
    token_similarity,
)
from cinearchive.exceptions import (
    CineArchiveError,
    ConfigurationError,
    CorrectionServiceError,
    InvalidCorrectionError,
)
from cinearchive.models import (
    Correction,
    CorrectionKind,
    DetectionResult,
    DuplicateReport,
    DuplicateResult,
    DuplicateTier,
    FormattingChange,
    FormattingKind,
    PageText,
    RawPayload,
    RejectionReason,
    RepairStrategy,
    ReviewStatus,
    Span,
    ValidationOutcome,
    ValidationStats,
)
from cinearchive.service import (
    CorrectionService,
    OpenAICorrectionService,
    ServiceReply,
    create_openai_service,
    estimate_processing_cost,
)

__version__ = "0.1.0"
__all__ = [
    # Main API
    "detect_corrections",
    "apply_corrections",
    "detect_duplicate_pages",
    "similarity",
    # Corrections
    "CorrectionDetector",
    "CorrectionValidator",
    "build_detection_result",
    "repair_response",
    "resolve_position",
    # Duplicates
    "analyze_duplicates",
    "suggest_removals",
    "group_duplicate_chains",
    "token_similarity",
    "ngram_similarity",
    # Batch
    "process_documents",
    "DocumentText",
    "BatchResult",
    # Service
    "CorrectionService",
    "ServiceReply",
    "OpenAICorrectionService",
    "create_openai_service",
    "estimate_processing_cost",
    # Configuration
    "DetectionConfig",
    "DuplicateConfig",
    "BatchConfig",
    "ServiceConfig",
    # Models
    "Span",
    "Correction",
    "CorrectionKind",
    "ReviewStatus",
    "FormattingChange",
    "FormattingKind",
    "RawPayload",
    "ValidationOutcome",
    "ValidationStats",
    "RejectionReason",
    "RepairStrategy",
    "DetectionResult",
    "PageText",
    "DuplicateResult",
    "DuplicateTier",
    "DuplicateReport",
    # Exceptions
    "CineArchiveError",
    "ConfigurationError",
    "CorrectionServiceError",
    "InvalidCorrectionError",
]
