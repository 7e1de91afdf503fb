"""
Exception classes for CineArchive.

All CineArchive exceptions inherit from CineArchiveError,
making it easy to catch all library errors.

Malformed service output and unresolvable correction positions are NOT
errors: they degrade to an empty or smaller DetectionResult.

Example:
    >>> try:
    ...     result = await detector.detect(page_text)
    ... except cinearchive.CorrectionServiceError as e:
    ...     print(f"Service failed: {e}")
    ... except cinearchive.CineArchiveError as e:
    ...     print(f"CineArchive error: {e}")
"""


class CineArchiveError(Exception):
    """
    Base exception for all CineArchive errors.

    Catch this to handle any CineArchive-specific error.
    """

    pass


class ConfigurationError(CineArchiveError, ValueError):
    """
    Raised for invalid configuration.

    Example:
        >>> DetectionConfig(confidence_threshold=1.5)
        ConfigurationError: confidence_threshold must be between 0.0 and 1.0, got 1.5
    """

    pass


class CorrectionServiceError(CineArchiveError):
    """
    Raised when the external text-correction service fails.

    The batch runner records this per document and carries on with the
    remaining documents.
    """

    def __init__(self, message: str, model: str | None = None):
        super().__init__(message)
        self.model = model


class InvalidCorrectionError(CineArchiveError, ValueError):
    """
    Raised when a reviewed correction handed back by the review layer is malformed.

    Example:
        >>> Correction.from_dict({"original": "الفلم"})
        InvalidCorrectionError: Correction entry has no id
    """

    pass
