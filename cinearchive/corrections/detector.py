"""
Correction detection for one document.

Wires the pieces together:
    truncate -> CorrectionService -> repair_response -> CorrectionValidator

build_detection_result() is the pure part (no service call) and can be
used on a stored service reply.
"""

from __future__ import annotations

import logging

from cinearchive.config import DetectionConfig
from cinearchive.corrections.repair import repair_response
from cinearchive.corrections.validator import CorrectionValidator, coerce_float
from cinearchive.exceptions import CorrectionServiceError
from cinearchive.models import DetectionResult, RawPayload, RepairStrategy
from cinearchive.service.base import CorrectionService
from cinearchive.service.pricing import estimate_cost

logger = logging.getLogger(__name__)

# Overall confidence assumed when a parsed payload doesn't state one
DEFAULT_PAYLOAD_CONFIDENCE = 0.9


def truncate_text(text: str, max_length: int) -> tuple[str, bool]:
    """Cut text to max_length characters; report whether anything was cut."""
    if len(text) <= max_length:
        return text, False
    return text[:max_length], True


def build_detection_result(
    raw: RawPayload | str,
    source_text: str,
    config: DetectionConfig | None = None,
    model_used: str = "",
    cost: float = 0.0,
    was_truncated: bool = False,
    full_text: str | None = None,
) -> DetectionResult:
    """
    Turn a raw service reply into a validated DetectionResult.

    Args:
        raw: Untrusted service output.
        source_text: The exact text that was submitted.
        config: Detection settings (uses defaults if None).
        model_used, cost, was_truncated: Provenance to record.
        full_text: The document before truncation; used as corrected_text
            when the service gives none (defaults to source_text).

    Returns:
        DetectionResult; an empty one if nothing could be recovered.
    """
    full_text = source_text if full_text is None else full_text
    raw = raw if isinstance(raw, RawPayload) else RawPayload(raw)
    if not raw:
        return DetectionResult.empty(full_text, model_used, cost, was_truncated)

    repaired = repair_response(raw, full_text)
    if repaired.strategy is RepairStrategy.EMPTY:
        return DetectionResult.empty(full_text, model_used, cost, was_truncated)

    payload = repaired.payload
    report = CorrectionValidator(config).validate(payload, source_text)

    corrected_text = payload.get("correctedText")
    if not isinstance(corrected_text, str) or not corrected_text:
        corrected_text = full_text

    confidence = coerce_float(payload.get("confidence"), DEFAULT_PAYLOAD_CONFIDENCE)

    return DetectionResult(
        corrections=report.corrections,
        formatting_changes=report.formatting_changes,
        corrected_text=corrected_text,
        confidence=min(max(confidence, 0.0), 1.0),
        model_used=model_used,
        cost=cost,
        was_truncated=was_truncated,
        repair_strategy=repaired.strategy,
        stats=report.stats,
        outcomes=report.outcomes,
    )


class CorrectionDetector:
    """
    Detects corrections for document texts using an injected service.

    Example:
        >>> detector = CorrectionDetector(create_openai_service())
        >>> result = await detector.detect(page_text)
        >>> len(result.corrections)
        2
    """

    def __init__(self, service: CorrectionService, config: DetectionConfig | None = None) -> None:
        self.service = service
        self.config = config or DetectionConfig()

    @property
    def model(self) -> str:
        return self.service.model

    async def detect(self, text: str) -> DetectionResult:
        """
        Run one detection over text.

        Raises:
            CorrectionServiceError: If the service call fails.
        """
        if not text or not text.strip():
            return DetectionResult.empty(text, self.model)

        processed, was_truncated = truncate_text(text, self.config.max_text_length)
        if was_truncated:
            logger.info(
                "Text too long (%d chars), truncating to %d", len(text), self.config.max_text_length
            )

        try:
            reply = await self.service.request_corrections(processed)
        except CorrectionServiceError:
            raise
        except Exception as e:
            raise CorrectionServiceError(
                f"Text correction detection failed: {e}", model=self.model
            ) from e

        cost = estimate_cost(reply.model, reply.input_tokens, reply.output_tokens)
        logger.info(
            "Text correction detection: model=%s cost=$%.6f%s",
            reply.model,
            cost,
            " (text was truncated)" if was_truncated else "",
        )

        return build_detection_result(
            reply.raw,
            processed,
            self.config,
            model_used=reply.model,
            cost=cost,
            was_truncated=was_truncated,
            full_text=text,
        )


async def detect_corrections(
    text: str,
    service: CorrectionService,
    config: DetectionConfig | None = None,
) -> DetectionResult:
    """Detect corrections for text with a one-off CorrectionDetector."""
    return await CorrectionDetector(service, config).detect(text)
