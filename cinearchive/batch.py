"""
Batch correction detection across many documents.

Documents are sent to the service in fixed-size batches: each batch runs
concurrently and is awaited as a unit, then the runner sleeps before the
next one to respect the service's rate limit. A failing document is
recorded and skipped; it never aborts its batch or the run.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from cinearchive.config import BatchConfig
from cinearchive.corrections.detector import CorrectionDetector
from cinearchive.models import DetectionResult

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, float], None]


@dataclass(frozen=True)
class DocumentText:
    """A document queued for detection."""

    id: str
    text: str


@dataclass
class BatchResult:
    """Results of a batch run, keyed by document id."""

    results: dict[str, DetectionResult] = field(default_factory=dict)
    failures: dict[str, str] = field(default_factory=dict)
    total_cost: float = 0.0
    stopped_early: bool = False

    @property
    def processed(self) -> int:
        return len(self.results) + len(self.failures)


async def _detect_one(
    detector: CorrectionDetector, document: DocumentText
) -> tuple[str, DetectionResult | None, str | None]:
    try:
        return document.id, await detector.detect(document.text), None
    except Exception as e:
        logger.exception("Failed to process document %s", document.id)
        return document.id, None, str(e) or type(e).__name__


async def process_documents(
    documents: Sequence[DocumentText],
    detector: CorrectionDetector,
    config: BatchConfig | None = None,
    on_progress: ProgressCallback | None = None,
    stop_event: asyncio.Event | None = None,
) -> BatchResult:
    """
    Detect corrections for every document, a batch at a time.

    Args:
        documents: Documents to process, in order.
        detector: Detector wrapping the correction service.
        config: Batch pacing (defaults to BatchConfig.for_model(detector.model)).
        on_progress: Called after each batch with (processed, total, total_cost).
        stop_event: When set, no further batches are started; the batch in
            flight is allowed to finish.

    Returns:
        BatchResult with per-document results and failures.
    """
    config = config or BatchConfig.for_model(detector.model)
    total = len(documents)
    outcome = BatchResult()

    logger.info("Starting batch detection of %d documents with %s", total, detector.model)

    for offset in range(0, total, config.batch_size):
        if stop_event is not None and stop_event.is_set():
            logger.info("Stop requested, %d documents left unprocessed", total - offset)
            outcome.stopped_early = True
            break

        batch = documents[offset : offset + config.batch_size]
        batch_results = await asyncio.gather(*(_detect_one(detector, doc) for doc in batch))

        for doc_id, result, error in batch_results:
            if result is not None:
                outcome.results[doc_id] = result
                outcome.total_cost += result.cost
            else:
                outcome.failures[doc_id] = error or "unknown error"

        if on_progress:
            on_progress(min(offset + config.batch_size, total), total, outcome.total_cost)

        if offset + config.batch_size < total and config.delay_seconds > 0:
            await asyncio.sleep(config.delay_seconds)

    logger.info(
        "Completed %d/%d documents. Total cost: $%.4f",
        len(outcome.results),
        total,
        outcome.total_cost,
    )
    return outcome
