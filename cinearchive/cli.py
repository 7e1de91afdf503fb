#!/usr/bin/env python3
"""
Command line interface for the CineArchive text engine.

Usage:
    # Find duplicate pages in a collection manifest (YAML or JSON)
    cinearchive duplicates collection.yaml --json

    # Apply reviewed corrections to a page
    cinearchive apply page.txt reviewed.yaml -o page.corrected.txt

    # Repair and validate a saved service reply offline
    cinearchive validate reply.json page.txt

    # Ask the correction service for suggestions (needs OPENAI_API_KEY)
    cinearchive detect page.txt --model gpt-4o-mini

    # Estimate the cost of a batch run
    cinearchive estimate 120 --avg-length 3000
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

import yaml

from cinearchive.config import DetectionConfig, DuplicateConfig, ServiceConfig
from cinearchive.corrections import (
    CorrectionDetector,
    apply_corrections,
    build_detection_result,
)
from cinearchive.duplicates import analyze_duplicates
from cinearchive.exceptions import CineArchiveError
from cinearchive.models import Correction, PageText
from cinearchive.service import MODEL_PRICING, create_openai_service, estimate_processing_cost

logger = logging.getLogger(__name__)


def _load_yaml(path: Path) -> Any:
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f)


def _items(data: Any, key: str) -> list[dict[str, Any]]:
    """Accept either a bare list or a mapping holding the list under key."""
    if isinstance(data, dict):
        data = data.get(key, [])
    if not isinstance(data, list):
        raise CineArchiveError(f"Expected a list of {key}")
    return [item for item in data if isinstance(item, dict)]


def load_pages(path: Path) -> list[PageText]:
    """Load a collection manifest: a list of {documentId, pageIndex, text}."""
    pages = []
    for index, item in enumerate(_items(_load_yaml(path), "pages")):
        pages.append(
            PageText(
                document_id=str(item.get("documentId", item.get("document_id", index))),
                page_index=int(item.get("pageIndex", item.get("page_index", index + 1))),
                text=item.get("text", item.get("ocrText")) or "",
            )
        )
    return pages


def load_corrections(path: Path) -> list[Correction]:
    """Load reviewed corrections in the review layer's format."""
    return [Correction.from_dict(item) for item in _items(_load_yaml(path), "corrections")]


def _print_json(data: Any) -> None:
    print(json.dumps(data, ensure_ascii=False, indent=2))


def cmd_duplicates(args: argparse.Namespace) -> int:
    config = DuplicateConfig(
        exact_threshold=args.exact,
        near_duplicate_threshold=args.near,
        similar_threshold=args.similar,
    )
    report = analyze_duplicates(load_pages(args.manifest), config)

    if args.json:
        _print_json(report.to_dict())
        return 0

    if not report.duplicates:
        print("No duplicate pages found.")
        return 0

    for dup in report.duplicates:
        print(
            f"{dup.tier.value:>15}  {dup.similarity:6.1%}  "
            f"page {dup.page_index1} ({dup.document_id1}) ~ "
            f"page {dup.page_index2} ({dup.document_id2})"
        )
    print(f"\nChains: {len(report.chains)}")
    for chain in report.chains:
        print(f"  {', '.join(chain)}")
    print(f"Suggested removals: {', '.join(report.suggested_removals)}")
    return 0


def cmd_apply(args: argparse.Namespace) -> int:
    text = args.text.read_text(encoding="utf-8")
    corrections = load_corrections(args.corrections)
    result = apply_corrections(text, corrections)

    applied = sum(1 for c in corrections if c.status.is_applied)
    logger.info("Applied %d of %d corrections", applied, len(corrections))

    if args.output:
        args.output.write_text(result, encoding="utf-8")
        print(f"Corrected text saved to: {args.output}")
    else:
        print(result)
    return 0


def cmd_validate(args: argparse.Namespace) -> int:
    raw = args.response.read_text(encoding="utf-8")
    text = args.text.read_text(encoding="utf-8")
    config = DetectionConfig(confidence_threshold=args.threshold)
    result = build_detection_result(raw, text, config, model_used=args.model)
    _print_json(result.to_dict())
    return 0


def cmd_detect(args: argparse.Namespace) -> int:
    text = args.text.read_text(encoding="utf-8")
    service_config = ServiceConfig.from_env()
    if args.model:
        service_config.model = args.model
    detector = CorrectionDetector(
        create_openai_service(service_config),
        DetectionConfig(confidence_threshold=args.threshold),
    )
    result = asyncio.run(detector.detect(text))
    _print_json(result.to_dict())
    return 0


def cmd_estimate(args: argparse.Namespace) -> int:
    estimate = estimate_processing_cost(args.count, args.avg_length, args.model)
    print(f"Model: {estimate.model}")
    print(f"Input tokens:  {estimate.input_tokens:,}")
    print(f"Output tokens: {estimate.output_tokens:,}")
    print(f"Estimated cost: ${estimate.estimated_cost:.2f}")
    for model, cost in estimate.cost_comparison.items():
        print(f"  {model:<22} ${cost:.2f}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cinearchive",
        description="OCR correction and duplicate page tools for Arabic cinema archives",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    dup = sub.add_parser("duplicates", help="Find duplicate pages in a collection")
    dup.add_argument("manifest", type=Path, help="YAML/JSON list of pages")
    dup.add_argument("--exact", type=float, default=0.95)
    dup.add_argument("--near", type=float, default=0.80)
    dup.add_argument("--similar", type=float, default=0.60)
    dup.add_argument("--json", action="store_true", help="Print the report as JSON")
    dup.set_defaults(func=cmd_duplicates)

    app = sub.add_parser("apply", help="Apply approved/deleted corrections to a text")
    app.add_argument("text", type=Path, help="Source text file")
    app.add_argument("corrections", type=Path, help="YAML/JSON list of reviewed corrections")
    app.add_argument("-o", "--output", type=Path, help="Write the result here instead of stdout")
    app.set_defaults(func=cmd_apply)

    val = sub.add_parser("validate", help="Repair and validate a saved service reply")
    val.add_argument("response", type=Path, help="Raw service reply")
    val.add_argument("text", type=Path, help="Text the reply refers to")
    val.add_argument("--threshold", type=float, default=0.99)
    val.add_argument("--model", default="", help="Model name to record")
    val.set_defaults(func=cmd_validate)

    det = sub.add_parser("detect", help="Detect corrections with the OpenAI service")
    det.add_argument("text", type=Path, help="Source text file")
    det.add_argument("--model", choices=sorted(MODEL_PRICING), help="Override CINEARCHIVE_MODEL")
    det.add_argument("--threshold", type=float, default=0.99)
    det.set_defaults(func=cmd_detect)

    est = sub.add_parser("estimate", help="Estimate the cost of processing documents")
    est.add_argument("count", type=int, help="Number of documents")
    est.add_argument("--avg-length", type=int, default=2000, help="Average characters per document")
    est.add_argument("--model", choices=sorted(MODEL_PRICING), default="gpt-4o-mini")
    est.set_defaults(func=cmd_estimate)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        return args.func(args)
    except (CineArchiveError, ValueError, OSError, yaml.YAMLError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
