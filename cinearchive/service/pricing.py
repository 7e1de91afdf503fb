"""
Model pricing and cost estimates for the correction service.

Prices are USD per million tokens.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

logger = logging.getLogger(__name__)

# Rough token estimate for Arabic text
CHARS_PER_TOKEN = 4

# Tokens added to each request by the prompt and to each reply by the JSON structure
PROMPT_OVERHEAD_TOKENS = 500
RESPONSE_OVERHEAD_TOKENS = 200


@dataclass(frozen=True)
class ModelPricing:
    model: str
    input_cost_per_1m: float
    output_cost_per_1m: float
    description: str = ""

    def cost(self, input_tokens: int, output_tokens: int) -> float:
        return (
            input_tokens / 1_000_000 * self.input_cost_per_1m
            + output_tokens / 1_000_000 * self.output_cost_per_1m
        )


MODEL_PRICING: dict[str, ModelPricing] = {
    "gpt-4o-mini": ModelPricing(
        "gpt-4o-mini", 0.15, 0.60, "Most cost-effective, good for Arabic text correction"
    ),
    "gpt-4o": ModelPricing("gpt-4o", 2.50, 10.00, "Balanced accuracy and cost"),
    "gpt-4-turbo-preview": ModelPricing(
        "gpt-4-turbo-preview", 10.00, 30.00, "Highest accuracy, most expensive"
    ),
}


def estimate_cost(model: str, input_tokens: int, output_tokens: int) -> float:
    """Cost of one request in USD; 0.0 for models without a price."""
    pricing = MODEL_PRICING.get(model)
    if pricing is None:
        logger.debug("No pricing for model %r, reporting zero cost", model)
        return 0.0
    return pricing.cost(input_tokens, output_tokens)


@dataclass
class CostEstimate:
    """Projected cost of running detection over a set of documents."""

    input_tokens: int
    output_tokens: int
    estimated_cost: float
    model: str
    cost_comparison: dict[str, float]


def estimate_processing_cost(
    document_count: int,
    avg_text_length: int = 2000,
    model: str = "gpt-4o-mini",
) -> CostEstimate:
    """
    Estimate what processing document_count pages would cost.

    Args:
        document_count: Number of documents to process.
        avg_text_length: Average characters per document.
        model: Model to estimate for; must be in MODEL_PRICING.

    Returns:
        CostEstimate with costs rounded to cents and the same workload
        priced for every known model.
    """
    if model not in MODEL_PRICING:
        raise ValueError(f"Unknown model {model!r}, expected one of {sorted(MODEL_PRICING)}")

    per_doc_tokens = math.ceil(avg_text_length / CHARS_PER_TOKEN)
    input_tokens = (per_doc_tokens + PROMPT_OVERHEAD_TOKENS) * document_count
    output_tokens = (per_doc_tokens + RESPONSE_OVERHEAD_TOKENS) * document_count

    comparison = {
        name: round(pricing.cost(input_tokens, output_tokens), 2)
        for name, pricing in MODEL_PRICING.items()
    }

    return CostEstimate(
        input_tokens=input_tokens,
        output_tokens=output_tokens,
        estimated_cost=round(MODEL_PRICING[model].cost(input_tokens, output_tokens), 2),
        model=model,
        cost_comparison=comparison,
    )
