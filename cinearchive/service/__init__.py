"""
External text-correction service.

- base: CorrectionService protocol and ServiceReply
- openai_service: OpenAI implementation
- pricing: per-model prices and cost estimates
"""

from cinearchive.service.base import CorrectionService, ServiceReply
from cinearchive.service.openai_service import OpenAICorrectionService, create_openai_service
from cinearchive.service.pricing import (
    MODEL_PRICING,
    CostEstimate,
    ModelPricing,
    estimate_cost,
    estimate_processing_cost,
)

__all__ = [
    "CorrectionService",
    "ServiceReply",
    "OpenAICorrectionService",
    "create_openai_service",
    "MODEL_PRICING",
    "ModelPricing",
    "CostEstimate",
    "estimate_cost",
    "estimate_processing_cost",
]
