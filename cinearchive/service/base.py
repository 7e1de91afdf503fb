"""
Boundary to the external text-correction service.

The engine never talks to a network client directly: a CorrectionService
is passed in, so detection can run against OpenAI in production and
against an in-memory fake in tests.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from cinearchive.models import RawPayload


@dataclass(frozen=True)
class ServiceReply:
    """What the service sent back for one request, plus token usage."""

    raw: RawPayload
    model: str
    input_tokens: int = 0
    output_tokens: int = 0


class CorrectionService(Protocol):
    model: str

    async def request_corrections(self, text: str) -> ServiceReply:
        """Ask the service to propose corrections for text."""
