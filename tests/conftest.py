"""
Pytest configuration and fixtures for CineArchive tests.
"""

import json

import pytest

from cinearchive.models import RawPayload
from cinearchive.service.base import ServiceReply

# "the beautiful film", with "film" misspelled
ARABIC_SOURCE = "الفلم الجميل"


class FakeCorrectionService:
    """In-memory CorrectionService returning canned replies keyed by text."""

    def __init__(self, replies=None, model="gpt-4o-mini", default=None):
        self.model = model
        self.replies = replies or {}
        self.default = default if default is not None else json.dumps(
            {"corrections": [], "formattingChanges": [], "correctedText": "", "confidence": 1.0}
        )
        self.requests: list[str] = []

    async def request_corrections(self, text: str) -> ServiceReply:
        self.requests.append(text)
        reply = self.replies.get(text, self.default)
        if isinstance(reply, Exception):
            raise reply
        return ServiceReply(
            raw=RawPayload(reply), model=self.model, input_tokens=1000, output_tokens=500
        )


def _make_item(original, corrected, start, end, confidence=0.99, id="1", type="ocr_error"):
    return {
        "id": id,
        "type": type,
        "original": original,
        "corrected": corrected,
        "reason": "test",
        "position": {"start": start, "end": end},
        "confidence": confidence,
    }


def _make_payload(*corrections, formatting=None, corrected_text="", confidence=0.95):
    return {
        "corrections": list(corrections),
        "formattingChanges": formatting or [],
        "correctedText": corrected_text,
        "confidence": confidence,
    }


@pytest.fixture
def arabic_source() -> str:
    return ARABIC_SOURCE


@pytest.fixture
def make_item():
    """Factory for a service-format correction entry."""
    return _make_item


@pytest.fixture
def make_payload():
    """Factory for a service-format payload."""
    return _make_payload


@pytest.fixture
def service_factory():
    """Factory for fake correction services."""
    return FakeCorrectionService
