"""
Tolerant parsing of correction service output.

The service is asked for a JSON object with "corrections",
"formattingChanges", "correctedText" and "confidence" fields. Long pages
make it hit its output-length limit, so the reply is often cut off in
the middle of a string or before the closing brackets.

repair_response() tries a strict parse first and then climbs a repair
ladder, re-parsing after every rung:

    1. trim a dangling key or unterminated string at the end
    2. strip trailing commas
    3. append missing closers (brackets, then braces)
    4. salvage the complete objects of the "corrections" array only
    5. give up with an empty payload

It never raises: a detection run with unusable output degrades to
"no suggestions".
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any

from cinearchive.models import RawPayload, RepairStrategy

logger = logging.getLogger(__name__)

# Confidence given to a payload salvaged from the corrections array alone
SALVAGED_CONFIDENCE = 0.5

_STRING = r'"(?:[^"\\]|\\.)*"'
_VALUE = rf"(?:{_STRING}|-?[\d.eE+-]+|true|false|null|\[[^\]]*\]|\{{[^}}]*\}})"

# Everything up to the last complete "key": value pair, followed by an
# incomplete pair (dangling comma, key, colon or unterminated string).
_TRAILING_FRAGMENT = re.compile(
    rf'^(.*{_STRING}\s*:\s*{_VALUE})\s*,?\s*"(?:[^"\\]|\\.)*"?\s*:?\s*"?(?:[^"\\]|\\.)*\\?$',
    re.DOTALL,
)
_DANGLING_KEY = re.compile(rf"[{{,]\s*{_STRING}\s*$")
_TRAILING_COMMA = re.compile(r",\s*$")
_COMMA_BEFORE_CLOSER = re.compile(r",\s*([\]}])")
_CODE_FENCE_OPEN = re.compile(r"^\s*```[a-zA-Z]*\s*")
_CODE_FENCE_CLOSE = re.compile(r"\s*```\s*$")
_CORRECTIONS_ARRAY = re.compile(r'"corrections"\s*:\s*\[')

_CLOSERS = {"[": "]", "{": "}"}


@dataclass
class RepairResult:
    """A parsed service payload and the ladder rung that produced it."""

    payload: dict[str, Any]
    strategy: RepairStrategy

    @property
    def was_repaired(self) -> bool:
        return self.strategy not in (RepairStrategy.STRICT, RepairStrategy.EMPTY)


@dataclass
class _ScanState:
    in_string: bool
    open_stack: list[str]
    opened: dict[str, int]
    closed: dict[str, int]


def _scan(text: str) -> _ScanState:
    """Walk JSON-ish text tracking string state and brackets outside strings."""
    in_string = False
    escaped = False
    stack: list[str] = []
    opened = {"[": 0, "{": 0}
    closed = {"]": 0, "}": 0}

    for ch in text:
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch in "[{":
            opened[ch] += 1
            stack.append(ch)
        elif ch in "]}":
            closed[ch] += 1
            if stack and _CLOSERS[stack[-1]] == ch:
                stack.pop()

    return _ScanState(in_string=in_string, open_stack=stack, opened=opened, closed=closed)


def _parse_object(text: str) -> dict[str, Any] | None:
    try:
        value = json.loads(text)
    except (ValueError, RecursionError):
        return None
    return value if isinstance(value, dict) else None


def _strip_code_fence(text: str) -> str:
    text = _CODE_FENCE_OPEN.sub("", text, count=1)
    return _CODE_FENCE_CLOSE.sub("", text)


def _has_dangling_tail(text: str) -> bool:
    """True if text ends inside a string, after a colon, or on a bare key."""
    state = _scan(text)
    if state.in_string:
        return True
    stripped = text.rstrip()
    if stripped.endswith(":"):
        return True
    return bool(
        state.open_stack and state.open_stack[-1] == "{" and _DANGLING_KEY.search(stripped)
    )


def trim_incomplete_tail(text: str) -> str:
    """Cut a truncated trailing key/value back to the last complete pair."""
    if not _has_dangling_tail(text):
        return text
    match = _TRAILING_FRAGMENT.match(text)
    return match.group(1) if match else text


def strip_trailing_commas(text: str) -> str:
    text = _TRAILING_COMMA.sub("", text.rstrip())
    return _COMMA_BEFORE_CLOSER.sub(r"\1", text)


def close_brackets(text: str) -> str:
    """Append missing closers by count: all brackets first, then all braces."""
    state = _scan(text)
    missing_brackets = max(state.opened["["] - state.closed["]"], 0)
    missing_braces = max(state.opened["{"] - state.closed["}"], 0)
    return text + "]" * missing_brackets + "}" * missing_braces


def close_in_nesting_order(text: str) -> str:
    """Append missing closers innermost first."""
    state = _scan(text)
    return text + "".join(_CLOSERS[opener] for opener in reversed(state.open_stack))


def salvage_corrections(text: str) -> list[dict[str, Any]] | None:
    """
    Pull the complete objects out of the "corrections" array.

    Returns None if there is no corrections array or nothing in it could
    be recovered; an explicitly closed empty array yields [].
    """
    match = _CORRECTIONS_ARRAY.search(text)
    if not match:
        return None

    decoder = json.JSONDecoder()
    items: list[dict[str, Any]] = []
    pos = match.end()
    while True:
        while pos < len(text) and (text[pos].isspace() or text[pos] == ","):
            pos += 1
        if pos >= len(text):
            break
        if text[pos] == "]":
            return items
        try:
            value, pos = decoder.raw_decode(text, pos)
        except ValueError:
            break
        if isinstance(value, dict):
            items.append(value)

    return items or None


def empty_payload(source_text: str = "") -> dict[str, Any]:
    return {
        "corrections": [],
        "formattingChanges": [],
        "correctedText": source_text,
        "confidence": 0.0,
    }


def repair_response(raw: RawPayload | str, source_text: str = "") -> RepairResult:
    """
    Recover a best-effort payload from possibly truncated service output.

    Args:
        raw: The service's reply, untrusted.
        source_text: The text that was submitted; used as correctedText
            when only the corrections array could be salvaged.

    Returns:
        RepairResult. On valid input the payload equals json.loads(raw).
    """
    text = raw.text if isinstance(raw, RawPayload) else raw
    if not text or not text.strip():
        return RepairResult(empty_payload(source_text), RepairStrategy.EMPTY)

    parsed = _parse_object(text)
    if parsed is not None:
        return RepairResult(parsed, RepairStrategy.STRICT)

    text = _strip_code_fence(text)
    parsed = _parse_object(text)
    if parsed is not None:
        return RepairResult(parsed, RepairStrategy.STRICT)

    logger.debug("Service output is not valid JSON (%d chars), attempting repair", len(text))

    fixed = trim_incomplete_tail(text)
    parsed = _parse_object(fixed)
    if parsed is not None:
        logger.warning("Recovered service output by trimming its incomplete tail")
        return RepairResult(parsed, RepairStrategy.TRIMMED)

    fixed = strip_trailing_commas(fixed)
    parsed = _parse_object(fixed)
    if parsed is not None:
        logger.warning("Recovered service output by stripping trailing commas")
        return RepairResult(parsed, RepairStrategy.TRIMMED)

    for closer in (close_brackets, close_in_nesting_order):
        parsed = _parse_object(strip_trailing_commas(closer(fixed)))
        if parsed is not None:
            logger.warning("Recovered truncated service output by closing brackets")
            return RepairResult(parsed, RepairStrategy.CLOSED)

    corrections = salvage_corrections(text)
    if corrections is not None:
        logger.warning(
            "Recovered %d correction(s) from truncated service output", len(corrections)
        )
        return RepairResult(
            {
                "corrections": corrections,
                "formattingChanges": [],
                "correctedText": source_text,
                "confidence": SALVAGED_CONFIDENCE,
            },
            RepairStrategy.CORRECTIONS_ONLY,
        )

    logger.error("Could not parse service output even after all repair attempts")
    return RepairResult(empty_payload(source_text), RepairStrategy.EMPTY)
