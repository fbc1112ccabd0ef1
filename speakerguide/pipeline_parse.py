"""Turn raw model output into validated, ordered SlideGuide records."""
from __future__ import annotations

import json
import re
from typing import Any, List, Optional

from pydantic import ValidationError

from .errors import MalformedResponseError, SlideCountMismatchError, SlideNumberMismatchError
from .logging_utils import get_logger
from .models import SlideGuide

logger = get_logger("parse")

_FENCE_RE = re.compile(r"```[A-Za-z]*[ \t]*\n?")


def strip_code_fences(text: str) -> str:
    """Remove markdown code fences wherever the model put them.

    Args:
        text (str):

    Returns:
        str:
    """
    return _FENCE_RE.sub("", text or "").strip()


def _balanced_array_at(t: str, start: int) -> Optional[str]:
    depth = 0
    in_string = False
    escaped = False
    for j in range(start, len(t)):
        ch = t[j]
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
        elif ch == "[":
            depth += 1
        elif ch == "]":
            depth -= 1
            if depth == 0:
                return t[start : j + 1]
    return None


def try_extract_json_array(text: str) -> Optional[str]:
    """Return a balanced [...] block that parses as JSON, ignoring brackets inside strings.

    Bracketed prose such as "[v1]" or "[1]" before the real array is skipped: the
    first array holding an object wins, else the first one that parses.

    Args:
        text (str):

    Returns:
        Optional[str]:
    """
    t = text or ""
    fallback = None
    start = t.find("[")
    while start != -1:
        candidate = _balanced_array_at(t, start)
        if candidate is not None:
            try:
                parsed = json.loads(candidate)
            except json.JSONDecodeError:
                parsed = None
            if isinstance(parsed, list):
                if any(isinstance(item, dict) for item in parsed):
                    return candidate
                if fallback is None:
                    fallback = candidate
        start = t.find("[", start + 1)
    return fallback


def load_guide_array(raw: str) -> List[Any]:
    """Parse raw completion text into a JSON array, or raise MalformedResponseError.

    Args:
        raw (str):

    Returns:
        List[Any]:
    """
    text = strip_code_fences(raw)
    if not text:
        raise MalformedResponseError("Empty response from the generation service.")
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        js = try_extract_json_array(text)
        if js is None:
            logger.error("No JSON array in model output. HEAD: %s", text[:200])
            raise MalformedResponseError("Failed to parse AI response as JSON.")
        data = json.loads(js)
    if not isinstance(data, list):
        raise MalformedResponseError(f"Expected a JSON array of guides, got {type(data).__name__}.")
    return data


def _describe_errors(exc: ValidationError) -> str:
    fields = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "(root)"
        fields.append(f"{loc}: {err.get('msg', 'invalid')}")
    return "; ".join(fields[:5])


def validate_guide(item: Any, position: int) -> SlideGuide:
    """Validate one element against the guide schema and its expected 1-based position.

    Args:
        item (Any):
        position (int):

    Returns:
        SlideGuide:
    """
    if not isinstance(item, dict):
        raise MalformedResponseError(f"Guide at position {position} is not an object.")
    try:
        guide = SlideGuide.model_validate(item)
    except ValidationError as exc:
        detail = _describe_errors(exc)
        logger.error("Guide %d failed validation: %s", position, detail)
        raise MalformedResponseError(f"Guide at position {position} is invalid ({detail}).") from exc
    if guide.slide_number != position:
        raise SlideNumberMismatchError(position, guide.slide_number)
    return guide


def parse_guides(raw: str, expected_count: int) -> List[SlideGuide]:
    """Recover exactly ``expected_count`` guides, in slide order, from a raw completion.

    Nothing is accepted partially: any structural problem fails the whole batch.
    """
    data = load_guide_array(raw)
    if len(data) != expected_count:
        logger.error("Guide count mismatch: expected %d, received %d", expected_count, len(data))
        raise SlideCountMismatchError(expected_count, len(data))
    guides = [validate_guide(item, i) for i, item in enumerate(data, 1)]
    logger.info("Parsed %d guides", len(guides))
    return guides
