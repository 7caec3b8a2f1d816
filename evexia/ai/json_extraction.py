"""Pull a JSON object out of free-form model output."""

import json
import re
from typing import Any, Dict, Iterator, Optional

from evexia.utils.logging import get_logger

logger = get_logger(__name__)

_CODE_BLOCK = re.compile(r"```(?:json)?\s*([\s\S]*?)```")


def _balanced_objects(text: str) -> Iterator[str]:
    """Yield ``{...}`` spans with balanced braces, left to right.

    Braces inside JSON strings do not count, and escaped quotes do not end
    a string.
    """
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for index in range(start, len(text)):
            char = text[index]
            if in_string:
                if escaped:
                    escaped = False
                elif char == "\\":
                    escaped = True
                elif char == '"':
                    in_string = False
                continue
            if char == '"':
                in_string = True
            elif char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    yield text[start : index + 1]
                    break
        start = text.find("{", start + 1)


def _loads_object(candidate: str) -> Optional[Dict[str, Any]]:
    try:
        value = json.loads(candidate)
    except json.JSONDecodeError:
        return None
    return value if isinstance(value, dict) else None


def extract_json_object(text: Optional[str]) -> Optional[Dict[str, Any]]:
    """Extract the first JSON object from ``text``.

    A fenced code block wins when it parses; otherwise balanced objects in the
    text are tried in order. Returns None when nothing parses.
    """
    if not text or not text.strip():
        return None

    match = _CODE_BLOCK.search(text)
    if match and match.group(1).strip():
        parsed = _loads_object(match.group(1).strip())
        if parsed is not None:
            return parsed

    for candidate in _balanced_objects(text):
        parsed = _loads_object(candidate)
        if parsed is not None:
            return parsed

    logger.debug("json_extraction_failed", length=len(text))
    return None
