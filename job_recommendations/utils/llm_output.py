"""Parsing helpers for free-form LLM output.

Models regularly wrap the requested payload in prose or code fences even
when told not to. These helpers isolate the payload without trusting the
surrounding text.
"""

import json
import re
from typing import Any

from job_recommendations.errors import ParseError

_DIGITS = re.compile(r"\d{1,3}")


def extract_bounded_integer(text: str | None, minimum: int = 0, maximum: int = 100) -> int:
    """Return the first 1-3 digit run in ``text`` clamped to [minimum, maximum].

    No digits at all yields ``minimum``: a present-but-malformed answer degrades
    the score instead of failing the pipeline.

    >>> extract_bounded_integer("The candidate is an 87% match.")
    87
    """
    match = _DIGITS.search(text or "")
    value = int(match.group(0)) if match else minimum
    return max(minimum, min(maximum, value))


def isolate_json_object(text: str | None) -> str:
    """Return the first balanced ``{...}`` substring of ``text``.

    Braces inside JSON string literals (including escaped quotes) are ignored.
    Raises ParseError when no complete object is present.
    """
    if not text:
        raise ParseError("Empty response, expected a JSON object", raw=text)

    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for i in range(start, len(text)):
            ch = text[i]
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
            elif ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    return text[start : i + 1]
        # Unbalanced from this brace; try the next opening brace
        start = text.find("{", start + 1)

    raise ParseError("No JSON object found in response", raw=text)


def parse_json_object(text: str | None) -> dict[str, Any]:
    """Isolate and decode the first JSON object in ``text``."""
    candidate = isolate_json_object(text)
    try:
        parsed = json.loads(candidate)
    except json.JSONDecodeError as exc:
        raise ParseError(f"Invalid JSON in response: {exc}", raw=text) from exc
    if not isinstance(parsed, dict):
        raise ParseError("Response JSON is not an object", raw=text)
    return parsed
