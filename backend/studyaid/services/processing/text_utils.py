"""
Text helpers for model output.
"""

import json
import re
from typing import Any, Optional

_CODE_BLOCK_PATTERNS = (
    r"```json\s*([\s\S]*?)\s*```",  # ```json ... ```
    r"```\s*([\s\S]*?)\s*```",  # ``` ... ```
)


def extract_json_from_response(response_text: str) -> Optional[Any]:
    """
    Parse JSON from a model response that may be wrapped in a code block.

    Returns:
        Parsed JSON, or None if nothing parseable was found
    """
    if not response_text:
        return None

    text = response_text.strip()
    for pattern in _CODE_BLOCK_PATTERNS:
        match = re.search(pattern, text)
        if match:
            text = match.group(1).strip()
            break

    try:
        return json.loads(text)
    except json.JSONDecodeError:
        # Fall back to the outermost object in surrounding prose
        match = re.search(r"(\{[\s\S]*\})", text)
        if match:
            try:
                return json.loads(match.group(1))
            except json.JSONDecodeError:
                return None
    return None


def string_list(value: Any) -> list[str]:
    """Coerce a model-provided list into a list of non-empty strings."""
    if not isinstance(value, list):
        return []
    return [str(item).strip() for item in value if item is not None and str(item).strip()]


def unique(items: list[str]) -> list[str]:
    """De-duplicate preserving first-seen order."""
    return list(dict.fromkeys(items))
