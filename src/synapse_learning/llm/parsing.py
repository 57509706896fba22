"""
synapse_learning.llm.parsing

Lenient JSON extraction from model output.
"""

from __future__ import annotations

import copy
import json
import re
from typing import Any

from synapse_learning.observability.logging import get_logger

log = get_logger(__name__)

_FENCE = re.compile(r"^\s*```[a-zA-Z]*\s*(.*?)\s*```\s*$", re.DOTALL)


def strip_code_fence(text: str) -> str:
    m = _FENCE.match(text)
    return m.group(1) if m else text.strip()


def parse_json(content: str, fallback: Any = None) -> Any:
    """
    Parse `content` as JSON. On failure (or a top-level type that differs from
    the fallback's), return a deep copy of `fallback`; with no fallback the raw
    text is wrapped as `{"content": ...}`.
    """

    default = {"content": content} if fallback is None else fallback
    try:
        parsed = json.loads(strip_code_fence(content))
    except (json.JSONDecodeError, TypeError):
        log.warning("llm_json_parse_failed", preview=(content or "")[:120])
        return copy.deepcopy(default)

    if not isinstance(parsed, type(default)):
        log.warning("llm_json_unexpected_shape", got=type(parsed).__name__)
        return copy.deepcopy(default)
    return parsed
