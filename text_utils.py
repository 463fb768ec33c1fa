"""
Text cleanup helpers for model output.
"""
from __future__ import annotations

import re

# First fenced block, optionally tagged json / yaml / yml
_MD_CODE_BLOCK_RE = re.compile(r'```(?:json|yaml|yml)?\s*([\s\S]*?)```', re.IGNORECASE)


def extract_payload(content: str) -> str:
    """
    Recover the structured payload from raw model text.

    Models often wrap JSON/YAML in a markdown code fence; if one is present
    its trimmed interior is returned, otherwise the trimmed text itself.
    """
    text = (content or "").strip()

    match = _MD_CODE_BLOCK_RE.search(text)
    if match:
        text = match.group(1).strip()

    return text
