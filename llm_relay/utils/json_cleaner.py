"""
Post-processing for model output that is expected to be JSON
"""

import re

_JSON_FENCE_OPEN = re.compile(r"```json\s*", re.IGNORECASE)
_FENCE_CLOSE = re.compile(r"```\s*$", re.IGNORECASE)
_JSON_BODY = re.compile(r"\{[\s\S]*\}|\[[\s\S]*\]")


def clean_json_response(text: str) -> str:
    """Strip markdown fences and surrounding prose from a JSON answer.

    The outermost object or array found in the text is returned. Text with no
    JSON-looking body is returned trimmed but otherwise untouched.
    """
    text = _JSON_FENCE_OPEN.sub("", text)
    text = _FENCE_CLOSE.sub("", text)
    text = text.strip()

    match = _JSON_BODY.search(text)
    if match:
        return match.group(0)

    return text
