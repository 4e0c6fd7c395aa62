from __future__ import annotations
import re
from typing import Optional

_JSON_FENCE_RE = re.compile(r"```(?:json)?\s*(.*?)\s*```", flags=re.DOTALL | re.IGNORECASE)


def clean_json(text: Optional[str]) -> str:
    """
    Best-effort extraction of a JSON payload from messy model output.

    Heuristic only: unwraps a fenced code block, then slices from the first
    opening bracket to the last matching closing bracket. Never raises;
    the caller's json.loads decides whether the result is usable.
    """
    if not text:
        return ""
    t = text.strip()

    m = _JSON_FENCE_RE.search(t)
    if m:
        t = m.group(1).strip()

    first_brace = t.find("{")
    first_bracket = t.find("[")
    if first_brace != -1 and (first_bracket == -1 or first_brace < first_bracket):
        last = t.rfind("}")
        if last > first_brace:
            return t[first_brace:last + 1]
    elif first_bracket != -1:
        last = t.rfind("]")
        if last > first_bracket:
            return t[first_bracket:last + 1]
    return t
