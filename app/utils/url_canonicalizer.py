"""URL normalization for website and social links shown on a company profile."""

from __future__ import annotations

import re
from typing import Optional

# Placeholder values seen in imported company sheets
_PLACEHOLDERS = {"-", "--", "n/a", "na", "none", "null", "undefined"}
_HAS_SCHEME = re.compile(r"^https?://", re.IGNORECASE)


def normalize_url(raw_url: Optional[str], default_scheme: str = "https") -> Optional[str]:
    """Return a clickable URL for a stored website value, or None.

    Rules:
    - Empty values and placeholders ("-", "n/a", "null", ...) give None.
    - Values with an http(s) scheme are returned trimmed, otherwise as written.
    - Bare hosts (example.com/path) get the default scheme prepended.
    """
    if not raw_url or not raw_url.strip():
        return None

    url_text = raw_url.strip()
    if url_text.lower() in _PLACEHOLDERS:
        return None

    if _HAS_SCHEME.match(url_text):
        return url_text
    return f"{default_scheme}://{url_text}"
