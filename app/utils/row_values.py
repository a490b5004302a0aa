"""Value coercion and alias-tolerant key lookup for untyped source rows."""

from __future__ import annotations

import math
import re
from datetime import date, time
from decimal import Decimal
from uuid import UUID
from typing import Any, Iterable, List, Mapping, Optional, Sequence

GenericRow = Mapping[str, Any]

_NON_ALNUM = re.compile(r"[^a-z0-9]")
_LIST_SEPARATORS = re.compile(r"[,;|]")

_TRUE_TOKENS = {"true", "yes", "y", "1", "t"}
_FALSE_TOKENS = {"false", "no", "n", "0", "f"}


def normalize_key(key: Any) -> str:
    """Lower-case a field name and drop everything that is not a-z or 0-9."""
    return _NON_ALNUM.sub("", str(key).lower())


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value == "")


def resolve_candidate(row: GenericRow, candidates: Sequence[str]) -> Any:
    """Return the value of the first candidate alias present in ``row``.

    Candidates are tried in list order, not row order. A candidate matches a
    row key when both normalize to the same string, so ``Company_ID``,
    ``companyId`` and ``company_id`` are interchangeable. ``None`` and empty
    strings count as absent. Returns ``None`` when nothing matches.
    """
    if not row:
        return None

    by_key: dict[str, List[Any]] = {}
    for key, value in row.items():
        by_key.setdefault(normalize_key(key), []).append(value)

    for candidate in candidates:
        for value in by_key.get(normalize_key(candidate), ()):
            if not _is_blank(value):
                return value
    return None


def to_text_or_null(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, str):
        trimmed = value.strip()
        return trimmed or None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, Decimal)):
        return str(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            return None
        return str(int(value)) if value.is_integer() else repr(value)
    # Typed driver values (asyncpg returns these for date/uuid columns)
    if isinstance(value, (date, time)):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    return None


def to_number_or_null(value: Any) -> Optional[float]:
    """Coerce to a finite number or ``None``.

    Strings may carry thousands separators ("1,234.5"). Booleans are not
    numbers here.
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float, Decimal)):
        # Huge ints overflow; Decimal("sNaN") refuses conversion
        try:
            number = float(value)
        except (OverflowError, ValueError):
            return None
        if not math.isfinite(number):
            return None
        return value if isinstance(value, int) else number
    if isinstance(value, str):
        sanitized = value.replace(",", "").strip()
        if not sanitized or "_" in sanitized:
            return None
        try:
            parsed = float(sanitized)
        except ValueError:
            return None
        return parsed if math.isfinite(parsed) else None
    return None


def to_bool_or_null(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        token = value.strip().lower()
        if token in _TRUE_TOKENS:
            return True
        if token in _FALSE_TOKENS:
            return False
    return None


def to_text_list(value: Any) -> Optional[List[str]]:
    """Coerce an array column or a delimited string into a list of texts."""
    if isinstance(value, (list, tuple)):
        items: Iterable[Any] = value
    elif isinstance(value, str):
        items = _LIST_SEPARATORS.split(value)
    else:
        return None
    texts = [text for text in (to_text_or_null(item) for item in items) if text]
    return texts or None


def normalize_email(value: Optional[str]) -> str:
    return (value or "").strip().lower()


def normalize_name(value: Optional[str]) -> str:
    return (value or "").strip().lower()


def pick_first_text(*values: Optional[str]) -> Optional[str]:
    for value in values:
        trimmed = (value or "").strip()
        if trimmed:
            return trimmed
    return None
