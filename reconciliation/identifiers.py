"""
Purpose: Single source of truth for order and rider id spellings.
What it does:
Different backend endpoints spell the same entity differently ("ord-7", "ORD-7", "ORD-0007",
"r2", "RIDER-2", "RIDER-0002"). Everything that compares or keys ids goes through `normalize`
so that all accepted spellings collapse to one canonical form.

Unknown shapes are returned unchanged (identity fallback), so a new backend id format
degrades to exact-match comparison instead of raising.

To accept a new spelling, add its prefix to ID_PREFIXES. Nothing else should parse ids.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, Optional, Tuple


class IdKind(Enum):
    ORDER = "order"
    RIDER = "rider"


# Accepted prefixes per kind, compared case-insensitively.
# Longest first so "RIDER-" wins over "R" and "ORD-" over "ORD".
ID_PREFIXES: Dict[IdKind, Tuple[str, ...]] = {
    IdKind.ORDER: ("ORD-", "ORD_", "ORD"),
    IdKind.RIDER: ("RIDER-", "RIDER_", "RIDER", "R-", "R"),
}

CANONICAL_FORMATS: Dict[IdKind, str] = {
    IdKind.ORDER: "ORD-{:04d}",
    IdKind.RIDER: "RIDER-{:04d}",
}


def normalize(raw_id: str, kind: IdKind) -> str:
    """
    Map any accepted spelling of an id to its canonical form.

    normalize("ord-7", IdKind.ORDER)  -> "ORD-0007"
    normalize("r2", IdKind.RIDER)     -> "RIDER-0002"
    normalize("abc-9", IdKind.ORDER)  -> "abc-9"   (unknown shape, passed through)
    """
    candidate = str(raw_id).strip()
    upper = candidate.upper()

    for prefix in ID_PREFIXES[kind]:
        if not upper.startswith(prefix):
            continue
        digits = upper[len(prefix):]
        if digits.isdigit() and digits.isascii():
            return CANONICAL_FORMATS[kind].format(int(digits))

    return candidate


def normalize_order_id(raw_id: str) -> str:
    return normalize(raw_id, IdKind.ORDER)


def normalize_rider_id(raw_id: str) -> str:
    return normalize(raw_id, IdKind.RIDER)


def normalize_optional(raw_id: Optional[str], kind: IdKind) -> Optional[str]:
    """
    Same as normalize, but None and blank strings stay None (e.g. an unassigned order's rider).
    """
    if raw_id is None:
        return None
    if not str(raw_id).strip():
        return None
    return normalize(raw_id, kind)


def same_id(first: Optional[str], second: Optional[str], kind: IdKind) -> bool:
    return normalize_optional(first, kind) == normalize_optional(second, kind)
