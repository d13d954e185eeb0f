"""
Tracking codes for PQRS records.

A code is the two-letter category prefix followed by six digits taken from
the record id: last 8 hex chars of the UUID, mod 1,000,000, zero padded.

    derive_code("Queja", "a1b2c3d4-e5f6-7890-abcd-ef0123456789") -> "QU751049"

Codes are derived on every read and never stored. Two records of the same
category can share a code; lookups resolve that by scan order.
"""

import re
from typing import Dict, Optional

PQRS_TYPES = ("Queja", "Reclamo", "Solicitud", "Felicitación", "Petición", "Sugerencia")

TYPE_PREFIX: Dict[str, str] = {
    "Felicitación": "FE",
    "Sugerencia": "SU",
    "Solicitud": "SO",
    "Petición": "PE",
    "Queja": "QU",
    "Reclamo": "RE",
}

# english names used by integrations
TYPE_ALIASES: Dict[str, str] = {
    "Compliment": "Felicitación",
    "Suggestion": "Sugerencia",
    "Request": "Solicitud",
    "Petition": "Petición",
    "Complaint": "Queja",
    "Claim": "Reclamo",
}

PREFIX_TYPE: Dict[str, str] = {prefix: t for t, prefix in TYPE_PREFIX.items()}

FALLBACK_PREFIX = "PQ"
CODE_DIGITS = 6
CODE_MODULUS = 10 ** CODE_DIGITS
MIN_CODE_LENGTH = 3

_HEX_RUN = re.compile(r"[0-9a-fA-F]+")


def canonical_type(category: str) -> Optional[str]:
    """Stored label for a category name (spanish label or english alias)."""
    if category in TYPE_PREFIX:
        return category
    return TYPE_ALIASES.get(category)


def prefix_for(category: str) -> str:
    label = canonical_type(category)
    return TYPE_PREFIX[label] if label else FALLBACK_PREFIX


def type_for_prefix(prefix: str) -> Optional[str]:
    return PREFIX_TYPE.get(prefix)


def derive_code(category: str, record_id: str) -> str:
    tail = str(record_id).replace("-", "")[-8:]
    num = _leading_hex(tail) % CODE_MODULUS
    return f"{prefix_for(category)}{num:0{CODE_DIGITS}d}"


def _leading_hex(text: str) -> int:
    # value of the leading hex run; 0 when there is none
    match = _HEX_RUN.match(text)
    return int(match.group(), 16) if match else 0


def with_code(row: dict) -> dict:
    """Copy of a pqrs row with its `code`; a stored code wins."""
    code = row.get("code") or derive_code(str(row.get("type") or ""), str(row.get("id") or ""))
    return {**row, "code": code}
