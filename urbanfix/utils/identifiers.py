"""
Identifier validation.

Document ids and user ids must be usable as Firestore document ids and
path segments; anything else is rejected before touching storage.
"""

from urbanfix.core.errors import MalformedReferenceError
from typing import Optional
import re

_IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,128}$")


def is_valid_identifier(value: Optional[str]) -> bool:
    return isinstance(value, str) and bool(_IDENTIFIER_PATTERN.match(value))


def ensure_identifier(value: Optional[str], kind: str = "issue") -> str:
    """
    Usage:
        issue_id = ensure_identifier(issue_id)
        team_id = ensure_identifier(team_id, "team")

    Raises:
        MalformedReferenceError: value can never reference a document
    """
    if not is_valid_identifier(value):
        raise MalformedReferenceError(f"Malformed {kind} ID", {"kind": kind, "value": value})
    return value


def clean_text(value: Optional[str]) -> Optional[str]:
    """Strip surrounding whitespace; blank strings become None."""
    if value is None:
        return None
    value = value.strip()
    return value or None
