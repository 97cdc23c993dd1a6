"""Helpers for document identifiers.

Every document is keyed by a UUID.  References between documents are stored as
text, and historical imports wrote them in the compact 32 character hex form
while current code writes the canonical hyphenated form.  Writers always go
through :func:`canonical_id`; readers that filter on a reference column use
:func:`id_variants` / :func:`expand_ids` so both representations match.
"""
from __future__ import annotations

import uuid
from typing import Iterable

from .exceptions import ValidationError

__all__ = [
    "parse_id",
    "canonical_id",
    "try_canonical_id",
    "id_variants",
    "expand_ids",
]


def parse_id(value, label: str = "ID") -> uuid.UUID:
    """Return ``value`` as a :class:`uuid.UUID` or raise ``ValidationError``."""
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value).strip())
    except (TypeError, ValueError, AttributeError) as exc:
        raise ValidationError(f"Valid {label} is required") from exc


def canonical_id(value, label: str = "ID") -> str:
    return str(parse_id(value, label))


def try_canonical_id(value) -> str | None:
    if value is None:
        return None
    try:
        return canonical_id(value)
    except ValidationError:
        return None


def id_variants(value) -> list[str]:
    """Return every stored representation of ``value``.

    Unparseable values are returned as-is so that a lookup with them simply
    matches nothing instead of failing.
    """
    if value is None:
        return []
    try:
        parsed = parse_id(value)
    except ValidationError:
        text = str(value).strip()
        return [text] if text else []
    return [str(parsed), parsed.hex]


def expand_ids(values: Iterable) -> list[str]:
    expanded: list[str] = []
    seen: set[str] = set()
    for value in values:
        for variant in id_variants(value):
            if variant not in seen:
                seen.add(variant)
                expanded.append(variant)
    return expanded
