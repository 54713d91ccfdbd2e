"""Semantic comparison of opaque JSON payloads.

Documents are compared after parsing, so key order, whitespace and numeric
formatting (``10`` vs ``10.0`` vs ``1e1``) never count as a difference.
Top-level keys are the unit reported by :func:`conflicting_fields`; nested
objects and arrays take part in value equality (arrays are ordered).
"""

from __future__ import annotations

import json
import logging
from decimal import Decimal
from typing import Any, cast

log = logging.getLogger(__name__)

type Document = dict[str, Any]


class MalformedDocumentError(ValueError):
    """Raised when a payload is not a JSON object."""


def _is_blank(raw: str | None) -> bool:
    return raw is None or not raw.strip()


def parse_document(raw: str | None, *, exact_numbers: bool = True) -> Document:
    """Parse ``raw`` into a field-keyed mapping; blank input is an empty document.

    With ``exact_numbers`` floats are parsed as :class:`~decimal.Decimal` so that
    ``0.10`` and ``0.1`` compare equal without binary rounding.
    """

    if raw is None or _is_blank(raw):
        return {}
    try:
        loaded = json.loads(raw, parse_float=Decimal) if exact_numbers else json.loads(raw)
    except json.JSONDecodeError as exc:
        raise MalformedDocumentError(f"Payload is not valid JSON: {exc.msg}") from exc
    if not isinstance(loaded, dict):
        raise MalformedDocumentError("Payload must be a JSON object")
    return cast(Document, loaded)


def values_equal(left: object, right: object) -> bool:
    """Structural equality that keeps booleans apart from numbers."""

    if isinstance(left, bool) or isinstance(right, bool):
        return type(left) is type(right) and left == right
    if isinstance(left, int | Decimal) and isinstance(right, int | Decimal):
        return left == right
    if isinstance(left, dict) and isinstance(right, dict):
        left_map = cast(dict[str, object], left)
        right_map = cast(dict[str, object], right)
        if left_map.keys() != right_map.keys():
            return False
        return all(values_equal(left_map[key], right_map[key]) for key in left_map)
    if isinstance(left, list) and isinstance(right, list):
        left_items = cast(list[object], left)
        right_items = cast(list[object], right)
        if len(left_items) != len(right_items):
            return False
        return all(values_equal(a, b) for a, b in zip(left_items, right_items, strict=True))
    return type(left) is type(right) and left == right


def has_meaningful_difference(local_data: str | None, remote_data: str | None) -> bool:
    """Return whether two payloads disagree once parsed.

    Unparseable payloads fall back to a byte-for-byte comparison, so they only
    count as equal when the raw strings are identical.
    """

    if _is_blank(local_data) and _is_blank(remote_data):
        return False
    if _is_blank(local_data) or _is_blank(remote_data):
        return True

    try:
        local_doc = parse_document(local_data)
        remote_doc = parse_document(remote_data)
    except MalformedDocumentError:
        return local_data != remote_data

    return not values_equal(local_doc, remote_doc)


def conflicting_fields(local_data: str | None, remote_data: str | None) -> list[str]:
    """List top-level fields that differ or exist on one side only.

    Local keys come first in document order, followed by remote-only keys.
    """

    try:
        local_doc = parse_document(local_data)
        remote_doc = parse_document(remote_data)
    except MalformedDocumentError as exc:
        log.warning("Cannot compare fields of malformed payloads: %s", exc)
        return []

    fields = [
        key
        for key, value in local_doc.items()
        if key not in remote_doc or not values_equal(value, remote_doc[key])
    ]
    fields.extend(key for key in remote_doc if key not in local_doc)
    return fields


def merge_documents(local_data: str | None, remote_data: str | None) -> str:
    """Overlay local fields onto the remote document and serialize the result."""

    merged = parse_document(remote_data, exact_numbers=False)
    merged.update(parse_document(local_data, exact_numbers=False))
    return json.dumps(merged, separators=(",", ":"))
