"""Record creation and editing.

Every edit produces a new record whose derived fields have been recomputed
from scratch; records are never patched in place.
"""

from __future__ import annotations

import math
import secrets
import string
from dataclasses import replace
from datetime import date
from typing import Any, Collection, Mapping, Optional

from core.bidding_record import (
    BOOLEAN_FIELDS,
    DATE_FIELDS,
    EDITABLE_FIELDS,
    INTEGER_FIELDS,
    NUMERIC_FIELDS,
    BiddingRecord,
    StatusDisputa,
    blank_record,
    canonical_field_name,
)
from core.errors import UnknownFieldError
from core.metrics import refresh_derived

ID_LENGTH = 9
_ID_ALPHABET = string.digits + string.ascii_lowercase
_TRUTHY = {"true", "on", "1", "yes", "sim", "s"}


def generate_id(existing_ids: Collection[str] = ()) -> str:
    """Return a short random base-36 id not present in ``existing_ids``."""
    while True:
        candidate = "".join(secrets.choice(_ID_ALPHABET) for _ in range(ID_LENGTH))
        if candidate not in existing_ids:
            return candidate


def _parse_number(raw: Any) -> float:
    if isinstance(raw, bool):
        return int(raw)
    if isinstance(raw, (int, float)):
        number = raw
    else:
        text = str(raw if raw is not None else "").strip().replace(" ", "")
        if "," in text:
            # pt-BR notation: 1.234,56
            text = text.replace(".", "").replace(",", ".")
        try:
            number = float(text)
        except ValueError:
            return 0
    if isinstance(number, float) and not math.isfinite(number):
        return 0
    return number


def _parse_bool(raw: Any) -> bool:
    if isinstance(raw, str):
        return raw.strip().lower() in _TRUTHY
    return bool(raw)


def _parse_status(raw: Any) -> str:
    text = str(raw if raw is not None else "").strip()
    for status in StatusDisputa:
        if text.upper() in (status.value, status.name):
            return status.value
    return text


def coerce_field_value(field: str, raw: Any) -> Any:
    """Coerce a raw input value to the type stored for ``field``.

    Unparseable numbers become 0; there is no range validation.
    """
    if field in BOOLEAN_FIELDS:
        return _parse_bool(raw)
    if field in NUMERIC_FIELDS:
        number = _parse_number(raw)
        return int(number) if field in INTEGER_FIELDS else number
    if field == "status_disputa":
        return _parse_status(raw)
    if raw is None:
        return ""
    if field in DATE_FIELDS and isinstance(raw, date):
        return raw.isoformat()[:10]
    if isinstance(raw, float) and raw.is_integer():
        return str(int(raw))
    return str(raw)


def apply_field_change(record: BiddingRecord, field: str, raw_value: Any) -> BiddingRecord:
    """Overwrite one field and recompute every derived field."""
    name = canonical_field_name(field)
    if name not in EDITABLE_FIELDS:
        raise UnknownFieldError(field)
    updated = replace(record, **{name: coerce_field_value(name, raw_value)})
    return refresh_derived(updated)


def apply_fields(record: BiddingRecord, changes: Mapping[str, Any]) -> BiddingRecord:
    """Full-record replacement from raw values.

    Keys that are unknown, derived or ``id`` are ignored, so a whole record
    posted back by a form can be applied as-is.
    """
    values = {}
    for key, raw_value in changes.items():
        name = canonical_field_name(key)
        if name in EDITABLE_FIELDS:
            values[name] = coerce_field_value(name, raw_value)
    return refresh_derived(replace(record, **values))


def create_record(
    raw_fields: Mapping[str, Any],
    *,
    existing_ids: Collection[str] = (),
    template: Optional[BiddingRecord] = None,
) -> BiddingRecord:
    """Create a record with a fresh id from the template plus ``raw_fields``."""
    base = template if template is not None else blank_record()
    record = apply_fields(base, raw_fields)
    return replace(record, id=generate_id(existing_ids))


def normalize_record(payload: Mapping[str, Any]) -> BiddingRecord:
    """Rebuild a stored record, coercing raw fields and recomputing derived ones."""
    record_id = ""
    for key, value in payload.items():
        if canonical_field_name(key) == "id" and value is not None:
            record_id = str(value)
    return apply_fields(BiddingRecord(id=record_id), payload)
