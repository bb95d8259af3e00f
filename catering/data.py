from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from catering.config import DEFAULT_EVENT_NAME
from catering.errors import ValidationError
from catering.models import AttendanceRecord, DateEntry, NormalizedInput, Slot


logger = logging.getLogger(__name__)

PAYLOAD_LIST_KEYS = ("dates", "slots", "names", "tags", "data")
PERSON_ID_KEY = "name"
RECORD_DATE_KEY = "Date"


def as_text(value: object) -> str:
    if value is None:
        return ""
    try:
        if pd.isna(value):
            return ""
    except (TypeError, ValueError):
        pass
    return str(value).strip()


def normalize_person_id(value: object) -> Optional[str]:
    text = as_text(value)
    return text or None


def parse_instant(value: object) -> Optional[pd.Timestamp]:
    """Parse an ISO-8601 value into a UTC timestamp; None when it is blank or unparseable."""
    if value is None or as_text(value) == "":
        return None
    try:
        ts = pd.Timestamp(value)
    except (ValueError, TypeError):
        return None
    if pd.isna(ts):
        return None
    if ts.tzinfo is None:
        return ts.tz_localize("UTC")
    return ts.tz_convert("UTC")


def require_list(payload: Mapping[str, Any], key: str) -> List[Any]:
    value = payload.get(key, [])
    if value is None:
        value = []
    if not isinstance(value, (list, tuple)):
        raise ValidationError(f"Invalid or missing '{key}': expected a list")
    return list(value)


def normalize_dates(raw_dates: Sequence[Any]) -> Tuple[DateEntry, ...]:
    entries: List[DateEntry] = []
    for raw in raw_dates:
        if not isinstance(raw, Mapping) or not raw.get("date"):
            continue
        instant = parse_instant(raw.get("date"))
        if instant is None:
            raise ValidationError(f"Unparseable date in 'dates': {raw.get('date')!r}")
        entries.append(DateEntry(instant=instant, description=as_text(raw.get("description"))))
    if not entries:
        raise ValidationError("Missing 'dates' array in payload")
    # sorted() is stable, so equal instants keep their input order.
    return tuple(sorted(entries, key=lambda d: d.instant))


def _as_slot_id(value: object) -> Optional[int]:
    if isinstance(value, (bool, np.bool_)):
        return None
    number = pd.to_numeric(pd.Series([value], dtype=object), errors="coerce").iloc[0]
    if pd.isna(number) or not np.isfinite(number) or float(number) != int(number):
        return None
    return int(number)


def normalize_slots(raw_slots: Sequence[Any]) -> Tuple[Slot, ...]:
    slots: List[Slot] = []
    seen: set[int] = set()
    for raw in raw_slots:
        if not isinstance(raw, Mapping):
            raise ValidationError("Each entry in 'slots' must be an object")
        slot_id = _as_slot_id(raw.get("slot"))
        if slot_id is None:
            raise ValidationError(f"Slot is missing an integer 'slot' id: {dict(raw)!r}")
        if slot_id in seen:
            raise ValidationError(f"Duplicate slot id {slot_id} in 'slots'")
        seen.add(slot_id)

        sort_key = pd.to_numeric(pd.Series([raw.get("sort", slot_id)], dtype=object), errors="coerce").iloc[0]
        if pd.isna(sort_key):
            sort_key = slot_id
        slots.append(
            Slot(
                slot_id=slot_id,
                sort_key=float(sort_key),
                abbreviation=as_text(raw.get("abb")),
                name=as_text(raw.get("name")),
                location=as_text(raw.get("location")),
            )
        )
    return tuple(sorted(slots, key=lambda s: s.sort_key))


# Largest whole number a float64 holds exactly; larger quantities are absent.
MAX_QUANTITY = 2**53


def _as_quantity(value: object) -> Optional[int]:
    if isinstance(value, (bool, np.bool_)) or not isinstance(value, (int, float, np.integer, np.floating)):
        return None
    number = float(value)
    if not np.isfinite(number) or number <= 0 or number % 1 or number > MAX_QUANTITY:
        return None
    return int(number)


def coerce_quantities(values: pd.Series) -> pd.Series:
    """Positive whole JSON numbers survive as ints; strings, booleans and everything else become <NA>."""
    return pd.Series([_as_quantity(v) for v in values], index=values.index, dtype="Int64")


def normalize_records(raw_rows: Sequence[Any], slots: Sequence[Slot]) -> Tuple[AttendanceRecord, ...]:
    rows = [r for r in raw_rows if isinstance(r, Mapping)]
    if len(rows) != len(raw_rows):
        logger.warning("Dropped %d attendance rows that were not objects", len(raw_rows) - len(rows))
    if not rows:
        return ()

    df = pd.DataFrame.from_records([dict(r) for r in rows])
    # Ids come from the raw rows; a column with gaps would turn 42 into 42.0.
    df["_person_id"] = pd.Series([normalize_person_id(r.get(PERSON_ID_KEY)) for r in rows], index=df.index, dtype=object)
    missing_id = df["_person_id"].isna()
    if missing_id.any():
        logger.warning("Dropped %d attendance rows without a person id", int(missing_id.sum()))
        df = df[~missing_id].reset_index(drop=True)

    quantities: Dict[int, pd.Series] = {}
    for slot in slots:
        if slot.field_name in df.columns:
            quantities[slot.slot_id] = coerce_quantities(df[slot.field_name])

    raw_dates = df.get(RECORD_DATE_KEY, pd.Series([None] * len(df)))
    raw_flags = df.get("accommodated", pd.Series([None] * len(df)))

    records: List[AttendanceRecord] = []
    unparsed_dates = 0
    for pos in range(len(df)):
        instant = parse_instant(raw_dates.iloc[pos])
        if instant is None:
            unparsed_dates += 1
        per_slot = {
            slot_id: int(series.iloc[pos]) for slot_id, series in quantities.items() if not pd.isna(series.iloc[pos])
        }
        records.append(
            AttendanceRecord(
                person_id=df["_person_id"].iloc[pos],
                instant=instant,
                accommodated=raw_flags.iloc[pos] is True or raw_flags.iloc[pos] is np.True_,
                quantities=per_slot,
            )
        )
    if unparsed_dates:
        logger.warning("%d attendance rows have no usable 'Date'; their quantities are not placed", unparsed_dates)
    return tuple(records)


def normalize_catalog(raw_people: Iterable[Any]) -> Tuple[Mapping[str, object], ...]:
    return tuple(p for p in raw_people if isinstance(p, Mapping))


def normalize_payload(payload: Mapping[str, Any]) -> NormalizedInput:
    if not isinstance(payload, Mapping):
        raise ValidationError("Payload must be a JSON object")
    lists = {key: require_list(payload, key) for key in PAYLOAD_LIST_KEYS}

    event_name = as_text(payload.get("eventName")) or DEFAULT_EVENT_NAME
    dates = normalize_dates(lists["dates"])
    slots = normalize_slots(lists["slots"])
    records = normalize_records(lists["data"], slots)
    return NormalizedInput(
        event_name=event_name,
        dates=dates,
        slots=slots,
        catalogs=(normalize_catalog(lists["names"]), normalize_catalog(lists["tags"])),
        records=records,
    )
