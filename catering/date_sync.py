from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Iterable, List, Optional

import pandas as pd

from catering.errors import ValidationError


@dataclass(frozen=True)
class DateSyncPlan:
    """Rows to delete and days to add so an event's date table covers exactly [start, end]."""

    start: date
    end: date
    rows_at_start: int
    to_delete: List[Any] = field(default_factory=list)
    to_add: List[date] = field(default_factory=list)

    @property
    def rows_final(self) -> int:
        return self.rows_at_start - len(self.to_delete) + len(self.to_add)

    def summary(self) -> dict:
        return {
            "startDate": self.start.isoformat(),
            "endDate": self.end.isoformat(),
            "rowsAtStart": self.rows_at_start,
            "rowsDeleted": len(self.to_delete),
            "rowsAdded": len(self.to_add),
            "rowsFinal": self.rows_final,
        }


def _as_day(value: Any, what: str) -> date:
    try:
        ts = pd.Timestamp(value)
    except (ValueError, TypeError) as exc:
        raise ValidationError(f"{what} is not a valid date: {value!r}") from exc
    if pd.isna(ts):
        raise ValidationError(f"{what} is missing")
    return ts.date()


def _existing_day(value: Any) -> Optional[date]:
    try:
        ts = pd.Timestamp(value)
    except (ValueError, TypeError):
        return None
    return None if pd.isna(ts) else ts.date()


def plan_date_sync(existing: Iterable[Any], start: Any, end: Any) -> DateSyncPlan:
    """Compare existing date rows against an inclusive day range.

    Existing rows whose day falls outside the range (or cannot be read) are
    deleted; days in the range with no existing row are added.
    """
    start_day = _as_day(start, "startDate")
    end_day = _as_day(end, "endDate")
    if start_day > end_day:
        raise ValidationError("Start date must not be after end date.")

    rows = list(existing)
    existing_days = set()
    to_delete: List[Any] = []
    for row in rows:
        day = _existing_day(row)
        if day is None or day < start_day or day > end_day:
            to_delete.append(row)
        else:
            existing_days.add(day)

    wanted = [ts.date() for ts in pd.date_range(start_day, end_day, freq="D")]
    to_add = [day for day in wanted if day not in existing_days]
    return DateSyncPlan(start=start_day, end=end_day, rows_at_start=len(rows), to_delete=to_delete, to_add=to_add)
