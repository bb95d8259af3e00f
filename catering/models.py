from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Iterator, List, Mapping, Optional, Tuple

import pandas as pd

from catering.errors import RenderError


@dataclass(frozen=True)
class Slot:
    slot_id: int
    sort_key: float
    abbreviation: str
    name: str
    location: str = ""

    @property
    def field_name(self) -> str:
        """Key carrying this slot's quantity on raw attendance rows, e.g. ``slot3``."""
        return f"slot{self.slot_id}"


@dataclass(frozen=True)
class DateEntry:
    instant: pd.Timestamp
    description: str = ""

    @property
    def label(self) -> str:
        # "Wed 6 Aug"
        return f"{self.instant:%a} {self.instant.day} {self.instant:%b}"

    @property
    def iso(self) -> str:
        return self.instant.isoformat()


@dataclass(frozen=True)
class Person:
    person_id: str
    name: str
    company: str = ""
    role: str = ""
    accommodated: bool = False

    def sort_key(self) -> Tuple[str, str, str]:
        return (self.company.casefold(), self.name.casefold(), self.role.casefold())


@dataclass(frozen=True)
class AttendanceRecord:
    person_id: str
    instant: Optional[pd.Timestamp]
    accommodated: bool = False
    quantities: Mapping[int, int] = field(default_factory=dict)


@dataclass(frozen=True)
class NormalizedInput:
    event_name: str
    dates: Tuple[DateEntry, ...]
    slots: Tuple[Slot, ...]
    catalogs: Tuple[Tuple[Mapping[str, object], ...], ...]
    records: Tuple[AttendanceRecord, ...]


@dataclass(frozen=True)
class Column:
    index: int
    date_index: Optional[int] = None
    date: Optional[DateEntry] = None
    slot: Optional[Slot] = None
    is_total: bool = False

    @property
    def label(self) -> str:
        if self.is_total:
            return "Total"
        return f"{self.date.label} / {self.slot.abbreviation}"


@dataclass(frozen=True)
class Section:
    label: str
    person_ids: Tuple[str, ...]


@dataclass(frozen=True)
class LegendRow:
    name: str
    abbreviation: str
    location: str


@dataclass(frozen=True)
class DateBlock:
    date: DateEntry
    columns: Tuple[Column, ...]

    @property
    def span(self) -> int:
        return len(self.columns)


@dataclass(frozen=True)
class CanonicalGrid:
    event_name: str
    dates: Tuple[DateEntry, ...]
    slots: Tuple[Slot, ...]
    columns: Tuple[Column, ...]
    sections: Tuple[Section, ...]
    people: Mapping[str, Person]
    cells: Mapping[Tuple[str, int], int]
    row_totals: Mapping[str, int]
    column_totals: Mapping[int, int]
    grand_total: int
    legend: Tuple[LegendRow, ...] = ()

    def __post_init__(self) -> None:
        for name in ("people", "cells", "row_totals", "column_totals"):
            value = getattr(self, name)
            if not isinstance(value, MappingProxyType):
                object.__setattr__(self, name, MappingProxyType(dict(value)))

    @property
    def data_columns(self) -> Tuple[Column, ...]:
        return tuple(c for c in self.columns if not c.is_total)

    @property
    def total_column(self) -> Column:
        return self.columns[-1]

    @property
    def person_ids(self) -> List[str]:
        return [pid for section in self.sections for pid in section.person_ids]

    def date_blocks(self) -> List[DateBlock]:
        """Group the data columns by date, keeping dates that have no slot columns."""
        by_date: Dict[int, List[Column]] = {i: [] for i in range(len(self.dates))}
        for column in self.data_columns:
            by_date[column.date_index].append(column)
        return [DateBlock(date=d, columns=tuple(by_date[i])) for i, d in enumerate(self.dates)]

    def cell(self, person_id: str, column: Column) -> Optional[int]:
        return self.cells.get((person_id, column.index))

    def iter_rows(self) -> Iterator[Tuple[Section, Person]]:
        for section in self.sections:
            for pid in section.person_ids:
                yield section, self.people[pid]

    def verify(self) -> None:
        """Raise RenderError unless every total agrees with the cells."""
        known = set(self.people)
        seen: List[str] = self.person_ids
        if len(seen) != len(set(seen)):
            raise RenderError("a person appears in more than one section")
        if set(seen) != known:
            raise RenderError("sections do not cover the people directory")
        if not self.columns or not self.total_column.is_total:
            raise RenderError("column plan is missing the trailing Total column")

        cell_sum = sum(self.cells.values())
        col_sum = sum(self.column_totals.values())
        row_sum = sum(self.row_totals.values())
        if not (cell_sum == col_sum == row_sum == self.grand_total):
            raise RenderError(
                f"totals disagree: cells={cell_sum} columns={col_sum} rows={row_sum} grand={self.grand_total}"
            )
