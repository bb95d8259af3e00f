from __future__ import annotations

from typing import Any, List, Mapping

import pandas as pd

from catering.aggregate import aggregate
from catering.config import TOTAL_LABEL
from catering.data import normalize_payload
from catering.directory import resolve_directory
from catering.layout import plan_columns, plan_sections
from catering.legend import build_legend
from catering.models import CanonicalGrid, NormalizedInput


def build_grid(normalized: NormalizedInput) -> CanonicalGrid:
    directory = resolve_directory(normalized.catalogs, normalized.records)
    columns = plan_columns(normalized.dates, normalized.slots)
    sections = plan_sections(directory)
    person_ids = [pid for section in sections for pid in section.person_ids]
    totals = aggregate(normalized.records, columns, person_ids)

    grid = CanonicalGrid(
        event_name=normalized.event_name,
        dates=normalized.dates,
        slots=normalized.slots,
        columns=columns,
        sections=sections,
        people=directory,
        cells=totals.cells,
        row_totals=totals.row_totals,
        column_totals=totals.column_totals,
        grand_total=totals.grand_total,
        legend=build_legend(normalized.slots),
    )
    grid.verify()
    return grid


def build_grid_from_payload(payload: Mapping[str, Any]) -> CanonicalGrid:
    return build_grid(normalize_payload(payload))


def grid_to_frame(grid: CanonicalGrid) -> pd.DataFrame:
    """Flatten the grid into one row per person with (date, slot) MultiIndex columns."""
    data_columns = grid.data_columns
    keys = [(c.date.label, c.slot.abbreviation) for c in data_columns] + [(TOTAL_LABEL, "")]
    records: List[List[Any]] = []
    index: List[tuple] = []
    for section, person in grid.iter_rows():
        index.append((section.label, person.name, person.company, person.role))
        values: List[Any] = [grid.cell(person.person_id, c) for c in data_columns]
        records.append(values + [grid.row_totals.get(person.person_id, 0)])

    frame = pd.DataFrame(
        records,
        columns=pd.MultiIndex.from_tuples(keys, names=["date", "slot"]),
        index=pd.MultiIndex.from_arrays(
            [list(level) for level in zip(*index)] if index else [[], [], [], []],
            names=["section", "name", "company", "role"],
        ),
    )
    return frame.astype("Int64")


def column_totals_frame(grid: CanonicalGrid) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "date": c.date.instant,
                "date_label": c.date.label,
                "slot": c.slot.abbreviation,
                "slot_order": position,
                "portions": grid.column_totals.get(c.index, 0),
            }
            for position, c in enumerate(grid.data_columns)
        ],
        columns=["date", "date_label", "slot", "slot_order", "portions"],
    )
