from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Sequence, Tuple

import pandas as pd

from catering.layout import column_lookup
from catering.models import AttendanceRecord, Column


@dataclass(frozen=True)
class Aggregates:
    cells: Dict[Tuple[str, int], int]
    row_totals: Dict[str, int]
    column_totals: Dict[int, int]
    grand_total: int


def records_frame(records: Iterable[AttendanceRecord], columns: Sequence[Column]) -> pd.DataFrame:
    """Long frame of (person_id, column, quantity) for every placeable quantity."""
    lookup = column_lookup(columns)
    rows = []
    for record in records:
        if record.instant is None:
            continue
        for slot_id, qty in record.quantities.items():
            col = lookup.get((record.instant, slot_id))
            if col is not None:
                rows.append((record.person_id, col, int(qty)))
    return pd.DataFrame(rows, columns=["person_id", "column", "quantity"]).astype(
        {"person_id": "object", "column": "int64", "quantity": "int64"}
    )


def aggregate(
    records: Iterable[AttendanceRecord],
    columns: Sequence[Column],
    person_ids: Sequence[str],
) -> Aggregates:
    """Sum duplicate (person, date, slot) quantities and derive every total."""
    df = records_frame(records, columns)
    data_columns = [c.index for c in columns if not c.is_total]

    summed = df.groupby(["person_id", "column"], sort=False)["quantity"].sum()
    cells = {(str(pid), int(col)): int(qty) for (pid, col), qty in summed.items() if qty > 0}

    by_person = df.groupby("person_id", sort=False)["quantity"].sum()
    row_totals = {pid: int(by_person.get(pid, 0)) for pid in person_ids}

    by_column = df.groupby("column", sort=False)["quantity"].sum()
    column_totals = {col: int(by_column.get(col, 0)) for col in data_columns}

    return Aggregates(
        cells=cells,
        row_totals=row_totals,
        column_totals=column_totals,
        grand_total=int(df["quantity"].sum()),
    )
