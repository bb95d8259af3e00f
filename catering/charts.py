from __future__ import annotations

from typing import Any, Dict

import altair as alt

from catering.grid import column_totals_frame
from catering.models import CanonicalGrid

alt.data_transformers.disable_max_rows()


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def portions_chart(grid: CanonicalGrid) -> alt.Chart:
    """Stacked bars of portions per date, one colour per slot in canonical slot order."""
    df = column_totals_frame(grid).drop(columns=["date"])
    slot_order = [s.abbreviation for s in grid.slots]
    date_order = [d.label for d in grid.dates]
    return (
        alt.Chart(df)
        .mark_bar()
        .encode(
            x=alt.X("date_label:N", title="Date", sort=date_order),
            y=alt.Y("sum(portions):Q", title="Portions"),
            color=alt.Color("slot:N", title="Slot", sort=slot_order),
            order=alt.Order("slot_order:Q"),
            tooltip=[
                alt.Tooltip("date_label:N", title="Date"),
                alt.Tooltip("slot:N", title="Slot"),
                alt.Tooltip("portions:Q", title="Portions"),
            ],
        )
    )
