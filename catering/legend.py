from __future__ import annotations

from typing import Sequence, Tuple

from catering.models import LegendRow, Slot


def build_legend(slots: Sequence[Slot]) -> Tuple[LegendRow, ...]:
    """Project the slot catalog, already in canonical order, into key rows."""
    return tuple(LegendRow(name=s.name, abbreviation=s.abbreviation, location=s.location) for s in slots)
