from __future__ import annotations

from typing import Dict, List, Mapping, Sequence, Tuple

from catering.config import ACCOMMODATED_LABEL, OTHERS_LABEL
from catering.models import Column, DateEntry, Person, Section, Slot


def plan_columns(dates: Sequence[DateEntry], slots: Sequence[Slot]) -> Tuple[Column, ...]:
    """Date-major, slot-minor cross product followed by the Total column.

    The plan never looks at attendance, so dates and slots without any
    recorded portions still get their columns.
    """
    columns: List[Column] = []
    for date_index, date in enumerate(dates):
        for slot in slots:
            columns.append(Column(index=len(columns), date_index=date_index, date=date, slot=slot))
    columns.append(Column(index=len(columns), is_total=True))
    return tuple(columns)


def column_lookup(columns: Sequence[Column]) -> Dict[Tuple[object, int], int]:
    """Map (instant, slot id) to a column index; the first date block wins for repeated instants."""
    lookup: Dict[Tuple[object, int], int] = {}
    for column in columns:
        if column.is_total:
            continue
        lookup.setdefault((column.date.instant, column.slot.slot_id), column.index)
    return lookup


def sort_people(people: Sequence[Person]) -> List[Person]:
    # Stable: people that compare equal keep directory order.
    return sorted(people, key=lambda p: p.sort_key())


def plan_sections(directory: Mapping[str, Person]) -> Tuple[Section, ...]:
    accommodated = sort_people([p for p in directory.values() if p.accommodated])
    others = sort_people([p for p in directory.values() if not p.accommodated])

    sections: List[Section] = []
    for label, members in ((ACCOMMODATED_LABEL, accommodated), (OTHERS_LABEL, others)):
        if members:
            sections.append(Section(label=label, person_ids=tuple(p.person_id for p in members)))
    return tuple(sections)
