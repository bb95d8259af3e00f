from __future__ import annotations

import logging
from typing import Dict, FrozenSet, Iterable, Mapping, Sequence

from catering.data import as_text, normalize_person_id
from catering.models import AttendanceRecord, Person


logger = logging.getLogger(__name__)

UNKNOWN_NAME = "Unknown"


def accommodated_ids(records: Iterable[AttendanceRecord]) -> FrozenSet[str]:
    """Ids with at least one record flagged accommodated; a later False never clears it."""
    return frozenset(r.person_id for r in records if r.accommodated)


def merge_catalogs(catalogs: Sequence[Iterable[Mapping[str, object]]]) -> Dict[str, Dict[str, str]]:
    merged: Dict[str, Dict[str, str]] = {}
    for catalog in catalogs:
        for entry in catalog:
            pid = normalize_person_id(entry.get("id"))
            if pid is None or pid in merged:
                continue
            merged[pid] = {
                "name": as_text(entry.get("name")) or UNKNOWN_NAME,
                "company": as_text(entry.get("company")),
                "role": as_text(entry.get("role")),
            }
    return merged


def resolve_directory(
    catalogs: Sequence[Iterable[Mapping[str, object]]],
    records: Sequence[AttendanceRecord],
) -> Dict[str, Person]:
    """Merge people catalogs (first write wins) and synthesize ids only seen in attendance."""
    merged = merge_catalogs(catalogs)
    synthesized = 0
    for record in records:
        if record.person_id not in merged:
            merged[record.person_id] = {"name": record.person_id, "company": "", "role": ""}
            synthesized += 1
    if synthesized:
        logger.info("Synthesized %d directory entries for ids only present in attendance", synthesized)

    flagged = accommodated_ids(records)
    return {
        pid: Person(
            person_id=pid,
            name=attrs["name"],
            company=attrs["company"],
            role=attrs["role"],
            accommodated=pid in flagged,
        )
        for pid, attrs in merged.items()
    }
