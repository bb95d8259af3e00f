from __future__ import annotations

import copy
import re
from io import BytesIO

import pytest
from openpyxl import load_workbook

from catering.resources import load_assets


SAMPLE_PAYLOAD = {
    "eventName": "Summer Summit",
    "dates": [
        {"date": "2025-08-07T00:00:00.000Z", "description": "Main day"},
        {"date": "2025-08-06T00:00:00.000Z", "description": "Arrivals"},
    ],
    "slots": [
        {"slot": 2, "abb": "L", "name": "Lunch", "location": "Marquee"},
        {"slot": 1, "abb": "B", "name": "Breakfast", "location": "Hotel"},
        {"slot": 3, "abb": "D", "name": "Dinner", "location": "Great Hall"},
    ],
    "names": [
        {"id": "p1", "name": "Alice", "company": "Acme", "role": "Crew"},
        {"id": "p2", "name": "bob", "company": "acme", "role": "Driver"},
        {"id": "p3", "name": "Carol", "company": "Zeta", "role": ""},
    ],
    "tags": [
        {"id": "p1", "name": "Alice Override", "company": "Other"},
        {"id": "t1", "name": "Security Team", "company": "Guard Co"},
    ],
    "data": [
        {"name": "p1", "Date": "2025-08-06T00:00:00.000Z", "accommodated": True, "slot1": 1, "slot2": 1},
        {"name": "p1", "Date": "2025-08-07T00:00:00.000Z", "accommodated": False, "slot1": 1, "slot3": 2},
        {"name": "p2", "Date": "2025-08-06T00:00:00.000Z", "slot2": 1, "slot3": 1},
        {"name": "p2", "Date": "2025-08-06T00:00:00.000Z", "slot2": 2},
        {"name": "t1", "Date": "2025-08-07T00:00:00.000Z", "slot2": 5},
        {"name": "ghost", "Date": "2025-08-07T00:00:00.000Z", "slot1": 3, "slot2": -1, "slot3": "4"},
        {"name": "p4", "Date": "2025-08-06T00:00:00.000Z", "accommodated": True, "slot3": 0},
    ],
}

# Hand-checked expectations for SAMPLE_PAYLOAD.
# Columns: 0 Wed/B, 1 Wed/L, 2 Wed/D, 3 Thu/B, 4 Thu/L, 5 Thu/D, 6 Total.
EXPECTED_COLUMN_TOTALS = [1, 4, 1, 4, 5, 2]
EXPECTED_ROW_TOTALS = {"p1": 5, "p2": 4, "p3": 0, "t1": 5, "ghost": 3, "p4": 0}
EXPECTED_GRAND_TOTAL = 17
EXPECTED_SECTIONS = [("Accommodated", ("p4", "p1")), ("Others", ("ghost", "p2", "t1", "p3"))]

ALICE_PAYLOAD = {
    "eventName": "Tiny",
    "dates": [{"date": "2025-08-06"}],
    "slots": [
        {"slot": 2, "abb": "L", "name": "Lunch"},
        {"slot": 1, "abb": "B", "name": "Breakfast"},
    ],
    "names": [{"id": "alice", "name": "Alice"}],
    "tags": [],
    "data": [{"name": "alice", "Date": "2025-08-06", "accommodated": True, "slot1": 2}],
}


@pytest.fixture
def payload():
    return copy.deepcopy(SAMPLE_PAYLOAD)


@pytest.fixture
def alice_payload():
    return copy.deepcopy(ALICE_PAYLOAD)


@pytest.fixture(scope="session")
def assets():
    return load_assets()


_SUM_RE = re.compile(r"^=SUM\(([A-Z]+[0-9]+):([A-Z]+[0-9]+)\)$")


def load_sheet(xlsx_bytes: bytes):
    return load_workbook(BytesIO(xlsx_bytes)).active


def evaluate(ws, coordinate: str):
    """Evaluate the SUM-only formulas the spreadsheet renderer writes."""
    cell = ws[coordinate]
    value = cell.value
    if cell.data_type != "f":
        return value
    match = _SUM_RE.match(value)
    assert match, f"unexpected formula {value!r} in {coordinate}"
    total = 0
    for row in ws[f"{match.group(1)}:{match.group(2)}"]:
        for inner in row:
            resolved = evaluate(ws, inner.coordinate)
            if isinstance(resolved, (int, float)) and not isinstance(resolved, bool):
                total += resolved
    return total
