import pytest
from openpyxl import Workbook

from catering.config import RenderOptions
from catering.errors import ConfigurationError, RenderError
from catering.grid import build_grid_from_payload
from catering.render_xlsx import SheetStyle, _set_text, render_workbook, sum_formula
from conftest import EXPECTED_COLUMN_TOTALS, EXPECTED_GRAND_TOTAL, evaluate, load_sheet


GENERATED = "Friday 1 Aug 2025, 10:05 AM"


@pytest.fixture
def sample_sheet(payload, assets):
    grid = build_grid_from_payload(payload)
    return grid, load_sheet(render_workbook(grid, assets.sheet_style, generated_at=GENERATED))


def test_header_block(sample_sheet):
    _, ws = sample_sheet
    assert ws["A1"].value == "Summer Summit"
    assert ws["A2"].value == "Catering Grid"
    assert ws["A3"].value == f"Generated {GENERATED}"
    assert ws["A4"].value is None
    assert [ws.cell(row=5, column=c).value for c in range(1, 4)] == ["Name", "Company", "Role"]


def test_date_headers_are_merged_per_block(sample_sheet):
    _, ws = sample_sheet
    merged = {str(r) for r in ws.merged_cells.ranges}
    assert {"D5:F5", "G5:I5", "D6:F6", "G6:I6"} <= merged
    assert ws["D5"].value == "Wed 6 Aug"
    assert ws["G5"].value == "Thu 7 Aug"
    assert ws["D6"].value == "Arrivals"
    assert ws["J5"].value == "Total"


def test_slot_row_and_sections(sample_sheet):
    _, ws = sample_sheet
    assert [ws.cell(row=7, column=c).value for c in range(4, 11)] == ["B", "L", "D", "B", "L", "D", "Total"]
    assert ws["A8"].value == "Accommodated"
    assert ws["A8"].font.bold
    assert ws["D7"].alignment.vertical == "center"
    assert ws["A16"].alignment.vertical == "center"
    assert [ws.cell(row=r, column=1).value for r in range(9, 16)] == [
        "p4",
        "Alice",
        "Others",
        "ghost",
        "bob",
        "Security Team",
        "Carol",
    ]


def test_person_cells_hold_numbers_and_blanks(sample_sheet):
    _, ws = sample_sheet
    # Alice: Wed B=1, Wed L=1, Thu B=1, Thu D=2
    assert [ws.cell(row=10, column=c).value for c in range(4, 10)] == [1, 1, None, 1, None, 2]
    assert ws["J10"].value == "=SUM(D10:I10)"


def test_formulas_evaluate_to_grid_totals(sample_sheet):
    grid, ws = sample_sheet
    assert ws["A16"].value == "TOTAL"
    for offset, expected in enumerate(EXPECTED_COLUMN_TOTALS):
        col = 4 + offset
        assert ws.cell(row=16, column=col).value == f"=SUM({ws.cell(row=8, column=col).column_letter}8:{ws.cell(row=15, column=col).column_letter}15)"
        assert evaluate(ws, ws.cell(row=16, column=col).coordinate) == expected
    assert evaluate(ws, "J16") == EXPECTED_GRAND_TOTAL
    assert evaluate(ws, "J10") == grid.row_totals["p1"]
    assert evaluate(ws, "J12") == grid.row_totals["ghost"]


def test_key_block(sample_sheet):
    _, ws = sample_sheet
    assert ws["A18"].value == "Key"
    assert [ws.cell(row=19, column=c).value for c in range(1, 4)] == ["Meal", "Abbreviation", "Location"]
    assert [ws.cell(row=r, column=1).value for r in range(20, 23)] == ["Breakfast", "Lunch", "Dinner"]
    assert ws["C21"].value == "Marquee"
    assert "C20:L20" in {str(r) for r in ws.merged_cells.ranges}
    assert ws["A20"].fill.fgColor.rgb == "FFEFEFEF"


def test_sheet_name_and_column_widths(payload, assets):
    grid = build_grid_from_payload(payload)
    options = RenderOptions(sheet_name="Catering")
    ws = load_sheet(render_workbook(grid, assets.sheet_style, generated_at=GENERATED, options=options))
    assert ws.title == "Catering"
    assert ws.column_dimensions["A"].width == 20
    assert ws.column_dimensions["D"].width == 4
    assert ws.column_dimensions["J"].width == 7


def test_description_row_can_be_hidden(payload, assets):
    grid = build_grid_from_payload(payload)
    options = RenderOptions(show_descriptions=False)
    ws = load_sheet(render_workbook(grid, assets.sheet_style, generated_at=GENERATED, options=options))
    assert ws["D6"].value == "B"
    assert ws["A7"].value == "Accommodated"


def test_no_slots_still_renders(alice_payload, assets):
    alice_payload["slots"] = []
    grid = build_grid_from_payload(alice_payload)
    ws = load_sheet(render_workbook(grid, assets.sheet_style, generated_at=GENERATED))
    assert ws["D5"].value == "Total"
    assert ws["A8"].value == "Accommodated"
    assert ws["A9"].value == "Alice"
    assert ws["D9"].value == 0
    assert ws["A10"].value == "TOTAL"
    assert ws["D10"].value == "=SUM(D8:D9)"
    assert evaluate(ws, "D10") == 0


def test_no_people_still_renders(alice_payload, assets):
    alice_payload["names"] = []
    alice_payload["data"] = []
    grid = build_grid_from_payload(alice_payload)
    ws = load_sheet(render_workbook(grid, assets.sheet_style, generated_at=GENERATED))
    assert ws["A8"].value == "TOTAL"
    assert ws["D8"].value == 0
    assert ws["F8"].value == 0


def test_missing_sheet_style_is_a_configuration_error(alice_payload):
    grid = build_grid_from_payload(alice_payload)
    with pytest.raises(ConfigurationError):
        render_workbook(grid, {}, generated_at=GENERATED)
    with pytest.raises(ConfigurationError):
        render_workbook(grid, None, generated_at=GENERATED)


def test_invalid_style_value():
    with pytest.raises(ConfigurationError, match="slot_column_width"):
        SheetStyle.from_mapping({"slot_column_width": "wide"})


def test_sum_formula_rejects_empty_range():
    assert sum_formula(4, 9, 6, 9) == "=SUM(D9:F9)"
    with pytest.raises(RenderError):
        sum_formula(5, 9, 4, 9)


def test_formula_like_names_stay_text():
    ws = Workbook().active
    cell = _set_text(ws, 1, 1, "=HYPERLINK(\"x\")")
    assert cell.data_type == "s"
    assert _set_text(ws, 2, 1, "").value is None
