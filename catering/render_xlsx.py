from __future__ import annotations

from dataclasses import dataclass
from io import BytesIO
from typing import Any, List, Mapping, Optional

from openpyxl import Workbook
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from catering.config import TOTAL_LABEL, RenderOptions
from catering.errors import ConfigurationError, RenderError
from catering.models import CanonicalGrid


IDENTITY_HEADERS = ("Name", "Company", "Role")
FIRST_DATA_COL = len(IDENTITY_HEADERS) + 1
TITLE_ROW = 1
HEADER_ROW = 5
TOTAL_ROW_LABEL = "TOTAL"
KEY_HEADERS = ("Meal", "Abbreviation", "Location")

BOLD = Font(bold=True)
CENTER = Alignment(horizontal="center", vertical="center")
CENTER_WRAP = Alignment(horizontal="center", vertical="center", wrap_text=True)
LEFT = Alignment(horizontal="left", vertical="center")


@dataclass(frozen=True)
class SheetStyle:
    identity_column_width: float = 20.0
    slot_column_width: float = 4.0
    total_column_width: float = 7.0
    title_font_size: float = 14.0
    description_font_size: float = 10.0
    description_row_height: float = 42.0
    legend_fill: str = "FFEFEFEF"
    legend_width: int = 12
    border_color: str = "FF000000"

    @classmethod
    def from_mapping(cls, raw: Optional[Mapping[str, Any]]) -> "SheetStyle":
        if not raw:
            raise ConfigurationError("Sheet style asset is missing or empty")
        defaults = cls()
        values = {}
        for name, default in defaults.__dict__.items():
            value = raw.get(name, default)
            try:
                values[name] = type(default)(value)
            except (TypeError, ValueError) as exc:
                raise ConfigurationError(f"Sheet style '{name}' has an invalid value: {value!r}") from exc
        return cls(**values)

    def side(self, weight: str) -> Side:
        return Side(style=weight, color=self.border_color)


def sum_formula(first_col: int, first_row: int, last_col: int, last_row: int) -> str:
    if first_col > last_col or first_row > last_row or min(first_col, first_row) < 1:
        raise RenderError(f"cannot build a SUM over an empty range ({first_col},{first_row})-({last_col},{last_row})")
    start = f"{get_column_letter(first_col)}{first_row}"
    end = f"{get_column_letter(last_col)}{last_row}"
    return f"=SUM({start}:{end})"


def _set_text(ws: Worksheet, row: int, col: int, value: object):
    cell = ws.cell(row=row, column=col)
    text = ILLEGAL_CHARACTERS_RE.sub("", "" if value is None else str(value))
    if not text:
        return cell
    cell.value = text
    # Names such as "=Bob" must stay text, not become formulas.
    if text.startswith("="):
        cell.data_type = "s"
    return cell


def _add_border(cell, **sides: Side) -> None:
    current = cell.border
    cell.border = Border(
        left=sides.get("left", current.left),
        right=sides.get("right", current.right),
        top=sides.get("top", current.top),
        bottom=sides.get("bottom", current.bottom),
    )


def _merge(ws: Worksheet, row: int, start_col: int, end_col: int) -> None:
    if end_col > start_col:
        ws.merge_cells(start_row=row, start_column=start_col, end_row=row, end_column=end_col)


def _write_header_block(ws: Worksheet, grid: CanonicalGrid, options: RenderOptions, style: SheetStyle, generated_at: str) -> None:
    _set_text(ws, TITLE_ROW, 1, grid.event_name).font = Font(bold=True, size=style.title_font_size)
    _set_text(ws, TITLE_ROW + 1, 1, options.subtitle)
    _set_text(ws, TITLE_ROW + 2, 1, f"Generated {generated_at}").font = BOLD


def _write_column_headers(ws: Worksheet, grid: CanonicalGrid, options: RenderOptions, style: SheetStyle) -> int:
    """Write date, description and slot header rows; return the slot row number."""
    total_col = FIRST_DATA_COL + len(grid.data_columns)
    blocks = [b for b in grid.date_blocks() if b.span]

    for offset, label in enumerate(IDENTITY_HEADERS):
        cell = _set_text(ws, HEADER_ROW, offset + 1, label)
        cell.font = BOLD
        cell.alignment = CENTER
    for block in blocks:
        start = FIRST_DATA_COL + block.columns[0].index
        end = start + block.span - 1
        _set_text(ws, HEADER_ROW, start, block.date.label)
        for col in range(start, end + 1):
            ws.cell(row=HEADER_ROW, column=col).font = BOLD
            ws.cell(row=HEADER_ROW, column=col).alignment = CENTER
        _merge(ws, HEADER_ROW, start, end)
    cell = _set_text(ws, HEADER_ROW, total_col, TOTAL_LABEL)
    cell.font = BOLD
    cell.alignment = CENTER

    row = HEADER_ROW + 1
    if options.show_descriptions:
        desc_font = Font(size=style.description_font_size)
        for block in blocks:
            start = FIRST_DATA_COL + block.columns[0].index
            end = start + block.span - 1
            _set_text(ws, row, start, block.date.description)
            for col in range(start, end + 1):
                ws.cell(row=row, column=col).font = desc_font
                ws.cell(row=row, column=col).alignment = CENTER_WRAP
            _merge(ws, row, start, end)
        ws.row_dimensions[row].height = style.description_row_height
        row += 1

    for column in grid.data_columns:
        _set_text(ws, row, FIRST_DATA_COL + column.index, column.slot.abbreviation)
    _set_text(ws, row, total_col, TOTAL_LABEL)
    for col in range(1, total_col + 1):
        cell = ws.cell(row=row, column=col)
        cell.font = BOLD
        cell.alignment = CENTER
        _add_border(cell, bottom=style.side("thin"))
    return row


def _write_body(ws: Worksheet, grid: CanonicalGrid, first_row: int) -> List[int]:
    """Section label rows followed by person rows; return the person row numbers."""
    data_columns = grid.data_columns
    total_col = FIRST_DATA_COL + len(data_columns)
    person_rows: List[int] = []
    row = first_row
    for section in grid.sections:
        label = _set_text(ws, row, 1, section.label)
        label.font = BOLD
        label.alignment = LEFT
        row += 1
        for pid in section.person_ids:
            person = grid.people[pid]
            for offset, value in enumerate((person.name, person.company, person.role)):
                _set_text(ws, row, offset + 1, value)
            for column in data_columns:
                qty = grid.cell(pid, column)
                cell = ws.cell(row=row, column=FIRST_DATA_COL + column.index)
                if qty is not None:
                    cell.value = qty
                cell.alignment = CENTER
            total = ws.cell(row=row, column=total_col)
            total.value = sum_formula(FIRST_DATA_COL, row, total_col - 1, row) if data_columns else 0
            total.font = BOLD
            total.alignment = CENTER
            person_rows.append(row)
            row += 1
    return person_rows


def _write_totals_row(ws: Worksheet, grid: CanonicalGrid, row: int, first_body_row: int, last_body_row: int) -> None:
    total_col = FIRST_DATA_COL + len(grid.data_columns)
    label = _set_text(ws, row, 1, TOTAL_ROW_LABEL)
    label.font = BOLD
    label.alignment = Alignment(vertical="center")
    has_rows = last_body_row >= first_body_row
    for col in range(FIRST_DATA_COL, total_col + 1):
        cell = ws.cell(row=row, column=col)
        cell.value = sum_formula(col, first_body_row, col, last_body_row) if has_rows else 0
        cell.font = BOLD
        cell.alignment = CENTER


def _apply_grid_borders(ws: Worksheet, grid: CanonicalGrid, style: SheetStyle, totals_row: int, last_body_row: Optional[int]) -> None:
    total_col = FIRST_DATA_COL + len(grid.data_columns)
    thin = style.side("thin")
    medium = style.side("medium")

    if last_body_row is not None:
        for col in range(1, total_col + 1):
            _add_border(ws.cell(row=last_body_row, column=col), bottom=thin)

    for block in grid.date_blocks():
        if not block.span:
            continue
        start = FIRST_DATA_COL + block.columns[0].index
        for row in range(HEADER_ROW, totals_row + 1):
            _add_border(ws.cell(row=row, column=start), left=thin)

    for row in range(HEADER_ROW, totals_row + 1):
        _add_border(ws.cell(row=row, column=total_col), left=medium, right=medium)
        _add_border(ws.cell(row=row, column=1), left=medium)
    for col in range(1, total_col + 1):
        _add_border(ws.cell(row=HEADER_ROW, column=col), top=medium)
        _add_border(ws.cell(row=totals_row, column=col), bottom=medium)


def _apply_column_widths(ws: Worksheet, grid: CanonicalGrid, style: SheetStyle) -> None:
    total_col = FIRST_DATA_COL + len(grid.data_columns)
    for col in range(1, total_col + 1):
        if col < FIRST_DATA_COL:
            width = style.identity_column_width
        elif col == total_col:
            width = style.total_column_width
        else:
            width = style.slot_column_width
        ws.column_dimensions[get_column_letter(col)].width = width


def _write_legend(ws: Worksheet, grid: CanonicalGrid, style: SheetStyle, start_row: int) -> None:
    width = max(style.legend_width, len(KEY_HEADERS))
    fill = PatternFill(fill_type="solid", fgColor=style.legend_fill)
    medium = style.side("medium")

    _set_text(ws, start_row, 1, "Key").font = BOLD
    for offset, header in enumerate(KEY_HEADERS):
        _set_text(ws, start_row + 1, offset + 1, header).font = Font(italic=True)

    row = start_row + 2
    for entry in grid.legend:
        for offset, value in enumerate((entry.name, entry.abbreviation, entry.location)):
            _set_text(ws, row, offset + 1, value)
        row += 1
    bottom = row - 1
    for r in range(start_row + 2, bottom + 1):
        _merge(ws, r, len(KEY_HEADERS), width)

    # Styling after merging, since merging resets the borders of the merged cells.
    for r in range(start_row, bottom + 1):
        for col in range(1, width + 1):
            ws.cell(row=r, column=col).fill = fill
        _add_border(ws.cell(row=r, column=1), left=medium)
        _add_border(ws.cell(row=r, column=width), right=medium)
    for col in range(1, width + 1):
        _add_border(ws.cell(row=start_row, column=col), top=medium)
        _add_border(ws.cell(row=bottom, column=col), bottom=medium)


def render_workbook(
    grid: CanonicalGrid,
    sheet_style: Optional[Mapping[str, Any]],
    *,
    generated_at: str,
    options: Optional[RenderOptions] = None,
) -> bytes:
    """Render the grid as an .xlsx document whose totals are SUM formulas."""
    style = SheetStyle.from_mapping(sheet_style)
    options = options or RenderOptions()

    wb = Workbook()
    ws = wb.active
    ws.title = options.sheet_name

    _write_header_block(ws, grid, options, style, generated_at)
    slot_row = _write_column_headers(ws, grid, options, style)
    first_body_row = slot_row + 1
    person_rows = _write_body(ws, grid, first_body_row)
    body_rows = len(person_rows) + len(grid.sections)
    last_body_row = first_body_row + body_rows - 1
    totals_row = last_body_row + 1
    _write_totals_row(ws, grid, totals_row, first_body_row, last_body_row)

    _apply_grid_borders(ws, grid, style, totals_row, last_body_row if body_rows else None)
    _apply_column_widths(ws, grid, style)
    _write_legend(ws, grid, style, totals_row + 2)
    ws.freeze_panes = ws.cell(row=first_body_row, column=FIRST_DATA_COL)

    buffer = BytesIO()
    wb.save(buffer)
    return buffer.getvalue()
