from __future__ import annotations

from typing import Any, Dict, List, Optional

from jinja2 import Environment, StrictUndefined, TemplateError
from markupsafe import Markup

from catering.config import ACCOMMODATED_LABEL, RenderOptions
from catering.errors import ConfigurationError, RenderError
from catering.models import CanonicalGrid


def _template_env() -> Environment:
    return Environment(
        autoescape=True,
        trim_blocks=True,
        lstrip_blocks=True,
        undefined=StrictUndefined,
    )


_ENV = _template_env()


def _section_class(label: str) -> str:
    return "accommodated" if label.lower() == ACCOMMODATED_LABEL.lower() else "others"


def build_html_context(grid: CanonicalGrid, options: RenderOptions) -> Dict[str, Any]:
    """Table view model with every aggregate recomputed from the cells, not copied from the grid."""
    data_columns = grid.data_columns
    blocks = grid.date_blocks()

    date_headers = [{"label": b.date.label, "span": b.span, "description": b.date.description} for b in blocks if b.span]
    slot_headers = [
        {"abbreviation": b_col.slot.abbreviation, "first": pos == 0}
        for b in blocks
        for pos, b_col in enumerate(b.columns)
    ]
    first_in_block = {b_col.index for b in blocks for b_col in b.columns[:1]}

    column_sums = {c.index: 0 for c in data_columns}
    row_sum_total = 0
    sections: List[Dict[str, Any]] = []
    for section in grid.sections:
        rows = []
        for pid in section.person_ids:
            person = grid.people[pid]
            cells = []
            row_total = 0
            for column in data_columns:
                value = grid.cells.get((pid, column.index))
                if value is not None:
                    row_total += value
                    column_sums[column.index] += value
                cells.append({"value": "" if value is None else value, "first": column.index in first_in_block})
            row_sum_total += row_total
            rows.append(
                {
                    "name": person.name,
                    "company": person.company,
                    "role": person.role,
                    "cells": cells,
                    "total": row_total,
                }
            )
        sections.append({"label": section.label, "css_class": _section_class(section.label), "rows": rows})

    grand_total = sum(column_sums.values())
    if grand_total != row_sum_total:
        raise RenderError(f"HTML totals disagree: columns={grand_total} rows={row_sum_total}")

    totals = [{"value": column_sums[c.index], "first": c.index in first_in_block} for c in data_columns]
    return {
        "event_name": grid.event_name,
        "subtitle": options.subtitle,
        "show_descriptions": options.show_descriptions,
        "date_headers": date_headers,
        "slot_headers": slot_headers,
        "sections": sections,
        "totals": totals,
        "grand_total": grand_total,
        "legend": grid.legend,
    }


def render_html(
    grid: CanonicalGrid,
    template: Optional[str],
    css: Optional[str],
    *,
    generated_at: str,
    excel_href: str = "",
    options: Optional[RenderOptions] = None,
) -> str:
    """Render the grid into the HTML snapshot template."""
    if not template or not template.strip():
        raise ConfigurationError("HTML template is missing or empty")
    if not css or not css.strip():
        raise ConfigurationError("CSS is missing or empty")
    options = options or RenderOptions()

    try:
        compiled = _ENV.from_string(template)
    except TemplateError as exc:
        raise ConfigurationError(f"HTML template could not be compiled: {exc}") from exc

    context = build_html_context(grid, options)
    try:
        return compiled.render(
            css=Markup(css),
            generated_at=generated_at,
            excel_href=excel_href,
            **context,
        )
    except TemplateError as exc:
        raise ConfigurationError(f"HTML template failed to render: {exc}") from exc
