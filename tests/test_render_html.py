import re

import pytest

from catering.config import RenderOptions
from catering.errors import ConfigurationError
from catering.grid import build_grid_from_payload
from catering.render_html import build_html_context, render_html
from conftest import EXPECTED_COLUMN_TOTALS, EXPECTED_GRAND_TOTAL


GENERATED = "Friday 1 Aug 2025, 10:05 AM"
_MEAL_TOTAL_RE = re.compile(r'class="total num meal-total(?: first-slot)?">(\d+)</td>')


def _render(payload, assets, **kwargs):
    grid = build_grid_from_payload(payload)
    return render_html(grid, assets.template, assets.css, generated_at=GENERATED, **kwargs)


def test_totals_row_matches_aggregates(payload, assets):
    html = _render(payload, assets)
    assert [int(v) for v in _MEAL_TOTAL_RE.findall(html)] == EXPECTED_COLUMN_TOTALS
    assert f'grand-total">{EXPECTED_GRAND_TOTAL}</td>' in html


def test_header_and_structure(payload, assets):
    html = _render(payload, assets, excel_href="Summer Summit_Catering_1.xlsx")
    assert "<h1>Summer Summit</h1>" in html
    assert f"Generated {GENERATED}" in html
    assert 'href="Summer Summit_Catering_1.xlsx"' in html
    assert 'colspan="3">TOTAL<' in html
    assert html.index("Wed 6 Aug") < html.index("Thu 7 Aug")
    assert html.index('section-header accommodated') < html.index('section-header others')
    assert html.count('class="person-row"') == 6
    assert ".left" in html


def test_empty_section_is_omitted(alice_payload, assets):
    alice_payload["data"][0]["accommodated"] = False
    html = _render(alice_payload, assets)
    assert "section-header accommodated" not in html
    assert "section-header others" in html


def test_text_is_escaped(alice_payload, assets):
    alice_payload["names"][0]["name"] = "<script>alert(1)</script>"
    alice_payload["eventName"] = "Tom & Jerry"
    html = _render(alice_payload, assets)
    assert "<script>alert(1)</script>" not in html
    assert "&lt;script&gt;" in html
    assert "Tom &amp; Jerry" in html


def test_context_recomputes_totals(payload):
    grid = build_grid_from_payload(payload)
    context = build_html_context(grid, RenderOptions())
    assert context["grand_total"] == EXPECTED_GRAND_TOTAL
    rows = [row for section in context["sections"] for row in section["rows"]]
    assert [row["total"] for row in rows] == [0, 5, 3, 4, 5, 0]
    assert context["slot_headers"][0]["first"] and not context["slot_headers"][1]["first"]
    assert context["slot_headers"][3]["first"]


def test_descriptions_can_be_hidden(payload, assets):
    html = _render(payload, assets, options=RenderOptions(show_descriptions=False))
    assert "class=\"date-desc\"" not in html


def test_empty_template_or_css_rejected(alice_payload, assets):
    grid = build_grid_from_payload(alice_payload)
    with pytest.raises(ConfigurationError):
        render_html(grid, "", assets.css, generated_at=GENERATED)
    with pytest.raises(ConfigurationError):
        render_html(grid, assets.template, "   ", generated_at=GENERATED)


def test_broken_template_is_a_configuration_error(alice_payload, assets):
    grid = build_grid_from_payload(alice_payload)
    with pytest.raises(ConfigurationError):
        render_html(grid, "{% for x in %}", assets.css, generated_at=GENERATED)
    with pytest.raises(ConfigurationError):
        render_html(grid, "{{ missing_variable }}", assets.css, generated_at=GENERATED)
