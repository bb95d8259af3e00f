from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional

import pandas as pd

from catering.config import HTML_CONTENT_TYPE, XLSX_CONTENT_TYPE, RenderOptions
from catering.grid import build_grid_from_payload
from catering.models import CanonicalGrid
from catering.render_html import render_html
from catering.render_xlsx import render_workbook
from catering.resources import PivotAssets, load_assets
from catering.sink import DocumentSink, build_base_name


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenderedDocuments:
    grid: CanonicalGrid
    base_name: str
    xlsx_name: str
    html_name: str
    xlsx: bytes
    html: str


@dataclass(frozen=True)
class PivotResult:
    xlsx_location: str
    html_location: str
    base_name: str
    grand_total: int


def resolve_now(now: Optional[Any], options: RenderOptions) -> pd.Timestamp:
    ts = pd.Timestamp.now(tz="UTC") if now is None else pd.Timestamp(now)
    if ts.tzinfo is None:
        ts = ts.tz_localize("UTC")
    return ts.tz_convert(options.timezone)


def format_generated_at(ts: pd.Timestamp, options: RenderOptions) -> str:
    """``Wednesday 6 Aug 2025, 3:04 PM``."""
    hour = ts.hour % 12 or 12
    return ts.strftime(options.generated_at_format.format(day=ts.day, hour=hour))


def build_documents(
    payload: Mapping[str, Any],
    *,
    assets: Optional[PivotAssets] = None,
    options: Optional[RenderOptions] = None,
    now: Optional[Any] = None,
    href_for: Optional[Callable[[str], str]] = None,
) -> RenderedDocuments:
    """Build the canonical grid once and render both documents from it."""
    options = options or RenderOptions()
    assets = assets or load_assets()

    grid = build_grid_from_payload(payload)
    ts = resolve_now(now, options)
    generated_at = format_generated_at(ts, options)
    base_name = build_base_name(grid.event_name, ts)
    xlsx_name = f"{base_name}.xlsx"
    html_name = f"{base_name}.html"

    xlsx = render_workbook(grid, assets.sheet_style, generated_at=generated_at, options=options)
    html = render_html(
        grid,
        assets.template,
        assets.css,
        generated_at=generated_at,
        excel_href=href_for(xlsx_name) if href_for else xlsx_name,
        options=options,
    )
    logger.info(
        "Built catering grid for %r: %d dates, %d slots, %d people, grand total %d",
        grid.event_name,
        len(grid.dates),
        len(grid.slots),
        len(grid.people),
        grid.grand_total,
    )
    return RenderedDocuments(
        grid=grid,
        base_name=base_name,
        xlsx_name=xlsx_name,
        html_name=html_name,
        xlsx=xlsx,
        html=html,
    )


def generate_documents(
    payload: Mapping[str, Any],
    sink: DocumentSink,
    *,
    assets: Optional[PivotAssets] = None,
    options: Optional[RenderOptions] = None,
    now: Optional[Any] = None,
) -> PivotResult:
    """Render both documents, then hand them to the sink; nothing is written if rendering fails."""
    # The spreadsheet link comes from its name alone, so it is known before anything is written.
    docs = build_documents(payload, assets=assets, options=options, now=now, href_for=sink.href)

    xlsx_location = sink.write(docs.xlsx_name, docs.xlsx, XLSX_CONTENT_TYPE)
    html_location = sink.write(docs.html_name, docs.html, HTML_CONTENT_TYPE)
    return PivotResult(
        xlsx_location=xlsx_location,
        html_location=html_location,
        base_name=docs.base_name,
        grand_total=docs.grid.grand_total,
    )
