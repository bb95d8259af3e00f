from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import pandas as pd

from catering.errors import ValidationError


PACKAGE_DIR = Path(__file__).resolve().parent
DEFAULT_ASSETS_DIR = PACKAGE_DIR / "assets"
DEFAULT_OUTPUT_DIR = Path(__file__).resolve().parents[1] / "output"

HTML_TEMPLATE_NAME = "meals_pivot.html"
CSS_NAME = "meals_pivot.css"
SHEET_STYLE_NAME = "sheet_style.json"

XLSX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
HTML_CONTENT_TYPE = "text/html"

DEFAULT_EVENT_NAME = "Event"
ACCOMMODATED_LABEL = "Accommodated"
OTHERS_LABEL = "Others"
TOTAL_LABEL = "Total"


@dataclass(frozen=True)
class RenderOptions:
    subtitle: str = "Catering Grid"
    sheet_name: str = "Meals"
    show_descriptions: bool = True
    timezone: str = "Europe/London"
    generated_at_format: str = "%A {day} %b %Y, {hour}:%M %p"


@dataclass(frozen=True)
class Settings:
    assets_dir: Path = DEFAULT_ASSETS_DIR
    output_dir: Path = DEFAULT_OUTPUT_DIR
    log_level: str = "INFO"


def _as_bool(value: object, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in {"1", "true", "yes", "on"}:
        return True
    if text in {"0", "false", "no", "off"}:
        return False
    return default


def normalize_options(raw: Optional[dict]) -> RenderOptions:
    raw = raw or {}
    defaults = RenderOptions()

    subtitle = str(raw.get("subtitle") or defaults.subtitle).strip() or defaults.subtitle
    # Excel caps sheet titles at 31 characters.
    sheet_name = (str(raw.get("sheet_name") or defaults.sheet_name).strip() or defaults.sheet_name)[:31]
    timezone = str(raw.get("timezone") or defaults.timezone).strip() or defaults.timezone
    try:
        pd.Timestamp.now(tz=timezone)
    except (KeyError, ValueError, TypeError) as exc:
        raise ValidationError(f"Unknown timezone: {timezone!r}") from exc
    return RenderOptions(
        subtitle=subtitle,
        sheet_name=sheet_name,
        show_descriptions=_as_bool(raw.get("show_descriptions"), defaults.show_descriptions),
        timezone=timezone,
        generated_at_format=str(raw.get("generated_at_format") or defaults.generated_at_format),
    )


def get_settings() -> Settings:
    assets_dir = (os.getenv("CATERING_ASSETS_DIR") or "").strip()
    output_dir = (os.getenv("CATERING_OUTPUT_DIR") or "").strip()
    log_level = (os.getenv("LOG_LEVEL") or "INFO").strip().upper() or "INFO"
    return Settings(
        assets_dir=Path(assets_dir) if assets_dir else DEFAULT_ASSETS_DIR,
        output_dir=Path(output_dir) if output_dir else DEFAULT_OUTPUT_DIR,
        log_level=log_level,
    )
