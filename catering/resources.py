from __future__ import annotations

import json
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from catering.config import CSS_NAME, HTML_TEMPLATE_NAME, SHEET_STYLE_NAME, get_settings
from catering.errors import ConfigurationError


_LEFT_RULE_RE = re.compile(r"\.left\s*\{[^}]*text-align\s*:\s*left", re.IGNORECASE)


@dataclass(frozen=True)
class PivotAssets:
    template: str
    css: str
    sheet_style: Mapping[str, Any]


def read_required_text(path: Path, what: str) -> str:
    if not path.is_file():
        raise ConfigurationError(f"{what} not found at {path}")
    text = path.read_text(encoding="utf-8").strip()
    if not text:
        raise ConfigurationError(f"{what} at {path} is empty")
    return text


def ensure_left_rule(css: str) -> str:
    if _LEFT_RULE_RE.search(css):
        return css
    return css + "\n.left { text-align: left; }\n"


def parse_sheet_style(text: str, *, source: str = "sheet style") -> Dict[str, Any]:
    try:
        style = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"{source} is not valid JSON: {exc}") from exc
    if not isinstance(style, dict) or not style:
        raise ConfigurationError(f"{source} must be a non-empty JSON object")
    return style


def load_assets(
    assets_dir: Optional[Path] = None,
    *,
    template_path: Optional[Path] = None,
    css_path: Optional[Path] = None,
    style_path: Optional[Path] = None,
) -> PivotAssets:
    base = Path(assets_dir) if assets_dir is not None else get_settings().assets_dir
    template = read_required_text(template_path or base / HTML_TEMPLATE_NAME, "HTML template")
    css = read_required_text(css_path or base / CSS_NAME, "CSS file")
    style_file = style_path or base / SHEET_STYLE_NAME
    sheet_style = parse_sheet_style(read_required_text(style_file, "Sheet style"), source=str(style_file))
    return PivotAssets(template=template, css=ensure_left_rule(css), sheet_style=sheet_style)
