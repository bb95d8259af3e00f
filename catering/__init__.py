"""Core (UI-agnostic) catering grid logic.

This package contains:
- payload normalization and the people directory
- column/row layout planning and aggregation into a canonical grid
- spreadsheet (openpyxl) and HTML snapshot (jinja2) renderers
- document sinks and the end-to-end pipeline
- chart helpers (Altair -> Vega-Lite spec dict)
"""
