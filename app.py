import json
from typing import Optional

import pandas as pd
import streamlit as st

from catering.charts import portions_chart
from catering.config import normalize_options
from catering.errors import CateringError
from catering.grid import grid_to_frame
from catering.pipeline import build_documents
from catering.resources import load_assets

# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .app-top-bar {padding: 6px 0 4px;border-bottom: 1px solid #e5e7eb;margin-bottom: 10px;}
        .app-top-bar .page-title {font-size: 1.4rem;font-weight: 700;color: #111827;}
        .chip-row {display: flex;flex-wrap: wrap;gap: 6px;margin-top: 6px;}
        .chip {background: #f3f4f6;border: 1px solid #e5e7eb;border-radius: 14px;padding: 4px 10px;font-size: 0.85rem;color: #374151;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


def format_grid_summary(dates: int, slots: int, people: int, grand_total: int) -> str:
    chips = [f"Dates: {dates}", f"Slots: {slots}", f"People: {people}", f"Portions: {grand_total}"]
    return "".join([f"<span class='chip'>{txt}</span>" for txt in chips])


@st.cache_resource
def cached_assets():
    return load_assets()


def read_payload(uploaded, pasted: str) -> Optional[dict]:
    raw = uploaded.getvalue().decode("utf-8") if uploaded is not None else pasted.strip()
    if not raw:
        return None
    return json.loads(raw)


# ---------- UI setup ----------
st.set_page_config(page_title="Catering Grid Preview", layout="wide")
inject_base_styles()
st.title("Catering Grid Preview")
st.caption("Paste or upload a meals payload to preview the grid and download both documents.")

with st.sidebar:
    st.markdown("### Payload")
    uploaded = st.file_uploader("Payload JSON", type=["json"])
    pasted = st.text_area("…or paste JSON", height=200)
    st.markdown("---")
    with st.expander("Render settings", expanded=False):
        subtitle = st.text_input("Subtitle", "Catering Grid")
        show_descriptions = st.checkbox("Show date descriptions", value=True)
        timezone = st.text_input("Timezone", "Europe/London")

try:
    payload = read_payload(uploaded, pasted)
except json.JSONDecodeError as exc:
    st.error(f"Payload is not valid JSON: {exc}")
    st.stop()

if payload is None:
    st.info("Waiting for a payload.")
    st.stop()

try:
    options = normalize_options({"subtitle": subtitle, "show_descriptions": show_descriptions, "timezone": timezone})
    docs = build_documents(payload, assets=cached_assets(), options=options)
except CateringError as exc:
    st.error(f"{type(exc).__name__}: {exc}")
    st.stop()

grid = docs.grid
st.markdown(
    f"<div class='app-top-bar'><div class='page-title'>{grid.event_name}</div></div>"
    f"<div class='chip-row'>{format_grid_summary(len(grid.dates), len(grid.slots), len(grid.people), grid.grand_total)}</div>",
    unsafe_allow_html=True,
)

btn_cols = st.columns(2)
btn_cols[0].download_button(
    "Download spreadsheet",
    data=docs.xlsx,
    file_name=docs.xlsx_name,
    mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
)
btn_cols[1].download_button("Download HTML", data=docs.html.encode("utf-8"), file_name=docs.html_name, mime="text/html")

frame = grid_to_frame(grid)
display = frame.copy()
display.columns = [" ".join(part for part in col if part) for col in display.columns]
st.dataframe(display.reset_index(), use_container_width=True, hide_index=True)

if grid.data_columns:
    st.markdown("**Portions per date**")
    st.altair_chart(portions_chart(grid), use_container_width=True)

st.markdown("**Key**")
st.dataframe(
    pd.DataFrame([{"Meal": e.name, "Abbreviation": e.abbreviation, "Location": e.location} for e in grid.legend]),
    hide_index=True,
)
