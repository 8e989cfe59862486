import logging
from contextlib import contextmanager
from typing import Optional

import pandas as pd
import streamlit as st

from core import filters as fs
from core.charts import category_breakdown_chart
from core.data import DanglingReferenceError, SchemaError, load_catalog_data, prepare_context
from core.product_table import EMPTY_MESSAGE, compute_filter_options, owner_color, to_display_frame

logger = logging.getLogger(__name__)

STATE_KEY = "filter_state"
SEARCH_KEY = "search_field"
SORT_GLYPHS = {"sort": "↕", "sort-up": "▲", "sort-down": "▼"}
OWNER_CSS = {"link": "color: #485fc7", "danger": "color: #f14668"}


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .app-top-bar {padding: 6px 0 4px;border-bottom: 1px solid #e5e7eb;margin-bottom: 10px;}
        .app-top-bar .page-title {font-size: 1.4rem;font-weight: 700;color: #111827;}
        .card {border: 1px solid #e5e7eb;border-radius: 12px;padding: 16px;background: #ffffff;
               box-shadow: 0 1px 2px rgba(0,0,0,0.04); margin-bottom: 12px;}
        .card-title {font-weight: 600;font-size: 1.0rem;color: #111827;margin-bottom: 8px;}
        .chip-row {display: flex;flex-wrap: wrap;gap: 6px;margin-top: 6px;}
        .chip {background: #f3f4f6;border: 1px solid #e5e7eb;border-radius: 14px;padding: 4px 10px;font-size: 0.85rem;color: #374151;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@contextmanager
def card(title: str):
    container = st.container()
    container.markdown(f"<div class='card'><div class='card-title'>{title}</div>", unsafe_allow_html=True)
    body = container.container()
    with body:
        yield body
    container.markdown("</div>", unsafe_allow_html=True)


def format_filter_summary(state: fs.FilterState) -> str:
    owner_chip = f"User: {state.owner_filter}"
    name_chip = f"Search: {state.product_name_filter.strip()}" if state.product_name_filter.strip() else "Search: none"
    cat_chip = (
        f"Category: {', '.join(state.category_name_filter)}"
        if state.category_name_filter
        else f"Category: {fs.CATEGORY_DEFAULT_VALUE}"
    )
    sort_chip = (
        f"Sort: {state.sorting.column} {state.sorting.order}" if state.sorting.column else "Sort: none"
    )
    return "".join([f"<span class='chip'>{txt}</span>" for txt in [owner_chip, name_chip, cat_chip, sort_chip]])


def render_page_header(title: str, filter_summary_html: str, export_df: Optional[pd.DataFrame] = None):
    inject_base_styles()
    c1, c2 = st.columns([8, 2])
    with c1:
        st.markdown(f"<div class='app-top-bar'><div class='page-title'>{title}</div></div>", unsafe_allow_html=True)
    with c2:
        if export_df is not None and not export_df.empty:
            st.download_button(
                "Export CSV",
                data=export_df.to_csv(index=False).encode("utf-8"),
                file_name="products.csv",
                mime="text/csv",
            )
    st.markdown(f"<div class='chip-row'>{filter_summary_html}</div>", unsafe_allow_html=True)


# ---------- State handlers ----------
def current_state() -> fs.FilterState:
    if STATE_KEY not in st.session_state:
        st.session_state[STATE_KEY] = fs.FilterState()
    return st.session_state[STATE_KEY]


def update_state(update, *args):
    st.session_state[STATE_KEY] = update(current_state(), *args)


def on_search_change():
    update_state(fs.set_product_name_filter, st.session_state.get(SEARCH_KEY, ""))
    st.session_state[SEARCH_KEY] = current_state().product_name_filter


def on_search_clear():
    update_state(fs.clear_product_name_filter)
    st.session_state[SEARCH_KEY] = ""


def on_reset():
    update_state(fs.reset_filters)
    st.session_state[SEARCH_KEY] = ""


def style_owner_column(display_df: pd.DataFrame, sexes: pd.Series):
    colors = [OWNER_CSS.get(owner_color(s), "") for s in sexes]
    return display_df.style.apply(lambda _: colors, subset=["User"], axis=0)


# ---------- UI setup ----------
st.set_page_config(page_title="Product Categories", layout="wide")
inject_base_styles()

try:
    data_ctx = load_catalog_data()
except (DanglingReferenceError, SchemaError, FileNotFoundError) as exc:
    logger.exception("catalog load failed")
    st.error(f"Product catalog could not be loaded: {exc}")
    st.stop()

options = compute_filter_options(data_ctx)
state = current_state()

# ----- Filters panel -----
with card("Filters"):
    owner_cols = st.columns(len(options["owners"]))
    for col, owner in zip(owner_cols, options["owners"]):
        col.button(
            owner,
            key=f"owner_{owner}",
            type="primary" if state.owner_filter == owner else "secondary",
            on_click=update_state,
            args=(fs.set_owner_filter, owner),
            use_container_width=True,
        )

    search_col, clear_col = st.columns([9, 1])
    search_col.text_input(
        "Search",
        key=SEARCH_KEY,
        placeholder="Search",
        label_visibility="collapsed",
        on_change=on_search_change,
    )
    if state.product_name_filter:
        clear_col.button("✕", key="clear_search", on_click=on_search_clear)

    cat_cols = st.columns(len(options["categories"]) + 1)
    cat_cols[0].button(
        fs.CATEGORY_DEFAULT_VALUE,
        key="all_categories",
        type="secondary" if state.category_name_filter else "primary",
        on_click=update_state,
        args=(fs.clear_category_filter,),
    )
    for col, title in zip(cat_cols[1:], options["categories"]):
        col.button(
            title,
            key=f"category_{title}",
            type="primary" if title in state.category_name_filter else "secondary",
            on_click=update_state,
            args=(fs.toggle_category, title),
        )

    st.button("Reset all filters", key="reset_all", on_click=on_reset, use_container_width=True)

ctx = prepare_context(state, data_ctx)
visible = ctx["visible_products"]
display_df = to_display_frame(visible)

render_page_header("Product Categories", format_filter_summary(state), export_df=display_df)

# ----- Product table -----
with card("Products"):
    if visible.empty:
        st.info(EMPTY_MESSAGE)
    else:
        header_cols = st.columns(len(fs.COLUMNS))
        for col, column in zip(header_cols, fs.COLUMNS):
            glyph = SORT_GLYPHS[fs.sort_icon(state.sorting, column)]
            col.button(
                f"{column} {glyph}",
                key=f"sort_{column}",
                on_click=update_state,
                args=(fs.toggle_sorting, column),
                use_container_width=True,
            )
        st.dataframe(
            style_owner_column(display_df, visible["owner_sex"]),
            use_container_width=True,
            hide_index=True,
        )
        st.caption(f"{len(visible)} of {len(ctx['products'])} products")

with card("Products per category"):
    if visible.empty:
        st.info(EMPTY_MESSAGE)
    else:
        st.altair_chart(category_breakdown_chart(visible), use_container_width=True)
