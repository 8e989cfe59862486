from __future__ import annotations

import unicodedata

import pandas as pd

from core.filters import OWNER_DEFAULT_VALUE, ORDER_DESC, FilterState


# Column header -> enriched frame column used as the sort value.
SORT_FIELDS = {
    "ID": "id",
    "Product": "name",
    "Category": "category_title",
    "User": "owner_name",
}


def normalize_text(value: object) -> str:
    return str(value).strip().casefold()


def collation_key(value: object) -> str:
    """Locale-style string key: case-insensitive, lowercase first on ties."""
    text = unicodedata.normalize("NFKD", str(value))
    # NUL sorts below every character, so the case tie-break only decides
    # between strings whose folded forms are equal.
    return f"{text.casefold()}\x00{text.swapcase()}"


def _sort_key(series: pd.Series) -> pd.Series:
    if pd.api.types.is_numeric_dtype(series):
        return series
    return series.map(collation_key)


def get_visible_products(products: pd.DataFrame, state: FilterState) -> pd.DataFrame:
    visible = products.copy()

    if state.owner_filter != OWNER_DEFAULT_VALUE:
        visible = visible[visible["owner_name"] == state.owner_filter]

    query = normalize_text(state.product_name_filter)
    if query:
        names = visible["name"].map(normalize_text)
        visible = visible[names.str.contains(query, regex=False)] if not visible.empty else visible

    if state.category_name_filter:
        visible = visible[visible["category_title"].isin(list(state.category_name_filter))]

    if state.sorting.column:
        visible = visible.sort_values(
            SORT_FIELDS[state.sorting.column],
            ascending=state.sorting.order != ORDER_DESC,
            kind="stable",
            key=_sort_key,
        )

    return visible
