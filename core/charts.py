from __future__ import annotations

from typing import Any, Dict

import altair as alt
import pandas as pd

from core.filters import FilterState, filters_as_dict

alt.data_transformers.disable_max_rows()


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def category_counts(df: pd.DataFrame) -> pd.DataFrame:
    if df.empty:
        return pd.DataFrame(columns=["category_title", "products"])
    return (
        df.groupby("category_title", sort=False)["id"]
        .count()
        .reset_index()
        .rename(columns={"id": "products"})
    )


def category_breakdown_chart(df: pd.DataFrame) -> alt.Chart:
    counts = category_counts(df)
    return (
        alt.Chart(counts)
        .mark_bar()
        .encode(
            x=alt.X("category_title:N", title="Category", sort=None),
            y=alt.Y("products:Q", title="Products", axis=alt.Axis(format="d")),
            tooltip=["category_title", alt.Tooltip("products:Q", title="Products")],
        )
    )


def compute_category_breakdown(filters: FilterState, ctx: Dict[str, Any]) -> Dict[str, Any]:
    visible: pd.DataFrame = ctx.get("visible_products", pd.DataFrame())
    counts = category_counts(visible)
    return {
        "filters": filters_as_dict(filters),
        "counts": counts.to_dict(orient="records"),
        "chart": to_vega_spec(category_breakdown_chart(visible)) if not counts.empty else None,
    }
