from __future__ import annotations

from typing import Any, Dict, Optional

import pandas as pd

from core.data import enriched_records
from core.filters import COLUMNS, OWNER_DEFAULT_VALUE, FilterState, filters_as_dict, sort_icon


EMPTY_MESSAGE = "No products matching selected criteria"

OWNER_COLORS = {"m": "link", "f": "danger"}


def owner_color(sex: object) -> Optional[str]:
    return OWNER_COLORS.get(str(sex)) if sex is not None else None


def format_category(icon: object, title: object) -> str:
    return f"{icon} - {title}"


def to_display_frame(df: pd.DataFrame) -> pd.DataFrame:
    """Rows as rendered in the product table, in the current visible order."""
    if df.empty:
        return pd.DataFrame(columns=list(COLUMNS))
    return pd.DataFrame(
        {
            "ID": df["id"].to_numpy(),
            "Product": df["name"].to_numpy(),
            "Category": [format_category(i, t) for i, t in zip(df["category_icon"], df["category_title"])],
            "User": df["owner_name"].to_numpy(),
        }
    )


def compute_filter_options(ctx: Dict[str, Any]) -> Dict[str, Any]:
    users: pd.DataFrame = ctx.get("users", pd.DataFrame())
    categories: pd.DataFrame = ctx.get("categories", pd.DataFrame())
    owners = [OWNER_DEFAULT_VALUE] + ([str(n) for n in users["name"].tolist()] if not users.empty else [])
    titles = [str(t) for t in categories["title"].tolist()] if not categories.empty else []
    return {"owners": owners, "categories": titles}


def compute_product_table(filters: FilterState, ctx: Dict[str, Any]) -> Dict[str, Any]:
    visible: pd.DataFrame = ctx.get("visible_products", pd.DataFrame())
    products: pd.DataFrame = ctx.get("products", pd.DataFrame())
    rows = enriched_records(visible) if not visible.empty else []
    for row in rows:
        row["ownerColor"] = owner_color(row["owner"]["sex"])
    return {
        "filters": filters_as_dict(filters),
        "columns": list(COLUMNS),
        "sort_icons": {column: sort_icon(filters.sorting, column) for column in COLUMNS},
        "count": len(rows),
        "total": int(len(products)),
        "rows": rows,
        "empty_message": None if rows else EMPTY_MESSAGE,
    }
