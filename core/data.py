from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Tuple, Union

import pandas as pd

from core.filters import FilterState, normalize_filters
from core.visibility import get_visible_products


logger = logging.getLogger(__name__)

DATA_DIR = Path(os.getenv("CATALOG_DATA_DIR") or Path(__file__).resolve().parents[1] / "data")

USERS_FILE = "users.json"
CATEGORIES_FILE = "categories.json"
PRODUCTS_FILE = "products.json"

USER_COLUMNS = {
    "id": "id",
    "name": "name",
    "sex": "sex",
}

CATEGORY_COLUMNS = {
    "id": "id",
    "title": "title",
    "icon": "icon",
    "ownerId": "owner_id",
    "owner_id": "owner_id",
}

PRODUCT_COLUMNS = {
    "id": "id",
    "name": "name",
    "categoryId": "category_id",
    "category_id": "category_id",
}

ENRICHED_COLUMNS = [
    "id",
    "name",
    "category_id",
    "category_title",
    "category_icon",
    "owner_id",
    "owner_name",
    "owner_sex",
]

TableInput = Union[pd.DataFrame, Iterable[Mapping[str, object]]]


class SchemaError(ValueError):
    """A fixture table is missing one of its required columns."""


class DanglingReferenceError(KeyError):
    """A product or category points at a record that does not exist."""

    def __init__(self, table: str, missing_id: object, referrer: str):
        self.table = table
        self.missing_id = missing_id
        self.referrer = referrer
        super().__init__(f"No {table} with id {missing_id!r} (referenced by {referrer})")

    def __str__(self) -> str:
        return self.args[0]


def get_source_files(data_dir: Path | None = None) -> List[Path]:
    data_dir = Path(data_dir or DATA_DIR)
    files = [data_dir / name for name in (USERS_FILE, CATEGORIES_FILE, PRODUCTS_FILE)]
    for path in files:
        if not path.exists():
            raise FileNotFoundError(f"Fixture file not found: {path}")
    return files


def file_signature(files: List[Path]) -> Tuple[Tuple[str, float], ...]:
    return tuple((str(f), f.stat().st_mtime) for f in files)


def prepare_table(raw: TableInput, columns: Dict[str, str], table: str) -> pd.DataFrame:
    """Rename wire columns to snake_case and keep only the mapped ones."""
    df = raw.copy() if isinstance(raw, pd.DataFrame) else pd.DataFrame(list(raw))
    df = df.rename(columns=columns)
    required = list(dict.fromkeys(columns.values()))
    if df.empty and not len(df.columns):
        return pd.DataFrame(columns=required)
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise SchemaError(f"{table} table is missing column(s): {', '.join(missing)}")
    return df.loc[:, ~df.columns.duplicated()][required].reset_index(drop=True)


def users_frame(raw: TableInput) -> pd.DataFrame:
    return prepare_table(raw, USER_COLUMNS, "users")


def categories_frame(raw: TableInput) -> pd.DataFrame:
    return prepare_table(raw, CATEGORY_COLUMNS, "categories")


def products_frame(raw: TableInput) -> pd.DataFrame:
    return prepare_table(raw, PRODUCT_COLUMNS, "products")


def read_table(path: Path) -> pd.DataFrame:
    df = pd.read_json(path, orient="records", dtype=False, convert_dates=False)
    logger.debug("Read %d rows from %s", len(df), path.name)
    return df


# ---------------- Join Builder ----------------
def _first_by_id(df: pd.DataFrame) -> pd.DataFrame:
    return df.drop_duplicates(subset=["id"], keep="first")


def build_enriched_products(users: TableInput, categories: TableInput, products: TableInput) -> pd.DataFrame:
    """Attach each product's category and (via the category) its owner.

    Output keeps the product table order. Any unresolved category or owner id
    raises DanglingReferenceError; the reference data is expected to be
    consistent.
    """
    users = users_frame(users)
    categories = categories_frame(categories)
    products = products_frame(products)
    if products.empty:
        return pd.DataFrame(columns=ENRICHED_COLUMNS)
    if categories.empty:
        first = products.iloc[0]
        raise DanglingReferenceError("category", first["category_id"], f"product {first['id']!r}")
    if users.empty:
        first = categories.iloc[0]
        raise DanglingReferenceError("user", first["owner_id"], f"category {first['title']!r}")

    category_dim = _first_by_id(categories).rename(
        columns={"id": "category_id", "title": "category_title", "icon": "category_icon"}
    )
    category_dim["_found"] = True
    joined = products.merge(category_dim, on="category_id", how="left", validate="many_to_one")
    dangling = joined[joined["_found"].isna()]
    if not dangling.empty:
        row = dangling.iloc[0]
        raise DanglingReferenceError("category", row["category_id"], f"product {row['id']!r}")
    joined = joined.drop(columns=["_found"])

    user_dim = _first_by_id(users).rename(columns={"id": "owner_id", "name": "owner_name", "sex": "owner_sex"})
    user_dim["_found"] = True
    joined = joined.merge(user_dim, on="owner_id", how="left", validate="many_to_one")
    dangling = joined[joined["_found"].isna()]
    if not dangling.empty:
        row = dangling.iloc[0]
        raise DanglingReferenceError("user", row["owner_id"], f"category {row['category_title']!r}")

    return joined[ENRICHED_COLUMNS].reset_index(drop=True)


def enriched_records(df: pd.DataFrame) -> List[Dict[str, object]]:
    """Nested `{..., category: {...}, owner: {...}}` records for the API."""
    records = []
    for row in df.to_dict(orient="records"):
        records.append(
            {
                "id": row["id"],
                "name": row["name"],
                "categoryId": row["category_id"],
                "category": {
                    "id": row["category_id"],
                    "title": row["category_title"],
                    "icon": row["category_icon"],
                    "ownerId": row["owner_id"],
                },
                "owner": {"id": row["owner_id"], "name": row["owner_name"], "sex": row["owner_sex"]},
            }
        )
    return records


# ---------------- Public API (Streamlit parity + FastAPI use) ----------------
@lru_cache(maxsize=4)
def _load_catalog_data_cached(files_sig: Tuple[Tuple[str, float], ...]) -> Dict[str, object]:
    users_path, categories_path, products_path = (Path(name) for name, _ in files_sig)
    users = users_frame(read_table(users_path))
    categories = categories_frame(read_table(categories_path))
    products = build_enriched_products(users, categories, products_frame(read_table(products_path)))
    logger.info(
        "Loaded catalog: %d users, %d categories, %d products", len(users), len(categories), len(products)
    )
    return {
        "files": [Path(name).name for name, _ in files_sig],
        "users": users,
        "categories": categories,
        "products": products,
    }


def load_catalog_data(data_dir: Path | None = None) -> Dict[str, object]:
    files = get_source_files(data_dir)
    return _load_catalog_data_cached(file_signature(files))


def prepare_context(filters: dict | FilterState, data_ctx: Dict[str, object]) -> Dict[str, object]:
    filt = filters if isinstance(filters, FilterState) else normalize_filters(filters)
    products: pd.DataFrame = data_ctx.get("products", pd.DataFrame(columns=ENRICHED_COLUMNS))
    return {
        "filters": filt,
        "products": products,
        "visible_products": get_visible_products(products, filt),
        "users": data_ctx.get("users", pd.DataFrame(columns=list(USER_COLUMNS.values()))),
        "categories": data_ctx.get("categories", pd.DataFrame(columns=["id", "title", "icon", "owner_id"])),
    }
