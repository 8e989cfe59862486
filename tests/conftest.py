import json
from pathlib import Path

import pytest

from core.data import build_enriched_products


USERS = [
    {"id": 1, "name": "Max", "sex": "m"},
    {"id": 2, "name": "Anna", "sex": "f"},
]

CATEGORIES = [
    {"id": 10, "title": "Fruits", "icon": "🍎", "ownerId": 1},
    {"id": 20, "title": "Drinks", "icon": "🍹", "ownerId": 2},
]

PRODUCTS = [
    {"id": 100, "name": "Banana", "categoryId": 10},
    {"id": 200, "name": "Water", "categoryId": 20},
    {"id": 300, "name": "Apple", "categoryId": 10},
]


@pytest.fixture
def small_products():
    """Enriched frame for the Max/Anna, Fruits/Drinks scenario."""
    return build_enriched_products(USERS, CATEGORIES, PRODUCTS)


@pytest.fixture
def catalog_products():
    """Enriched frame built from the bundled fixture files."""
    data_dir = Path(__file__).resolve().parents[1] / "data"
    tables = {}
    for name in ("users", "categories", "products"):
        with open(data_dir / f"{name}.json", encoding="utf-8") as fh:
            tables[name] = json.load(fh)
    return build_enriched_products(tables["users"], tables["categories"], tables["products"])


def write_catalog(directory: Path, users=USERS, categories=CATEGORIES, products=PRODUCTS) -> Path:
    for name, rows in (("users", users), ("categories", categories), ("products", products)):
        (directory / f"{name}.json").write_text(json.dumps(rows, ensure_ascii=False), encoding="utf-8")
    return directory


@pytest.fixture
def catalog_writer(tmp_path):
    """Write fixture JSON files into a temp dir; returns the writer."""

    def _write(**tables):
        return write_catalog(tmp_path, **tables)

    return _write
