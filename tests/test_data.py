import pandas as pd
import pytest

from core.data import (
    ENRICHED_COLUMNS,
    DanglingReferenceError,
    SchemaError,
    build_enriched_products,
    enriched_records,
    load_catalog_data,
    prepare_context,
)
from core.filters import FilterState

from tests.conftest import CATEGORIES, PRODUCTS, USERS


class TestBuildEnrichedProducts:
    def test_keeps_product_order(self, small_products):
        assert small_products["id"].tolist() == [100, 200, 300]

    def test_columns(self, small_products):
        assert list(small_products.columns) == ENRICHED_COLUMNS

    def test_owner_resolved_through_category(self, small_products):
        water = small_products[small_products["id"] == 200].iloc[0]
        assert water["category_title"] == "Drinks"
        assert water["category_icon"] == "🍹"
        assert water["owner_id"] == 2
        assert water["owner_name"] == "Anna"
        assert water["owner_sex"] == "f"

    def test_first_matching_category_wins(self):
        categories = CATEGORIES + [{"id": 10, "title": "Shadow", "icon": "?", "ownerId": 2}]
        df = build_enriched_products(USERS, categories, PRODUCTS)
        assert len(df) == 3
        assert df.loc[df["id"] == 100, "category_title"].iloc[0] == "Fruits"

    def test_accepts_dataframes_without_mutating_them(self):
        users = pd.DataFrame(USERS)
        categories = pd.DataFrame(CATEGORIES)
        products = pd.DataFrame(PRODUCTS)
        before = (users.copy(), categories.copy(), products.copy())
        build_enriched_products(users, categories, products)
        pd.testing.assert_frame_equal(users, before[0])
        pd.testing.assert_frame_equal(categories, before[1])
        pd.testing.assert_frame_equal(products, before[2])

    def test_empty_products(self):
        df = build_enriched_products(USERS, CATEGORIES, [])
        assert df.empty
        assert list(df.columns) == ENRICHED_COLUMNS

    def test_missing_category_is_fatal(self):
        products = PRODUCTS + [{"id": 400, "name": "Ghost", "categoryId": 99}]
        with pytest.raises(DanglingReferenceError) as excinfo:
            build_enriched_products(USERS, CATEGORIES, products)
        assert excinfo.value.table == "category"
        assert excinfo.value.missing_id == 99
        assert "400" in str(excinfo.value)

    def test_missing_owner_is_fatal(self):
        categories = CATEGORIES + [{"id": 30, "title": "Toys", "icon": "🧸", "ownerId": 7}]
        products = PRODUCTS + [{"id": 400, "name": "Ball", "categoryId": 30}]
        with pytest.raises(DanglingReferenceError) as excinfo:
            build_enriched_products(USERS, categories, products)
        assert excinfo.value.table == "user"
        assert excinfo.value.missing_id == 7
        assert "Toys" in str(excinfo.value)

    def test_dangling_reference_is_a_lookup_error(self):
        with pytest.raises(KeyError):
            build_enriched_products([], CATEGORIES, PRODUCTS)

    def test_unused_category_with_missing_owner_is_ignored(self):
        categories = CATEGORIES + [{"id": 30, "title": "Toys", "icon": "🧸", "ownerId": 7}]
        df = build_enriched_products(USERS, categories, PRODUCTS)
        assert df["id"].tolist() == [100, 200, 300]

    def test_missing_column_raises_schema_error(self):
        products = [{"id": 1, "name": "Milk"}]
        with pytest.raises(SchemaError, match="category_id"):
            build_enriched_products(USERS, CATEGORIES, products)


def test_enriched_records_are_nested(small_products):
    record = enriched_records(small_products)[0]
    assert record == {
        "id": 100,
        "name": "Banana",
        "categoryId": 10,
        "category": {"id": 10, "title": "Fruits", "icon": "🍎", "ownerId": 1},
        "owner": {"id": 1, "name": "Max", "sex": "m"},
    }


class TestLoadCatalogData:
    def test_loads_from_directory(self, catalog_writer):
        data_dir = catalog_writer()
        data_ctx = load_catalog_data(data_dir)
        assert data_ctx["files"] == ["users.json", "categories.json", "products.json"]
        assert data_ctx["products"]["id"].tolist() == [100, 200, 300]
        assert data_ctx["categories"]["owner_id"].tolist() == [1, 2]

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="users.json"):
            load_catalog_data(tmp_path)

    def test_dangling_fixture_fails_load(self, catalog_writer):
        data_dir = catalog_writer(products=[{"id": 1, "name": "Ghost", "categoryId": 5}])
        with pytest.raises(DanglingReferenceError):
            load_catalog_data(data_dir)

    def test_bundled_fixtures(self):
        data_ctx = load_catalog_data()
        products = data_ctx["products"]
        assert len(products) == 13
        assert products["owner_name"].notna().all()


def test_prepare_context_accepts_raw_filters(small_products):
    data_ctx = {"products": small_products}
    ctx = prepare_context({"owner_filter": "Anna"}, data_ctx)
    assert ctx["filters"] == FilterState(owner_filter="Anna")
    assert ctx["visible_products"]["id"].tolist() == [200]
    assert ctx["products"] is small_products
