from __future__ import annotations

import logging
import math

import numpy as np
import pandas as pd
from fastapi import FastAPI
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from api.schemas import (
    CategoryModel,
    CategoryToggleRequest,
    FilterStateModel,
    MetaCategoriesResponse,
    MetaOptionsResponse,
    MetaUsersResponse,
    SortToggleRequest,
    UserModel,
)
from core.charts import compute_category_breakdown
from core.data import load_catalog_data, prepare_context
from core.filters import FilterState, filters_as_dict, normalize_filters, reset_filters, toggle_category, toggle_sorting
from core.product_table import compute_filter_options, compute_product_table, to_display_frame


app = FastAPI(title="Product Categories API", version="0.1.0")
logger = logging.getLogger(__name__)

CORS_ORIGINS = ["http://localhost:3000", "http://127.0.0.1:3000"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _filters_from_model(model: FilterStateModel) -> FilterState:
    return normalize_filters(model.model_dump())


def _error(exc: Exception, status_code: int = 500) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": str(exc), "type": type(exc).__name__})


def _json(data: object) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                np.ndarray: lambda arr: arr.tolist(),
            },
        )
    )


@app.get("/meta/users")
def meta_users():
    try:
        users: pd.DataFrame = load_catalog_data()["users"]
        payload = MetaUsersResponse(users=[UserModel(**u) for u in users.to_dict(orient="records")])
        return _json(payload.model_dump())
    except Exception as exc:
        logger.exception("meta_users failed")
        return _error(exc)


@app.get("/meta/categories")
def meta_categories():
    try:
        categories: pd.DataFrame = load_catalog_data()["categories"]
        payload = MetaCategoriesResponse(
            categories=[
                CategoryModel(id=c["id"], title=c["title"], icon=c["icon"], ownerId=c["owner_id"])
                for c in categories.to_dict(orient="records")
            ]
        )
        return _json(payload.model_dump())
    except Exception as exc:
        logger.exception("meta_categories failed")
        return _error(exc)


@app.get("/meta/options")
def meta_options():
    try:
        data_ctx = load_catalog_data()
        return _json(MetaOptionsResponse(**compute_filter_options(data_ctx)).model_dump())
    except Exception as exc:
        logger.exception("meta_options failed")
        return _error(exc)


@app.post("/products")
def products(filters: FilterStateModel):
    try:
        f = _filters_from_model(filters)
        ctx = prepare_context(f, load_catalog_data())
        return _json(compute_product_table(f, ctx))
    except Exception as exc:
        logger.exception("products failed")
        return _error(exc)


@app.post("/products/breakdown")
def products_breakdown(filters: FilterStateModel):
    try:
        f = _filters_from_model(filters)
        ctx = prepare_context(f, load_catalog_data())
        return _json(compute_category_breakdown(f, ctx))
    except Exception as exc:
        logger.exception("products_breakdown failed")
        return _error(exc)


@app.post("/filters/sorting")
def filters_sorting(request: SortToggleRequest):
    try:
        f = toggle_sorting(_filters_from_model(request.filters), request.column)
    except ValueError as exc:
        return _error(exc, status_code=400)
    return _json(filters_as_dict(f))


@app.post("/filters/category")
def filters_category(request: CategoryToggleRequest):
    f = toggle_category(_filters_from_model(request.filters), request.title)
    return _json(filters_as_dict(f))


@app.post("/filters/reset")
def filters_reset(filters: FilterStateModel):
    return _json(filters_as_dict(reset_filters(_filters_from_model(filters))))


@app.post("/export/products")
def export_products(filters: FilterStateModel):
    try:
        f = _filters_from_model(filters)
        ctx = prepare_context(f, load_catalog_data())
        export_df = to_display_frame(ctx["visible_products"])
        csv_bytes = export_df.to_csv(index=False).encode("utf-8")
    except Exception as exc:
        logger.exception("export_products failed")
        return _error(exc)
    return Response(
        content=csv_bytes,
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=products.csv"},
    )
