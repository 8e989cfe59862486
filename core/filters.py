from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Iterable, Optional, Tuple


COLUMNS: Tuple[str, ...] = ("ID", "Product", "Category", "User")
OWNER_DEFAULT_VALUE = "All"
CATEGORY_DEFAULT_VALUE = "All"
ORDER_ASC = "asc"
ORDER_DESC = "desc"


@dataclass(frozen=True)
class Sorting:
    column: Optional[str] = None
    order: Optional[str] = None


@dataclass(frozen=True)
class FilterState:
    owner_filter: str = OWNER_DEFAULT_VALUE
    product_name_filter: str = ""
    category_name_filter: Tuple[str, ...] = ()
    sorting: Sorting = field(default_factory=Sorting)


def _check_column(column: str) -> str:
    if column not in COLUMNS:
        raise ValueError(f"Unknown sort column {column!r}; expected one of {', '.join(COLUMNS)}")
    return column


def _unique_titles(values: Optional[Iterable[object]]) -> Tuple[str, ...]:
    if not values:
        return ()
    out: list[str] = []
    for v in values:
        if v is None:
            continue
        title = str(v)
        if title not in out:
            out.append(title)
    return tuple(out)


def normalize_sorting(raw: Optional[dict]) -> Sorting:
    raw = raw or {}
    column = raw.get("column") or None
    if column is None:
        return Sorting()
    order = raw.get("order")
    if order not in (ORDER_ASC, ORDER_DESC):
        order = ORDER_ASC
    return Sorting(column=_check_column(str(column)), order=order)


def normalize_filters(raw: dict) -> FilterState:
    owner_filter = raw.get("owner_filter")
    owner_filter = OWNER_DEFAULT_VALUE if owner_filter is None else str(owner_filter)
    product_name_filter = str(raw.get("product_name_filter") or "")
    return FilterState(
        owner_filter=owner_filter,
        product_name_filter=product_name_filter,
        category_name_filter=_unique_titles(raw.get("category_name_filter")),
        sorting=normalize_sorting(raw.get("sorting")),
    )


def filters_as_dict(state: FilterState) -> dict:
    return {
        "owner_filter": state.owner_filter,
        "product_name_filter": state.product_name_filter,
        "category_name_filter": list(state.category_name_filter),
        "sorting": {"column": state.sorting.column, "order": state.sorting.order},
    }


# ---------------- State updates (one per UI control) ----------------
def set_owner_filter(state: FilterState, owner: str) -> FilterState:
    return replace(state, owner_filter=owner)


def set_product_name_filter(state: FilterState, text: str) -> FilterState:
    # The search box drops leading whitespace as the user types.
    return replace(state, product_name_filter=(text or "").lstrip())


def clear_product_name_filter(state: FilterState) -> FilterState:
    return replace(state, product_name_filter="")


def toggle_category(state: FilterState, title: str) -> FilterState:
    selected = state.category_name_filter
    if title in selected:
        selected = tuple(t for t in selected if t != title)
    else:
        selected = selected + (title,)
    return replace(state, category_name_filter=selected)


def clear_category_filter(state: FilterState) -> FilterState:
    return replace(state, category_name_filter=())


def next_sorting(sorting: Sorting, column: str) -> Sorting:
    """Advance the column header sort cycle: none -> asc -> desc -> none."""
    _check_column(column)
    if sorting.column != column:
        return Sorting(column=column, order=ORDER_ASC)
    if sorting.order == ORDER_ASC:
        return Sorting(column=column, order=ORDER_DESC)
    if sorting.order == ORDER_DESC:
        return Sorting()
    return Sorting(column=column, order=ORDER_ASC)


def toggle_sorting(state: FilterState, column: str) -> FilterState:
    return replace(state, sorting=next_sorting(state.sorting, column))


def reset_filters(state: FilterState) -> FilterState:
    """Restore owner, name and category filters. Sorting is left as is."""
    return FilterState(sorting=state.sorting)


def sort_icon(sorting: Sorting, column: str) -> str:
    if sorting.column != column:
        return "sort"
    if sorting.order == ORDER_ASC:
        return "sort-up"
    if sorting.order == ORDER_DESC:
        return "sort-down"
    return "sort"
