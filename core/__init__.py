"""Core (UI-agnostic) product catalog logic.

This package contains:
- fixture loading (JSON -> pandas) and the product/category/owner join
- filter state and its update functions
- the visibility filter (owner, name, category, sort)
- page compute functions (JSON-serializable payloads)
- chart helpers (Altair -> Vega-Lite spec dict)
"""
