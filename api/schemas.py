from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class SortingModel(BaseModel):
    column: Optional[Literal["ID", "Product", "Category", "User"]] = None
    order: Optional[Literal["asc", "desc"]] = None


class FilterStateModel(BaseModel):
    owner_filter: str = "All"
    product_name_filter: str = ""
    category_name_filter: List[str] = Field(default_factory=list)
    sorting: SortingModel = Field(default_factory=SortingModel)


class SortToggleRequest(BaseModel):
    filters: FilterStateModel = Field(default_factory=FilterStateModel)
    column: str


class CategoryToggleRequest(BaseModel):
    filters: FilterStateModel = Field(default_factory=FilterStateModel)
    title: str


class UserModel(BaseModel):
    id: int
    name: str
    sex: str


class CategoryModel(BaseModel):
    id: int
    title: str
    icon: str
    ownerId: int


class MetaUsersResponse(BaseModel):
    users: List[UserModel]


class MetaCategoriesResponse(BaseModel):
    categories: List[CategoryModel]


class MetaOptionsResponse(BaseModel):
    owners: List[str]
    categories: List[str]
