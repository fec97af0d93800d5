"""
Pydantic schemas for the permission catalog.
"""
from typing import List

from pydantic import BaseModel, Field

from opsdesk.core.permissions import CATALOG_VERSION, PermissionCategory


class PermissionItemResponse(BaseModel):
    id: str
    label: str


class PermissionCategoryResponse(BaseModel):
    category: str
    permissions: List[PermissionItemResponse]

    @classmethod
    def from_category(cls, category: PermissionCategory) -> "PermissionCategoryResponse":
        return cls(
            category=category.category,
            permissions=[
                PermissionItemResponse(id=item.id, label=item.label)
                for item in category.permissions
            ],
        )


class PermissionCatalogResponse(BaseModel):
    """The full catalog, grouped for selection UIs."""

    version: int = Field(default=CATALOG_VERSION, description="Catalog version")
    categories: List[PermissionCategoryResponse]
