"""Public storefront — no authentication."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from awoof.api.responses import success
from awoof.infrastructure.database import get_db
from awoof.services.catalog_service import PublicCatalog

router = APIRouter(prefix="/api/v1/products", tags=["products"])


@router.get("")
async def list_products(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    category_id: UUID | None = Query(None, alias="categoryId"),
    search: str | None = Query(None, max_length=255),
    min_price: float | None = Query(None, ge=0, alias="minPrice"),
    max_price: float | None = Query(None, ge=0, alias="maxPrice"),
    db: AsyncSession = Depends(get_db),
):
    data = await PublicCatalog(db).list_products(page, limit, category_id, search, min_price, max_price)
    return success(data, "Products retrieved successfully")


# Registered before /{product_id} so "categories" is not parsed as an id
@router.get("/categories")
async def list_categories(db: AsyncSession = Depends(get_db)):
    return success(await PublicCatalog(db).categories(), "Categories retrieved successfully")


@router.get("/{product_id}")
async def get_product(product_id: UUID, db: AsyncSession = Depends(get_db)):
    return success(await PublicCatalog(db).get(product_id), "Product retrieved successfully")
