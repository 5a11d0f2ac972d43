"""Admin Routes — category and university management.

Invariants:
    - Every route requires the admin role (router-level dependency)
    - Segment stats registered before /universities/{id} so "segments" never parses as an id
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from awoof.api.dependencies import require_role
from awoof.api.responses import success
from awoof.core.domain_types import UserRole, VerificationMethod
from awoof.infrastructure.database import get_db
from awoof.schemas.catalog import CategoryCreate, CategoryUpdate
from awoof.schemas.university import (
    UniversityCreate, UniversityUpdate, VerificationMethodConfig,
)
from awoof.services.catalog_service import CategoryHandlers
from awoof.services.university_service import UniversityAdmin

router = APIRouter(
    prefix="/api/v1/admin",
    tags=["admin"],
    dependencies=[Depends(require_role(UserRole.ADMIN))],
)


# ─── Categories ──────────────────────────────────────────────────

@router.get("/categories")
async def list_categories(db: AsyncSession = Depends(get_db)):
    return success(await CategoryHandlers(db).list_categories(), "Categories retrieved successfully")


@router.get("/categories/{category_id}")
async def get_category(category_id: UUID, db: AsyncSession = Depends(get_db)):
    return success(await CategoryHandlers(db).get(category_id), "Category retrieved successfully")


@router.post("/categories", status_code=status.HTTP_201_CREATED)
async def create_category(body: CategoryCreate, db: AsyncSession = Depends(get_db)):
    return success(await CategoryHandlers(db).create(body), "Category created successfully")


@router.put("/categories/{category_id}")
async def update_category(
    category_id: UUID, body: CategoryUpdate, db: AsyncSession = Depends(get_db),
):
    data = await CategoryHandlers(db).update(category_id, body)
    return success(data, "Category updated successfully")


@router.delete("/categories/{category_id}")
async def delete_category(category_id: UUID, db: AsyncSession = Depends(get_db)):
    await CategoryHandlers(db).delete(category_id)
    return success(None, "Category deleted successfully")


# ─── Universities ────────────────────────────────────────────────

@router.get("/universities")
async def list_universities(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: str | None = Query(None, max_length=255),
    db: AsyncSession = Depends(get_db),
):
    data = await UniversityAdmin(db).list_universities(page, limit, search)
    return success(data, "Universities retrieved successfully")


@router.get("/universities/segments/stats")
async def segment_stats(db: AsyncSession = Depends(get_db)):
    return success(
        await UniversityAdmin(db).segment_stats(), "Segment stats retrieved successfully",
    )


@router.get("/universities/{university_id}")
async def get_university(university_id: UUID, db: AsyncSession = Depends(get_db)):
    data = await UniversityAdmin(db).get(university_id)
    return success(data, "University retrieved successfully")


@router.post("/universities", status_code=status.HTTP_201_CREATED)
async def create_university(body: UniversityCreate, db: AsyncSession = Depends(get_db)):
    data = await UniversityAdmin(db).create(body)
    return success(data, "University created successfully")


@router.put("/universities/{university_id}")
async def update_university(
    university_id: UUID, body: UniversityUpdate, db: AsyncSession = Depends(get_db),
):
    data = await UniversityAdmin(db).update(university_id, body)
    return success(data, "University updated successfully")


@router.delete("/universities/{university_id}")
async def delete_university(university_id: UUID, db: AsyncSession = Depends(get_db)):
    await UniversityAdmin(db).delete(university_id)
    return success({}, "University deleted successfully")


@router.put("/universities/{university_id}/verification-methods/{method_type}")
async def configure_verification_method(
    university_id: UUID,
    method_type: VerificationMethod,
    body: VerificationMethodConfig,
    db: AsyncSession = Depends(get_db),
):
    data = await UniversityAdmin(db).configure_method(university_id, method_type, body)
    return success(data, "Verification method updated successfully")
