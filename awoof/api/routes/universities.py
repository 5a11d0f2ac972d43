"""Public university directory — no authentication."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from awoof.api.responses import success
from awoof.infrastructure.database import get_db
from awoof.services.university_service import UniversityDirectory

router = APIRouter(prefix="/api/v1/universities", tags=["universities"])


@router.get("")
async def list_universities(
    country: str | None = Query(None, max_length=100),
    search: str | None = Query(None, max_length=255),
    db: AsyncSession = Depends(get_db),
):
    data = await UniversityDirectory(db).list_universities(country, search)
    return success(data, "Universities retrieved successfully")


@router.get("/{university_id}/verification-methods")
async def verification_methods(university_id: UUID, db: AsyncSession = Depends(get_db)):
    data = await UniversityDirectory(db).verification_methods(university_id)
    return success(data, "Verification methods retrieved successfully")
