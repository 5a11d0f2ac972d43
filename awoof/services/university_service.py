"""University Service — public directory and admin management of universities.

Invariants:
    - The public directory only shows active universities
    - shortcode is always derived from the current domain (re-derived on every update)
    - email_domains defaults to [domain] when the admin supplies none on create
    - Public method listings never expose api_config (it carries registry credentials)

Design Decisions:
    - Name and domain uniqueness checked before insert/update so clients get a 409 with
      a readable message instead of a driver integrity error
"""

import logging
from typing import Any
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from awoof.core.domain_types import StudentStatus, VerificationMethod
from awoof.core.email_domains import parse_email_domains
from awoof.core.errors import BadRequestError, ConflictError, NotFoundError
from awoof.core.slugs import shortcode_from_domain
from awoof.models.student import Student
from awoof.models.university import University, UniversityVerificationMethod
from awoof.schemas.university import (
    UniversityCreate, UniversityUpdate, VerificationMethodConfig,
)

logger = logging.getLogger(__name__)


def _iso(value) -> str | None:
    return value.isoformat() if value else None


def university_to_dict(u: University, public: bool = False) -> dict[str, Any]:
    data = {
        "id": str(u.id),
        "name": u.name,
        "domain": u.domain,
        "emailDomains": list(u.email_domains or []),
        "segment": u.segment,
        "shortcode": u.shortcode,
        "country": u.country,
        "isActive": u.is_active,
        "createdAt": _iso(u.created_at),
    }
    if public:
        data["portalUrl"] = u.portal_url
        data["databaseApiUrl"] = u.database_api_url
    else:
        data["updatedAt"] = _iso(u.updated_at)
    return data


def method_to_dict(m: UniversityVerificationMethod, include_config: bool = False) -> dict[str, Any]:
    data = {
        "id": str(m.id),
        "methodType": m.method_type,
        "apiEndpoint": m.api_endpoint,
        "isActive": m.is_active,
        "priorityOrder": m.priority_order,
    }
    if include_config:
        data["apiConfig"] = m.api_config
    return data


def _search_clause(search: str):
    pattern = f"%{search.strip()}%"
    return or_(
        University.name.ilike(pattern),
        University.domain.ilike(pattern),
        University.shortcode.ilike(pattern),
    )


class UniversityDirectory:
    """Read-only views for students choosing their institution."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_universities(
        self, country: str | None = None, search: str | None = None,
    ) -> dict[str, Any]:
        query = select(University).where(University.is_active.is_(True))
        if country:
            query = query.where(University.country == country)
        if search:
            query = query.where(_search_clause(search))
        rows = (await self.db.execute(query.order_by(University.name))).scalars().all()
        universities = [university_to_dict(u, public=True) for u in rows]
        return {"universities": universities, "total": len(universities)}

    async def verification_methods(self, university_id: UUID) -> dict[str, Any]:
        university = await self.db.get(University, university_id)
        if not university:
            raise NotFoundError("University not found")
        if not university.is_active:
            raise NotFoundError("University is not active")
        methods = sorted(
            (m for m in university.verification_methods if m.is_active),
            key=lambda m: m.priority_order,
        )
        return {
            "university": {"id": str(university.id), "name": university.name},
            "verificationMethods": [method_to_dict(m) for m in methods],
        }


class UniversityAdmin:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _load(self, university_id: UUID) -> University:
        university = await self.db.get(University, university_id)
        if not university:
            raise NotFoundError("University not found")
        return university

    async def _ensure_unique(
        self, name: str | None, domain: str | None, exclude_id: UUID | None = None,
    ) -> None:
        clauses = []
        if name:
            clauses.append(func.lower(University.name) == name.lower())
        if domain:
            clauses.append(University.domain == domain)
        if not clauses:
            return
        query = select(University.id).where(or_(*clauses))
        if exclude_id is not None:
            query = query.where(University.id != exclude_id)
        if (await self.db.execute(query)).first() is not None:
            raise ConflictError("University with this name or domain already exists")

    async def list_universities(
        self, page: int = 1, limit: int = 20, search: str | None = None,
    ) -> dict[str, Any]:
        query = select(University)
        count_query = select(func.count(University.id))
        if search and search.strip():
            query = query.where(_search_clause(search))
            count_query = count_query.where(_search_clause(search))
        total = (await self.db.execute(count_query)).scalar_one()
        rows = (await self.db.execute(
            query.order_by(University.name).limit(limit).offset((page - 1) * limit),
        )).scalars().all()
        return {
            "universities": [university_to_dict(u) for u in rows],
            "total": total,
            "page": page,
            "limit": limit,
        }

    async def get(self, university_id: UUID) -> dict[str, Any]:
        university = await self._load(university_id)
        data = university_to_dict(university)
        data["verificationMethods"] = [
            method_to_dict(m, include_config=True) for m in university.verification_methods
        ]
        return data

    async def create(self, body: UniversityCreate) -> dict[str, Any]:
        name = body.name.strip()
        await self._ensure_unique(name, body.domain)
        email_domains = parse_email_domains(body.email_domains) or [body.domain]

        university = University(
            name=name,
            domain=body.domain,
            email_domains=email_domains,
            segment=body.segment,
            shortcode=shortcode_from_domain(body.domain),
            country=body.country,
            is_active=body.is_active,
        )
        self.db.add(university)
        await self.db.commit()
        logger.info(f"University created: {university.name}")
        return university_to_dict(university)

    async def update(self, university_id: UUID, body: UniversityUpdate) -> dict[str, Any]:
        changes = body.model_dump(exclude_unset=True)
        if not changes:
            raise BadRequestError("No fields to update")
        for field in ("name", "domain", "is_active"):
            if field in changes and changes[field] is None:
                raise BadRequestError(f"{field} cannot be null")
        university = await self._load(university_id)
        await self._ensure_unique(changes.get("name"), changes.get("domain"), university.id)

        for field in ("name", "domain", "segment", "country", "is_active"):
            if field in changes:
                setattr(university, field, changes[field])
        if "email_domains" in changes:
            university.email_domains = parse_email_domains(changes["email_domains"])
        university.shortcode = shortcode_from_domain(university.domain or "")
        await self.db.commit()
        return university_to_dict(university)

    async def delete(self, university_id: UUID) -> None:
        university = await self._load(university_id)
        await self.db.delete(university)
        await self.db.commit()

    async def segment_stats(self) -> dict[str, Any]:
        rows = (await self.db.execute(
            select(
                University.segment,
                func.count(func.distinct(University.id)),
                func.count(func.distinct(Student.id)),
            )
            .outerjoin(
                Student,
                (Student.university_id == University.id)
                & (Student.status == StudentStatus.ACTIVE.value),
            )
            .where(University.segment.is_not(None))
            .group_by(University.segment),
        )).all()
        return {
            "segmentStats": {
                segment: {"universityCount": int(unis), "studentCount": int(students)}
                for segment, unis, students in rows
            },
        }

    async def configure_method(
        self, university_id: UUID, method_type: VerificationMethod, body: VerificationMethodConfig,
    ) -> dict[str, Any]:
        """Create or replace one verification method row for the university."""
        university = await self._load(university_id)
        row = next(
            (m for m in university.verification_methods if m.method_type == method_type.value),
            None,
        )
        if row is None:
            row = UniversityVerificationMethod(method_type=method_type.value)
            university.verification_methods.append(row)
        row.api_endpoint = body.api_endpoint
        row.api_config = body.api_config
        row.is_active = body.is_active
        row.priority_order = body.priority_order
        await self.db.commit()
        return method_to_dict(row, include_config=True)
