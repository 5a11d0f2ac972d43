"""Student Self-Service — savings, profile, purchase history and website visits.

Invariants:
    - A student account may exist before its profile; GET /profile answers profile null
      and PUT /profile creates the row (name required) instead of failing
    - Purchase discountAmount = product list price - amount paid, never negative
    - Visits are tracked only for non-deleted products; vendor and product names are
      snapshotted at visit time
"""

import logging
from typing import Any
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from awoof.core.clock import utcnow
from awoof.core.commission import to_float
from awoof.core.domain_types import TransactionStatus
from awoof.core.errors import BadRequestError, NotFoundError
from awoof.models.category import Category
from awoof.models.product import Product
from awoof.models.student import Student
from awoof.models.transaction import SavingsStats, Transaction
from awoof.models.user import User
from awoof.models.vendor import Vendor
from awoof.models.website_visit import WebsiteVisit
from awoof.schemas.student import StudentProfileUpdate, TrackVisitRequest
from awoof.services.catalog_service import pagination

logger = logging.getLogger(__name__)


async def savings_summary(db: AsyncSession, student_id: UUID) -> dict[str, Any]:
    stats = (await db.execute(
        select(SavingsStats).where(SavingsStats.student_id == student_id),
    )).scalar_one_or_none()
    total_savings = to_float(stats.total_savings) if stats else 0.0

    total_spent = (await db.execute(
        select(func.coalesce(func.sum(Transaction.amount), 0))
        .where(Transaction.student_id == student_id)
        .where(Transaction.status == TransactionStatus.COMPLETED.value),
    )).scalar_one()

    rows = (await db.execute(
        select(
            Category.name,
            func.count(Transaction.id),
            func.coalesce(func.sum(Product.price - Transaction.amount), 0),
        )
        .select_from(Transaction)
        .join(Product, Product.id == Transaction.product_id)
        .outerjoin(Category, Category.id == Product.category_id)
        .where(Transaction.student_id == student_id)
        .where(Transaction.status == TransactionStatus.COMPLETED.value)
        .group_by(Category.name),
    )).all()
    by_category = sorted(
        (
            {
                "categoryName": name or "Uncategorized",
                "purchaseCount": int(count),
                "savings": round(to_float(saved), 2),
            }
            for name, count, saved in rows
        ),
        key=lambda c: c["savings"],
        reverse=True,
    )

    return {
        "summary": {
            "totalSavings": total_savings,
            "totalPurchases": stats.total_purchases if stats else 0,
            "totalSpent": to_float(total_spent),
            "lastUpdated": stats.last_updated.isoformat() if stats and stats.last_updated else None,
        },
        "byCategory": by_category,
    }


# ─── Profile ─────────────────────────────────────────────────────

def _iso(value) -> str | None:
    return value.isoformat() if value else None


def _profile_to_dict(student: Student | None) -> dict[str, Any] | None:
    if student is None:
        return None
    return {
        "id": str(student.id),
        "name": student.name,
        "university": student.university,
        "registrationNumber": student.registration_number,
        "phoneNumber": student.phone_number,
        "verificationDate": _iso(student.verification_date),
        "status": student.status,
    }


async def _student_row(db: AsyncSession, user_id: UUID) -> Student | None:
    return (await db.execute(
        select(Student).where(Student.user_id == user_id),
    )).scalar_one_or_none()


async def get_profile(db: AsyncSession, user_id: UUID) -> dict[str, Any]:
    """Account plus student profile; profile is None before verification creates one."""
    user = (await db.execute(
        select(User).where(User.id == user_id).where(User.deleted_at.is_(None)),
    )).scalar_one_or_none()
    if user is None:
        raise NotFoundError("User not found")
    return {
        "user": {
            "id": str(user.id),
            "email": user.email,
            "role": user.role,
            "verificationStatus": user.verification_status,
            "createdAt": _iso(user.created_at),
        },
        "profile": _profile_to_dict(await _student_row(db, user_id)),
    }


async def update_profile(
    db: AsyncSession, user_id: UUID, body: StudentProfileUpdate,
) -> dict[str, Any]:
    changes = body.model_dump(exclude_unset=True, exclude_none=True)
    if not changes:
        raise BadRequestError("No fields to update")

    student = await _student_row(db, user_id)
    if student is None:
        if "name" not in changes:
            raise BadRequestError("name is required to create a profile")
        changes.setdefault("university", "")
        student = Student(user_id=user_id, **changes)
        db.add(student)
        logger.info("Student profile created", extra={"user_id": str(user_id)})
    else:
        for field, value in changes.items():
            setattr(student, field, value)
        student.updated_at = utcnow()
    await db.commit()
    return await get_profile(db, user_id)


# ─── Purchases ───────────────────────────────────────────────────

async def purchase_history(
    db: AsyncSession, student_id: UUID, page: int = 1, limit: int = 20,
) -> dict[str, Any]:
    total = (await db.execute(
        select(func.count(Transaction.id)).where(Transaction.student_id == student_id),
    )).scalar_one()
    rows = (await db.execute(
        select(Transaction, Product, Vendor.name, Category.name)
        .join(Product, Product.id == Transaction.product_id)
        .join(Vendor, Vendor.id == Transaction.vendor_id)
        .outerjoin(Category, Category.id == Product.category_id)
        .where(Transaction.student_id == student_id)
        .order_by(Transaction.created_at.desc())
        .limit(limit).offset((page - 1) * limit),
    )).all()

    purchases = []
    for tx, product, vendor_name, category_name in rows:
        price = to_float(product.price)
        paid = to_float(tx.amount)
        purchases.append({
            "id": str(tx.id),
            "transactionId": tx.paystack_reference or tx.vendor_payment_reference or str(tx.id),
            "amount": price,
            "discountAmount": round(max(price - paid, 0.0), 2),
            "finalAmount": paid,
            "status": tx.status,
            "createdAt": _iso(tx.created_at),
            "product": {
                "id": str(product.id),
                "name": product.name,
                "vendorId": str(tx.vendor_id),
                "vendorName": vendor_name,
                "categoryName": category_name,
            },
        })
    return {"purchases": purchases, "pagination": pagination(page, limit, total)}


# ─── Website visits ──────────────────────────────────────────────

async def track_visit(
    db: AsyncSession, student_id: UUID, body: TrackVisitRequest,
) -> dict[str, Any]:
    row = None
    if body.product_id is not None:
        row = (await db.execute(
            select(Product, Vendor.name)
            .join(Vendor, Vendor.id == Product.vendor_id)
            .where(Product.id == body.product_id)
            .where(Product.deleted_at.is_(None)),
        )).first()
    if row is None:
        raise BadRequestError("Product ID is required to track visit")

    product, vendor_name = row
    visit = WebsiteVisit(
        student_id=student_id,
        product_id=product.id,
        vendor_id=product.vendor_id,
        url=body.url,
        product_name=product.name,
        vendor_name=vendor_name,
        category_id=product.category_id,
    )
    db.add(visit)
    await db.commit()
    return {"visit": {"id": str(visit.id), "visitedAt": _iso(visit.visited_at)}}


async def list_visits(
    db: AsyncSession, student_id: UUID, page: int = 1, limit: int = 20,
) -> dict[str, Any]:
    total = (await db.execute(
        select(func.count(WebsiteVisit.id)).where(WebsiteVisit.student_id == student_id),
    )).scalar_one()
    rows = (await db.execute(
        select(WebsiteVisit, Category.name)
        .outerjoin(Category, Category.id == WebsiteVisit.category_id)
        .where(WebsiteVisit.student_id == student_id)
        .order_by(WebsiteVisit.visited_at.desc())
        .limit(limit).offset((page - 1) * limit),
    )).all()
    return {
        "visits": [
            {
                "id": str(v.id),
                "productId": str(v.product_id) if v.product_id else None,
                "productName": v.product_name,
                "vendorId": str(v.vendor_id),
                "vendorName": v.vendor_name,
                "categoryName": category_name,
                "url": v.url,
                "visitedAt": _iso(v.visited_at),
            }
            for v, category_name in rows
        ],
        "pagination": pagination(page, limit, total),
    }
