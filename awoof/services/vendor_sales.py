"""Vendor Sales — order management and the analytics dashboard.

Invariants:
    - Orders are the vendor's transactions; another vendor's order id answers 404
      "Order not found", never 403
    - Order search matches product name, student name, student email and either
      payment reference, case-insensitively
    - Status changes are free-form within the transaction lifecycle; savings totals are
      not recomputed when an order is refunded

Design Decisions:
    - Analytics fetch the vendor's transactions and products once and roll them up in
      core.sales_analytics, so every figure comes from the same snapshot
"""

import logging
from typing import Any
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from awoof.core.clock import utcnow
from awoof.core.commission import to_float
from awoof.core.errors import NotFoundError
from awoof.core.sales_analytics import (
    daily_series, monthly_series, overall_metrics, product_breakdown, student_metrics,
)
from awoof.models.product import Product
from awoof.models.student import Student
from awoof.models.transaction import Transaction
from awoof.models.user import User
from awoof.models.vendor import Vendor
from awoof.services.catalog_service import pagination

logger = logging.getLogger(__name__)


def _iso(value) -> str | None:
    return value.isoformat() if value else None


def order_to_dict(
    tx: Transaction, product: Product, student: Student, email: str, detailed: bool = False,
) -> dict[str, Any]:
    data = {
        "id": str(tx.id),
        "amount": to_float(tx.amount),
        "commission": to_float(tx.commission),
        "status": tx.status,
        "paystackReference": tx.paystack_reference or tx.vendor_payment_reference,
        "createdAt": _iso(tx.created_at),
        "updatedAt": _iso(tx.updated_at),
        "product": {"id": str(product.id), "name": product.name, "imageUrl": product.image_url},
        "student": {"id": str(student.id), "name": student.name, "email": email},
    }
    if detailed:
        data["product"].update({
            "description": product.description,
            "price": to_float(product.price),
            "studentPrice": to_float(product.student_price),
        })
        data["student"]["phoneNumber"] = student.phone_number
    return data


class OrderHandlers:
    def __init__(self, db: AsyncSession, vendor: Vendor):
        self.db = db
        self.vendor = vendor

    def _orders(self):
        return (
            select(Transaction, Product, Student, User.email)
            .join(Product, Product.id == Transaction.product_id)
            .join(Student, Student.id == Transaction.student_id)
            .join(User, User.id == Student.user_id)
            .where(Transaction.vendor_id == self.vendor.id)
        )

    async def list_orders(
        self,
        page: int = 1,
        limit: int = 20,
        status: str | None = None,
        search: str | None = None,
    ) -> dict[str, Any]:
        query = self._orders()
        if status:
            query = query.where(Transaction.status == status)
        if search and search.strip():
            pattern = f"%{search.strip()}%"
            query = query.where(or_(
                Product.name.ilike(pattern),
                Student.name.ilike(pattern),
                User.email.ilike(pattern),
                Transaction.paystack_reference.ilike(pattern),
                Transaction.vendor_payment_reference.ilike(pattern),
            ))

        total = (await self.db.execute(
            select(func.count()).select_from(query.with_only_columns(Transaction.id).subquery()),
        )).scalar_one()
        rows = (await self.db.execute(
            query.order_by(Transaction.created_at.desc()).limit(limit).offset((page - 1) * limit),
        )).all()
        return {
            "orders": [order_to_dict(tx, p, s, email) for tx, p, s, email in rows],
            "pagination": pagination(page, limit, total),
        }

    async def _load(self, order_id: UUID):
        row = (await self.db.execute(
            self._orders().where(Transaction.id == order_id),
        )).first()
        if row is None:
            raise NotFoundError("Order not found")
        return row

    async def get_order(self, order_id: UUID) -> dict[str, Any]:
        tx, product, student, email = await self._load(order_id)
        return {"order": order_to_dict(tx, product, student, email, detailed=True)}

    async def update_status(self, order_id: UUID, status: str) -> dict[str, Any]:
        tx = (await self._load(order_id))[0]
        previous = tx.status
        tx.status = status
        tx.updated_at = utcnow()
        await self.db.commit()
        logger.info(
            f"Order status {previous} -> {status}",
            extra={"vendor_id": str(self.vendor.id), "order_id": str(tx.id)},
        )
        return {"order": {"id": str(tx.id), "status": tx.status, "updatedAt": _iso(tx.updated_at)}}

    async def analytics(self) -> dict[str, Any]:
        transactions = (await self.db.execute(
            select(Transaction).where(Transaction.vendor_id == self.vendor.id),
        )).scalars().all()
        products = (await self.db.execute(
            select(Product)
            .where(Product.vendor_id == self.vendor.id)
            .where(Product.deleted_at.is_(None)),
        )).scalars().all()

        now = utcnow()
        product_rows, top_products = product_breakdown(products, transactions)
        return {
            "overall": overall_metrics(transactions),
            "products": product_rows,
            "timeBased": daily_series(transactions, now),
            "monthly": monthly_series(transactions, now),
            "students": student_metrics(transactions),
            "topProducts": top_products,
        }
