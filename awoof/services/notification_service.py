"""Notification Service — in-app messages for students.

Invariants:
    - Notifications are best-effort: a failed insert is rolled back and logged, never raised
    - Callers commit their own business transaction BEFORE notifying, so a notification
      failure can never undo a purchase or a verification
    - Savings milestone notifications fire only while a milestone applies (core.commission)
"""

import logging
from typing import Any
from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from awoof.core.clock import utcnow
from awoof.core.commission import savings_milestone
from awoof.core.domain_types import NotificationType
from awoof.models.notification import Notification

logger = logging.getLogger(__name__)


def notification_to_dict(n: Notification) -> dict[str, Any]:
    return {
        "id": str(n.id),
        "title": n.title,
        "message": n.message,
        "type": n.type,
        "read": n.read,
        "metadata": n.extra,
        "createdAt": n.created_at.isoformat() if n.created_at else None,
        "readAt": n.read_at.isoformat() if n.read_at else None,
    }


class NotificationService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(
        self,
        student_id: UUID,
        title: str,
        message: str,
        type: NotificationType = NotificationType.INFO,
        metadata: dict[str, Any] | None = None,
    ) -> bool:
        """Insert and commit one notification; False when the write failed."""
        try:
            self.db.add(Notification(
                student_id=student_id, title=title, message=message,
                type=type.value, extra=metadata,
            ))
            await self.db.commit()
            return True
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(
                f"Failed to create notification: {e}",
                extra={"student_id": str(student_id)},
            )
            return False

    async def notify_purchase_confirmation(
        self, student_id: UUID, product_name: str, amount: float, discount: float,
        transaction_id: str,
    ) -> bool:
        return await self.create(
            student_id,
            "Purchase Confirmed",
            f"Your purchase of {product_name} has been confirmed. Receipt sent to your email.",
            NotificationType.SUCCESS,
            {
                "transactionId": transaction_id,
                "productName": product_name,
                "amount": amount,
                "discount": discount,
            },
        )

    async def notify_savings_milestone(self, student_id: UUID, total_savings: float) -> bool:
        milestone = savings_milestone(total_savings)
        if milestone is None:
            return False
        return await self.create(
            student_id,
            "Savings Milestone",
            f"Congratulations! You have saved over ₦{milestone:,}",
            NotificationType.SUCCESS,
            {"milestone": milestone, "totalSavings": total_savings},
        )

    async def notify_verification_success(self, student_id: UUID) -> bool:
        return await self.create(
            student_id,
            "Verification Successful",
            "Your student verification has been completed successfully!",
            NotificationType.SUCCESS,
            {"event": "verification_success"},
        )

    # ─── Student inbox ───────────────────────────────────────────

    async def list_for_student(
        self, student_id: UUID, page: int = 1, limit: int = 20, unread_only: bool = False,
    ) -> dict[str, Any]:
        query = select(Notification).where(Notification.student_id == student_id)
        count_query = select(func.count(Notification.id)).where(
            Notification.student_id == student_id,
        )
        if unread_only:
            query = query.where(Notification.read.is_(False))
            count_query = count_query.where(Notification.read.is_(False))

        total = (await self.db.execute(count_query)).scalar_one()
        unread = (await self.db.execute(
            select(func.count(Notification.id))
            .where(Notification.student_id == student_id)
            .where(Notification.read.is_(False)),
        )).scalar_one()
        rows = (await self.db.execute(
            query.order_by(Notification.created_at.desc())
            .limit(limit).offset((page - 1) * limit),
        )).scalars().all()

        return {
            "notifications": [notification_to_dict(n) for n in rows],
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "totalPages": (total + limit - 1) // limit,
            },
            "unreadCount": unread,
        }

    async def mark_read(
        self, student_id: UUID, notification_ids: list[UUID] | None, mark_all: bool,
    ) -> int:
        """Mark the student's notifications read; returns how many rows changed."""
        stmt = (
            update(Notification)
            .where(Notification.student_id == student_id)
            .where(Notification.read.is_(False))
        )
        if not mark_all:
            if not notification_ids:
                return 0
            stmt = stmt.where(Notification.id.in_(notification_ids))
        result = await self.db.execute(stmt.values(read=True, read_at=utcnow()))
        await self.db.commit()
        return result.rowcount or 0

    async def delete(self, student_id: UUID, notification_ids: list[UUID]) -> int:
        """Delete the student's own notifications by id; others' ids are ignored."""
        result = await self.db.execute(
            delete(Notification)
            .where(Notification.student_id == student_id)
            .where(Notification.id.in_(notification_ids)),
        )
        await self.db.commit()
        return result.rowcount or 0
