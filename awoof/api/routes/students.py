"""Student Routes — profile, savings, purchases, visits, notifications and support tickets.

Invariants:
    - /profile only needs the student role: it answers before a profile row exists
    - Every other route resolves the caller's profile first (404 "Student profile not found")
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from awoof.api.dependencies import AuthUser, get_current_student, require_role
from awoof.api.responses import success
from awoof.core.domain_types import TicketStatus, UserRole
from awoof.core.errors import BadRequestError
from awoof.infrastructure.database import get_db
from awoof.models.student import Student
from awoof.schemas.student import (
    DeleteNotifications, MarkNotificationsRead, StudentProfileUpdate, TrackVisitRequest,
)
from awoof.schemas.support import StudentTicketCreate, TicketReply
from awoof.services import student_service
from awoof.services.notification_service import NotificationService
from awoof.services.support_desk import STUDENT_DESK, SupportDesk

router = APIRouter(prefix="/api/v1/students", tags=["students"])


def get_support_desk(
    student: Student = Depends(get_current_student), db: AsyncSession = Depends(get_db),
) -> SupportDesk:
    return SupportDesk(db, STUDENT_DESK, student.id, student.user_id)


# ─── Profile ─────────────────────────────────────────────────────

@router.get("/profile")
async def get_profile(
    user: AuthUser = Depends(require_role(UserRole.STUDENT)),
    db: AsyncSession = Depends(get_db),
):
    data = await student_service.get_profile(db, user.id)
    return success(data, "Profile retrieved successfully")


@router.put("/profile")
async def update_profile(
    body: StudentProfileUpdate,
    user: AuthUser = Depends(require_role(UserRole.STUDENT)),
    db: AsyncSession = Depends(get_db),
):
    data = await student_service.update_profile(db, user.id, body)
    return success(data, "Profile updated successfully")


# ─── Savings and purchases ───────────────────────────────────────

@router.get("/savings")
async def get_savings(
    student: Student = Depends(get_current_student), db: AsyncSession = Depends(get_db),
):
    data = await student_service.savings_summary(db, student.id)
    return success(data, "Savings statistics retrieved successfully")


@router.get("/purchases")
async def list_purchases(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    student: Student = Depends(get_current_student),
    db: AsyncSession = Depends(get_db),
):
    data = await student_service.purchase_history(db, student.id, page, limit)
    return success(data, "Purchase history retrieved successfully")


@router.post("/website-visits", status_code=status.HTTP_201_CREATED)
async def track_visit(
    body: TrackVisitRequest,
    student: Student = Depends(get_current_student),
    db: AsyncSession = Depends(get_db),
):
    data = await student_service.track_visit(db, student.id, body)
    return success(data, "Website visit tracked successfully")


@router.get("/website-visits")
async def list_visits(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    student: Student = Depends(get_current_student),
    db: AsyncSession = Depends(get_db),
):
    data = await student_service.list_visits(db, student.id, page, limit)
    return success(data, "Website visits retrieved successfully")


# ─── Notifications ───────────────────────────────────────────────

@router.get("/notifications")
async def list_notifications(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    unread_only: bool = Query(False, alias="unreadOnly"),
    student: Student = Depends(get_current_student),
    db: AsyncSession = Depends(get_db),
):
    data = await NotificationService(db).list_for_student(student.id, page, limit, unread_only)
    return success(data, "Notifications retrieved successfully")


@router.put("/notifications/read")
async def mark_notifications_read(
    body: MarkNotificationsRead,
    student: Student = Depends(get_current_student),
    db: AsyncSession = Depends(get_db),
):
    if not body.mark_all and not body.notification_ids:
        raise BadRequestError("Provide notificationIds or set markAll")
    updated = await NotificationService(db).mark_read(
        student.id, body.notification_ids, body.mark_all,
    )
    return success({"updated": updated}, "Notifications marked as read")


@router.delete("/notifications")
async def delete_notifications(
    body: DeleteNotifications,
    student: Student = Depends(get_current_student),
    db: AsyncSession = Depends(get_db),
):
    deleted = await NotificationService(db).delete(student.id, body.notification_ids)
    return success({"deletedCount": deleted}, "Notifications deleted successfully")


# ─── Support ─────────────────────────────────────────────────────

@router.post("/support-tickets", status_code=status.HTTP_201_CREATED)
async def create_support_ticket(
    body: StudentTicketCreate, desk: SupportDesk = Depends(get_support_desk),
):
    return success(await desk.create(body), "Support ticket created successfully")


@router.get("/support-tickets")
async def list_support_tickets(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status_filter: TicketStatus | None = Query(None, alias="status"),
    desk: SupportDesk = Depends(get_support_desk),
):
    data = await desk.list_tickets(page, limit, status_filter.value if status_filter else None)
    return success(data, "Support tickets retrieved successfully")


@router.get("/support-tickets/{ticket_id}")
async def get_support_ticket(ticket_id: UUID, desk: SupportDesk = Depends(get_support_desk)):
    return success(await desk.get_ticket(ticket_id), "Support ticket retrieved successfully")


@router.post("/support-tickets/{ticket_id}/responses", status_code=status.HTTP_201_CREATED)
async def reply_support_ticket(
    ticket_id: UUID, body: TicketReply, desk: SupportDesk = Depends(get_support_desk),
):
    return success(await desk.reply(ticket_id, body.message), "Response added successfully")
