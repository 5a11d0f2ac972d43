"""Support Desk — help-desk tickets opened by students and vendors.

Invariants:
    - An owner only ever sees their own tickets; another owner's ticket id answers 404
      "Support ticket not found"
    - Internal responses (admin notes) are never listed to the owner, nor counted in
      responseCount, and owners can never write one
    - A closed ticket accepts no further replies from its owner
    - Every reply bumps the ticket's updated_at so the newest activity sorts first

Design Decisions:
    - One desk class parameterized by DeskTables: the student and vendor desks differ
      only in their tables and the owner column
"""

import logging
from dataclasses import dataclass
from typing import Any
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from awoof.core.clock import utcnow
from awoof.core.domain_types import TicketStatus, UserRole
from awoof.core.errors import BadRequestError, NotFoundError
from awoof.models.support_ticket import (
    SupportTicket, SupportTicketResponse, VendorSupportTicket, VendorSupportTicketResponse,
)
from awoof.models.user import User
from awoof.schemas.support import StudentTicketCreate, VendorTicketCreate
from awoof.services.catalog_service import pagination

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeskTables:
    ticket: type
    response: type
    owner_column: str
    owner_role: UserRole


STUDENT_DESK = DeskTables(SupportTicket, SupportTicketResponse, "student_id", UserRole.STUDENT)
VENDOR_DESK = DeskTables(
    VendorSupportTicket, VendorSupportTicketResponse, "vendor_id", UserRole.VENDOR,
)


def _iso(value) -> str | None:
    return value.isoformat() if value else None


def ticket_to_dict(ticket: Any) -> dict[str, Any]:
    return {
        "id": str(ticket.id),
        "subject": ticket.subject,
        "message": ticket.message,
        "category": ticket.category,
        "status": ticket.status,
        "priority": ticket.priority,
        "resolvedAt": _iso(ticket.resolved_at),
        "createdAt": _iso(ticket.created_at),
        "updatedAt": _iso(ticket.updated_at),
    }


class SupportDesk:
    """Ticket operations for one owner (a student or a vendor) on one desk."""

    def __init__(self, db: AsyncSession, tables: DeskTables, owner_id: UUID, user_id: UUID):
        self.db = db
        self.tables = tables
        self.owner_id = owner_id
        self.user_id = user_id

    @property
    def _owner(self):
        return getattr(self.tables.ticket, self.tables.owner_column)

    async def _load(self, ticket_id: UUID) -> Any:
        Ticket = self.tables.ticket
        ticket = (await self.db.execute(
            select(Ticket).where(Ticket.id == ticket_id).where(self._owner == self.owner_id),
        )).scalar_one_or_none()
        if ticket is None:
            raise NotFoundError("Support ticket not found")
        return ticket

    async def create(self, body: StudentTicketCreate | VendorTicketCreate) -> dict[str, Any]:
        ticket = self.tables.ticket(
            subject=body.subject,
            message=body.message,
            category=body.category,
            status=TicketStatus.OPEN.value,
            **{self.tables.owner_column: self.owner_id},
        )
        self.db.add(ticket)
        await self.db.commit()
        logger.info(
            "Support ticket opened",
            extra={"ticket_id": str(ticket.id), "owner_role": self.tables.owner_role.value},
        )
        return {"ticket": ticket_to_dict(ticket)}

    async def list_tickets(
        self, page: int = 1, limit: int = 20, status: str | None = None,
    ) -> dict[str, Any]:
        Ticket, Response = self.tables.ticket, self.tables.response
        filters = [self._owner == self.owner_id]
        if status:
            filters.append(Ticket.status == status)

        total = (await self.db.execute(
            select(func.count(Ticket.id)).where(*filters),
        )).scalar_one()
        replies = (
            select(Response.ticket_id, func.count(Response.id).label("n"))
            .where(Response.is_internal.is_(False))
            .group_by(Response.ticket_id)
            .subquery()
        )
        rows = (await self.db.execute(
            select(Ticket, func.coalesce(replies.c.n, 0))
            .outerjoin(replies, replies.c.ticket_id == Ticket.id)
            .where(*filters)
            .order_by(Ticket.updated_at.desc())
            .limit(limit).offset((page - 1) * limit),
        )).all()
        return {
            "tickets": [
                {**ticket_to_dict(t), "responseCount": int(count)} for t, count in rows
            ],
            "pagination": pagination(page, limit, total),
        }

    async def get_ticket(self, ticket_id: UUID) -> dict[str, Any]:
        ticket = await self._load(ticket_id)
        Response = self.tables.response
        rows = (await self.db.execute(
            select(Response, User.email)
            .outerjoin(User, User.id == Response.user_id)
            .where(Response.ticket_id == ticket.id)
            .where(Response.is_internal.is_(False))
            .order_by(Response.created_at.asc()),
        )).all()
        return {
            "ticket": {
                **ticket_to_dict(ticket),
                "responses": [
                    {
                        "id": str(r.id),
                        "message": r.message,
                        "userRole": r.user_role,
                        "userEmail": email,
                        "createdAt": _iso(r.created_at),
                    }
                    for r, email in rows
                ],
            },
        }

    async def reply(self, ticket_id: UUID, message: str) -> dict[str, Any]:
        ticket = await self._load(ticket_id)
        if ticket.status == TicketStatus.CLOSED.value:
            raise BadRequestError("Cannot add response to a closed ticket")

        response = self.tables.response(
            ticket_id=ticket.id,
            user_id=self.user_id,
            user_role=self.tables.owner_role.value,
            message=message.strip(),
            is_internal=False,
        )
        self.db.add(response)
        ticket.updated_at = utcnow()
        await self.db.commit()
        return {
            "response": {
                "id": str(response.id),
                "message": response.message,
                "userRole": response.user_role,
                "createdAt": _iso(response.created_at),
            },
        }
