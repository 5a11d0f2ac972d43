"""ORM Models — SQLAlchemy declarative models for all domain entities.

Invariants:
    - All models inherit from Base (db/base.py)
    - User is the identity root; Student and Vendor are profiles keyed by user_id

Design Decisions:
    - One file per aggregate for locality (ADR: ExMA max 3-4 files to understand a feature)
    - All models imported here so SQLAlchemy resolves string-based relationship()
      references before any query runs (ADR: standard SQLAlchemy pattern)
"""

from awoof.models.user import User  # noqa: F401
from awoof.models.university import University, UniversityVerificationMethod  # noqa: F401
from awoof.models.student import Student  # noqa: F401
from awoof.models.vendor import Vendor  # noqa: F401
from awoof.models.category import Category  # noqa: F401
from awoof.models.product import Product  # noqa: F401
from awoof.models.verification import Verification, VerificationToken  # noqa: F401
from awoof.models.transaction import Transaction, SavingsStats  # noqa: F401
from awoof.models.api_key import ApiKey  # noqa: F401
from awoof.models.notification import Notification  # noqa: F401
from awoof.models.website_visit import WebsiteVisit  # noqa: F401
from awoof.models.support_ticket import (  # noqa: F401
    SupportTicket, SupportTicketResponse, VendorSupportTicket, VendorSupportTicketResponse,
)
