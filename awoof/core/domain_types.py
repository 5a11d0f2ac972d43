"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - UserId, StudentId, VendorId, ... wrap UUIDs — never use bare UUID in domain logic
    - Every status column has exactly one Enum here; DB stores the .value
    - All valid states encoded as Enums — no raw string matching

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders and compare equal to DB strings
"""

from enum import Enum
from typing import NewType
from uuid import UUID


# ─── Identity Types ──────────────────────────────────────────────

UserId = NewType("UserId", UUID)
StudentId = NewType("StudentId", UUID)
VendorId = NewType("VendorId", UUID)
UniversityId = NewType("UniversityId", UUID)
ProductId = NewType("ProductId", UUID)


# ─── Enums ───────────────────────────────────────────────────────

class UserRole(str, Enum):
    """Account roles — admin is never self-registered."""
    STUDENT = "student"
    VENDOR = "vendor"
    ADMIN = "admin"


class UserVerificationStatus(str, Enum):
    """Student verification state on the user row."""
    UNVERIFIED = "unverified"
    VERIFIED = "verified"
    EXPIRED = "expired"


class StudentStatus(str, Enum):
    ACTIVE = "active"
    SUSPENDED = "suspended"
    DELETED = "deleted"


class VendorStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    SUSPENDED = "suspended"
    REJECTED = "rejected"


class VerificationMethod(str, Enum):
    """Student verification channels, in default fallback order."""
    PORTAL = "portal"
    EMAIL = "email"
    REGISTRATION = "registration"
    WHATSAPP = "whatsapp"


class VerificationStatus(str, Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    FAILED = "failed"
    EXPIRED = "expired"


class UniversitySegment(str, Enum):
    FEDERAL = "federal"
    STATE = "state"
    PRIVATE = "private"


class ProductStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    OUT_OF_STOCK = "out_of_stock"


class TransactionStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


class PaymentSource(str, Enum):
    """Where the money moved: through Awoof or on the vendor's own site."""
    AWOOF = "awoof"
    VENDOR_PAYSTACK = "vendor_paystack"
    VENDOR_OTHER = "vendor_other"


class VendorPaymentMethod(str, Enum):
    AWOOF = "awoof"
    VENDOR_WEBSITE = "vendor_website"


class ApiKeyStatus(str, Enum):
    ACTIVE = "active"
    REVOKED = "revoked"
    EXPIRED = "expired"


class NotificationType(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class TicketCategory(str, Enum):
    """Support ticket topics; students may only use the first four."""
    GENERAL = "general"
    TECHNICAL = "technical"
    BILLING = "billing"
    ACCOUNT = "account"
    INTEGRATION = "integration"
    PRODUCT = "product"


STUDENT_TICKET_CATEGORIES = frozenset({
    TicketCategory.GENERAL, TicketCategory.TECHNICAL,
    TicketCategory.BILLING, TicketCategory.ACCOUNT,
})


class TicketStatus(str, Enum):
    OPEN = "open"
    IN_PROGRESS = "in-progress"
    RESOLVED = "resolved"
    CLOSED = "closed"


class TicketPriority(str, Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


def as_uuid(value: object) -> UUID:
    """Coerce a JWT claim or path string to UUID (raises ValueError when malformed)."""
    return value if isinstance(value, UUID) else UUID(str(value))
