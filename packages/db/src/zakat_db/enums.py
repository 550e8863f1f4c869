# This project was developed with assistance from AI tools.
"""
Domain enums for the zakat application lifecycle.

Shared domain types used by both SQLAlchemy models (zakat_db package)
and Pydantic schemas (zakat_api package).
"""

import enum


class ApplicationStatus(str, enum.Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    UNDER_REVIEW = "under_review"
    PENDING_DOCUMENTS = "pending_documents"
    PENDING_VERIFICATION = "pending_verification"
    APPROVED = "approved"
    REJECTED = "rejected"
    DISBURSED = "disbursed"
    CLOSED = "closed"

    @classmethod
    def terminal_statuses(cls) -> frozenset["ApplicationStatus"]:
        """Statuses that count as a resolution in organization aggregates."""
        return frozenset({cls.APPROVED, cls.REJECTED, cls.DISBURSED, cls.CLOSED})

    @classmethod
    def active_statuses(cls) -> frozenset["ApplicationStatus"]:
        """Claimed, unresolved statuses -- the ones that can be released to the pool."""
        return frozenset({cls.UNDER_REVIEW, cls.PENDING_DOCUMENTS, cls.PENDING_VERIFICATION})

    @classmethod
    def valid_transitions(cls) -> dict["ApplicationStatus", frozenset["ApplicationStatus"]]:
        """Allowed status transitions in the application lifecycle."""
        return {
            cls.DRAFT: frozenset({cls.SUBMITTED}),
            cls.SUBMITTED: frozenset({cls.UNDER_REVIEW, cls.REJECTED}),
            cls.UNDER_REVIEW: frozenset(
                {cls.PENDING_DOCUMENTS, cls.PENDING_VERIFICATION, cls.APPROVED, cls.REJECTED}
            ),
            cls.PENDING_DOCUMENTS: frozenset({cls.UNDER_REVIEW, cls.REJECTED, cls.CLOSED}),
            cls.PENDING_VERIFICATION: frozenset({cls.APPROVED, cls.REJECTED, cls.UNDER_REVIEW}),
            cls.APPROVED: frozenset({cls.DISBURSED, cls.CLOSED}),
            cls.REJECTED: frozenset({cls.CLOSED}),
            cls.DISBURSED: frozenset({cls.CLOSED}),
            cls.CLOSED: frozenset(),
        }


class UserRole(str, enum.Enum):
    APPLICANT = "applicant"
    ZAKAT_ADMIN = "zakat_admin"
    SUPER_ADMIN = "super_admin"

    @classmethod
    def staff_roles(cls) -> frozenset["UserRole"]:
        return frozenset({cls.ZAKAT_ADMIN, cls.SUPER_ADMIN})


class ResolutionDecision(str, enum.Enum):
    APPROVED = "approved"
    PARTIAL = "partial"
    REJECTED = "rejected"
    CLOSED = "closed"


class HistoryAction(str, enum.Enum):
    CREATED = "created"
    SUBMITTED = "submitted"
    ASSIGNED = "assigned"
    RELEASED = "released"
    STATUS_CHANGED = "status_changed"
    NOTE_ADDED = "note_added"
    APPROVED = "approved"
    REJECTED = "rejected"
    DISBURSED = "disbursed"
    FLAGGED = "flagged"
    EDITED = "edited"


class DisbursementMethod(str, enum.Enum):
    CHECK = "check"
    CASH = "cash"
    BANK_TRANSFER = "bank_transfer"
    MONEY_ORDER = "money_order"
    GIFT_CARD = "gift_card"
    DIRECT_PAYMENT = "direct_payment"
    OTHER = "other"


class FlagSeverity(str, enum.Enum):
    WARNING = "warning"
    BLOCKED = "blocked"


class NotificationType(str, enum.Enum):
    APPLICATION_SUBMITTED = "application_submitted"
    APPLICATION_ASSIGNED = "application_assigned"
    APPLICATION_APPROVED = "application_approved"
    APPLICATION_REJECTED = "application_rejected"
    STATUS_UPDATE = "status_update"
