# This project was developed with assistance from AI tools.
__version__ = "0.1.0"

from .database import Base, DatabaseService, SessionLocal, get_db, get_db_service, utcnow
from .enums import (
    ApplicationStatus,
    DisbursementMethod,
    FlagSeverity,
    HistoryAction,
    NotificationType,
    ResolutionDecision,
    UserRole,
)
from .models import (
    Application,
    ApplicationHistory,
    ApplicationNote,
    AuditEvent,
    Counter,
    Disbursement,
    Flag,
    Masjid,
    Notification,
    UserProfile,
)

__all__ = [
    "Base",
    "DatabaseService",
    "SessionLocal",
    "get_db",
    "get_db_service",
    "utcnow",
    "__version__",
    # Enums
    "ApplicationStatus",
    "DisbursementMethod",
    "FlagSeverity",
    "HistoryAction",
    "NotificationType",
    "ResolutionDecision",
    "UserRole",
    # Models
    "Application",
    "ApplicationHistory",
    "ApplicationNote",
    "AuditEvent",
    "Counter",
    "Disbursement",
    "Flag",
    "Masjid",
    "Notification",
    "UserProfile",
]
