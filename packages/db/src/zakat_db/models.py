# This project was developed with assistance from AI tools.
"""
Zakat casework -- domain models

Applications and their append-only history, notes and disbursement ledger,
the organizations (masajid) whose aggregate counters track casework, user
profiles, applicant flags, and the notification / audit sinks.
"""

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from .database import Base, utcnow
from .enums import (
    ApplicationStatus,
    DisbursementMethod,
    FlagSeverity,
    HistoryAction,
    ResolutionDecision,
    UserRole,
)


class UserProfile(Base):
    """Profile linked to the identity provider's user id."""

    __tablename__ = "user_profiles"

    user_id = Column(String(255), primary_key=True)
    first_name = Column(String(100), nullable=False, default="")
    last_name = Column(String(100), nullable=False, default="")
    email = Column(String(255), nullable=False, index=True)
    phone = Column(String(50), nullable=True)
    role = Column(
        Enum(UserRole, name="user_role", native_enum=False),
        nullable=False,
        default=UserRole.APPLICANT,
    )
    masjid_id = Column(Integer, ForeignKey("masajid.id", ondelete="SET NULL"), nullable=True)
    is_flagged = Column(Boolean, nullable=False, default=False)
    flagged_reason = Column(Text, nullable=True)
    flagged_at = Column(DateTime(timezone=True), nullable=True)
    flagged_by = Column(String(255), nullable=True)
    flagged_by_masjid = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    @property
    def display_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip() or self.email

    def __repr__(self):
        return f"<UserProfile(user_id='{self.user_id}', role='{self.role}')>"


class Masjid(Base):
    """Affiliated organization. Aggregate counters change only via atomic UPDATEs."""

    __tablename__ = "masajid"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    city = Column(String(100), nullable=True)
    zip_code = Column(String(20), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    applications_in_progress = Column(Integer, nullable=False, default=0)
    total_applications_handled = Column(Integer, nullable=False, default=0)
    total_amount_disbursed = Column(Numeric(14, 2), nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    def __repr__(self):
        return f"<Masjid(id={self.id}, name='{self.name}')>"


class Counter(Base):
    """Named monotonic sequence (e.g. application numbers)."""

    __tablename__ = "counters"

    name = Column(String(100), primary_key=True)
    value = Column(Integer, nullable=False, default=0)


class Application(Base):
    """Zakat assistance application -- the aggregate root."""

    __tablename__ = "applications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    application_number = Column(String(20), unique=True, nullable=True)
    status = Column(
        Enum(ApplicationStatus, name="application_status", native_enum=False),
        nullable=False,
        default=ApplicationStatus.DRAFT,
        index=True,
    )

    # Applicant snapshot, copied at creation. Only applicant_is_flagged is
    # kept in sync afterwards, and only by the flag service.
    applicant_id = Column(String(255), nullable=False, index=True)
    applicant_name = Column(String(255), nullable=False, default="")
    applicant_email = Column(String(255), nullable=False, default="")
    applicant_phone = Column(String(50), nullable=True)
    applicant_is_flagged = Column(Boolean, nullable=False, default=False)

    # Request details entered by the applicant while in draft
    request_type = Column(String(100), nullable=True)
    amount_requested = Column(Numeric(12, 2), nullable=True)
    description = Column(Text, nullable=True)
    form_data = Column(JSON, nullable=True)

    # Ownership -- set and cleared together
    assigned_to = Column(String(255), nullable=True, index=True)
    assigned_to_masjid = Column(
        Integer, ForeignKey("masajid.id", ondelete="SET NULL"), nullable=True, index=True,
    )
    assigned_to_masjid_name = Column(String(255), nullable=True)
    assigned_to_masjid_zip_code = Column(String(20), nullable=True)
    assigned_at = Column(DateTime(timezone=True), nullable=True)

    # Resolution -- decided_at marks "already counted in masjid aggregates"
    decision = Column(
        Enum(ResolutionDecision, name="resolution_decision", native_enum=False),
        nullable=True,
    )
    decided_by = Column(String(255), nullable=True)
    decided_by_name = Column(String(255), nullable=True)
    decided_by_masjid = Column(Integer, nullable=True)
    decided_at = Column(DateTime(timezone=True), nullable=True)
    amount_approved = Column(Numeric(12, 2), nullable=True)
    disbursement_method = Column(String(50), nullable=True)
    rejection_reason = Column(Text, nullable=True)
    amount_disbursed = Column(Numeric(12, 2), nullable=True)
    disbursed_at = Column(DateTime(timezone=True), nullable=True)
    disbursed_by = Column(String(255), nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
    submitted_at = Column(DateTime(timezone=True), nullable=True)

    history = relationship(
        "ApplicationHistory", back_populates="application", cascade="all, delete-orphan",
    )
    notes = relationship(
        "ApplicationNote", back_populates="application", cascade="all, delete-orphan",
    )
    disbursements = relationship(
        "Disbursement", back_populates="application", cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<Application(id={self.id}, status='{self.status}')>"


class ApplicationHistory(Base):
    """Append-only history entry. INSERT + SELECT only -- no UPDATE or DELETE."""

    __tablename__ = "application_history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    application_id = Column(
        Integer, ForeignKey("applications.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    action = Column(
        Enum(HistoryAction, name="history_action", native_enum=False),
        nullable=False,
    )
    performed_by = Column(String(255), nullable=False)
    performed_by_name = Column(String(255), nullable=False)
    performed_by_role = Column(String(50), nullable=True)
    performed_by_masjid = Column(Integer, nullable=True)
    previous_status = Column(
        Enum(ApplicationStatus, name="application_status", native_enum=False),
        nullable=True,
    )
    new_status = Column(
        Enum(ApplicationStatus, name="application_status", native_enum=False),
        nullable=True,
    )
    previous_assignee = Column(String(255), nullable=True)
    new_assignee = Column(String(255), nullable=True)
    details = Column(Text, nullable=False)
    event_metadata = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    application = relationship("Application", back_populates="history")

    def __repr__(self):
        return f"<ApplicationHistory(app_id={self.application_id}, action='{self.action}')>"


class ApplicationNote(Base):
    """Staff note on an application; internal notes are hidden from the applicant."""

    __tablename__ = "application_notes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    application_id = Column(
        Integer, ForeignKey("applications.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    content = Column(Text, nullable=False)
    is_internal = Column(Boolean, nullable=False, default=True)
    created_by = Column(String(255), nullable=False)
    created_by_name = Column(String(255), nullable=False)
    created_by_masjid = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    application = relationship("Application", back_populates="notes")

    def __repr__(self):
        return f"<ApplicationNote(id={self.id}, internal={self.is_internal})>"


class Disbursement(Base):
    """Immutable disbursement ledger row."""

    __tablename__ = "disbursements"

    id = Column(Integer, primary_key=True, autoincrement=True)
    application_id = Column(
        Integer, ForeignKey("applications.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    applicant_id = Column(String(255), nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    method = Column(
        Enum(DisbursementMethod, name="disbursement_method", native_enum=False),
        nullable=False,
    )
    reference_number = Column(String(100), nullable=True)
    notes = Column(Text, nullable=True)
    disbursed_by = Column(String(255), nullable=False)
    disbursed_by_name = Column(String(255), nullable=False)
    masjid_id = Column(Integer, ForeignKey("masajid.id", ondelete="SET NULL"), nullable=True)
    masjid_name = Column(String(255), nullable=False)
    period_month = Column(Integer, nullable=True)
    period_year = Column(Integer, nullable=True)
    disbursed_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    application = relationship("Application", back_populates="disbursements")

    def __repr__(self):
        return f"<Disbursement(id={self.id}, app_id={self.application_id}, amount={self.amount})>"


class Flag(Base):
    """Fraud / eligibility flag on an applicant, independent of any one application."""

    __tablename__ = "flags"

    id = Column(Integer, primary_key=True, autoincrement=True)
    applicant_id = Column(String(255), nullable=False, index=True)
    applicant_name = Column(String(255), nullable=False, default="")
    applicant_email = Column(String(255), nullable=True)
    reason = Column(Text, nullable=False)
    severity = Column(
        Enum(FlagSeverity, name="flag_severity", native_enum=False),
        nullable=False,
    )
    application_id = Column(Integer, nullable=True)
    application_number = Column(String(20), nullable=True)
    flagged_by = Column(String(255), nullable=False)
    flagged_by_name = Column(String(255), nullable=False)
    flagged_by_masjid = Column(Integer, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    resolved_at = Column(DateTime(timezone=True), nullable=True)
    resolved_by = Column(String(255), nullable=True)
    resolution_notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    def __repr__(self):
        return f"<Flag(id={self.id}, applicant='{self.applicant_id}', active={self.is_active})>"


class Notification(Base):
    """Queued notification. Delivery (email, push) happens outside this service."""

    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(255), nullable=False, index=True)
    type = Column(String(50), nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    application_id = Column(Integer, nullable=True, index=True)
    extra = Column(JSON, nullable=True)
    read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    def __repr__(self):
        return f"<Notification(id={self.id}, user='{self.user_id}', type='{self.type}')>"


class AuditEvent(Base):
    """Append-only audit trail. INSERT + SELECT only -- no UPDATE or DELETE."""

    __tablename__ = "audit_events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    timestamp = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    user_id = Column(String(255), nullable=True)
    user_role = Column(String(50), nullable=True)
    event_type = Column(String(100), nullable=False, index=True)
    target_collection = Column(String(100), nullable=True)
    target_id = Column(String(255), nullable=True)
    event_data = Column(JSON, nullable=True)

    def __repr__(self):
        return f"<AuditEvent(id={self.id}, type='{self.event_type}')>"
