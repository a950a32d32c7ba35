from datetime import datetime, timezone
from sqlalchemy import Column, String, Date, DateTime, Text, Enum as SQLEnum, Index, BigInteger, Integer
from core.database import Base
import enum


class SubmissionStatus(str, enum.Enum):
    SUBMITTED  = "SUBMITTED"
    PROCESSING = "PROCESSING"
    APPROVED   = "APPROVED"
    REJECTED   = "REJECTED"


ACTIVE_STATUSES = (SubmissionStatus.SUBMITTED, SubmissionStatus.PROCESSING, SubmissionStatus.APPROVED)


class FormSubmission(Base):
    __tablename__ = "form_submissions"

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    application_id = Column(String(40), unique=True, nullable=False, index=True)
    aadhaar = Column(String(12), nullable=False)
    mobile = Column(String(10), nullable=False)
    pan = Column(String(10), nullable=False)
    pan_holder_name = Column(String(100), nullable=False)
    date_of_birth = Column(Date, nullable=False)
    status = Column(SQLEnum(SubmissionStatus), default=SubmissionStatus.SUBMITTED, nullable=False)
    submission_data = Column(Text, nullable=True)
    submitted_at = Column(DateTime(timezone=True), nullable=False)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    ip_address = Column(String(45), nullable=True)
    user_agent = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)
    updated_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc), nullable=False)

    __table_args__ = (
        Index("idx_submission_status", "status"),
        Index("idx_aadhaar_pan", "aadhaar", "pan"),
    )
