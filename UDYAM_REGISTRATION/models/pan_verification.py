from datetime import datetime, timezone
from sqlalchemy import Column, String, Date, DateTime, Float, Text, Index, BigInteger, Integer
from core.database import Base


class PanVerificationLog(Base):
    __tablename__ = "pan_verifications"

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    pan = Column(String(10), nullable=False)
    pan_holder_name = Column(String(100), nullable=False)
    date_of_birth = Column(Date, nullable=False)
    status = Column(String(20), nullable=False)
    error_message = Column(String(200), nullable=True)
    match_percentage = Column(Float, nullable=True)
    verification_data = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), index=True, nullable=False)

    __table_args__ = (
        Index("idx_pan_status", "pan", "status"),
    )
