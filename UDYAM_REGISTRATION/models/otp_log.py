from datetime import datetime, timezone
from sqlalchemy import Column, String, DateTime, Index, BigInteger, Integer
from core.database import Base


class OtpLog(Base):
    __tablename__ = "otp_logs"

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    aadhaar = Column(String(12), nullable=False)
    mobile = Column(String(10), nullable=False)
    status = Column(String(20), nullable=False)
    expiry_time = Column(DateTime(timezone=True), nullable=False)
    verified_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), index=True, nullable=False)

    __table_args__ = (
        Index("idx_otp_lookup", "aadhaar", "mobile", "status"),
    )
