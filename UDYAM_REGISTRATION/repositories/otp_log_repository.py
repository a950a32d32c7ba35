from sqlalchemy.orm import Session
from models.otp_log import OtpLog
from typing import Optional
from datetime import datetime, timezone


class OtpLogRepository:

    @staticmethod
    def create_log(
        db: Session,
        aadhaar: str,
        mobile: str,
        status: str,
        expiry_time: datetime,
        verified_at: Optional[datetime] = None,
    ) -> OtpLog:
        log = OtpLog(
            aadhaar     = aadhaar,
            mobile      = mobile,
            status      = status,
            expiry_time = expiry_time,
            verified_at = verified_at,
            created_at  = datetime.now(timezone.utc),
        )
        db.add(log)
        db.commit()
        return log

    @staticmethod
    def get_verified_since(db: Session, aadhaar: str, mobile: str, since: datetime) -> Optional[OtpLog]:
        return db.query(OtpLog).filter(
            OtpLog.aadhaar == aadhaar,
            OtpLog.mobile == mobile,
            OtpLog.status == "VERIFIED",
            OtpLog.verified_at >= since,
        ).order_by(OtpLog.verified_at.desc()).first()

    @staticmethod
    def delete_unverified_before(db: Session, cutoff_date: datetime) -> int:
        count = db.query(OtpLog).filter(
            OtpLog.status == "SENT",
            OtpLog.created_at < cutoff_date,
        ).delete(synchronize_session=False)
        db.commit()
        return count
