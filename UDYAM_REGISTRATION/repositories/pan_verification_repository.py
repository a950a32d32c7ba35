from sqlalchemy.orm import Session
from models.pan_verification import PanVerificationLog
from typing import Optional
from datetime import date, datetime, timezone


class PanVerificationRepository:

    @staticmethod
    def create_verification_log(
        db: Session,
        pan: str,
        pan_holder_name: str,
        date_of_birth: date,
        status: str,
        error_message: Optional[str] = None,
        match_percentage: Optional[float] = None,
        verification_data: Optional[str] = None,
    ) -> PanVerificationLog:
        log = PanVerificationLog(
            pan               = pan,
            pan_holder_name   = pan_holder_name,
            date_of_birth     = date_of_birth,
            status            = status,
            error_message     = error_message,
            match_percentage  = match_percentage,
            verification_data = verification_data,
            created_at        = datetime.now(timezone.utc),
        )
        db.add(log)
        db.commit()
        return log

    @staticmethod
    def get_verified_since(db: Session, pan: str, since: datetime) -> Optional[PanVerificationLog]:
        return db.query(PanVerificationLog).filter(
            PanVerificationLog.pan == pan,
            PanVerificationLog.status == "VERIFIED",
            PanVerificationLog.created_at >= since,
        ).order_by(PanVerificationLog.created_at.desc()).first()

    @staticmethod
    def get_latest_by_pan(db: Session, pan: str) -> Optional[PanVerificationLog]:
        return db.query(PanVerificationLog).filter(
            PanVerificationLog.pan == pan
        ).order_by(PanVerificationLog.created_at.desc(), PanVerificationLog.id.desc()).first()

    @staticmethod
    def delete_failed_verifications(db: Session, cutoff_date: datetime) -> int:
        count = db.query(PanVerificationLog).filter(
            PanVerificationLog.status == "FAILED",
            PanVerificationLog.created_at < cutoff_date,
        ).delete(synchronize_session=False)
        db.commit()
        return count
