import json
from sqlalchemy.orm import Session
from models.audit_log import AuditLog
from typing import List, Optional
from datetime import datetime, timezone


class AuditLogRepository:

    @staticmethod
    def create_entry(db: Session, application_id: str, action: str, details: Optional[dict] = None) -> AuditLog:
        entry = AuditLog(
            application_id = application_id,
            action         = action,
            details        = json.dumps(details) if details is not None else None,
            timestamp      = datetime.now(timezone.utc),
        )
        db.add(entry)
        db.commit()
        return entry

    @staticmethod
    def get_by_application_id(db: Session, application_id: str) -> List[AuditLog]:
        return db.query(AuditLog).filter(
            AuditLog.application_id == application_id
        ).order_by(AuditLog.timestamp.asc(), AuditLog.id.asc()).all()
