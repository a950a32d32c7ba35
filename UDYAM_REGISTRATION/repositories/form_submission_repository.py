from sqlalchemy.orm import Session
from models.form_submission import FormSubmission, SubmissionStatus, ACTIVE_STATUSES
from typing import List, Optional
from datetime import datetime


class FormSubmissionRepository:

    @staticmethod
    def create_submission(db: Session, submission: FormSubmission) -> FormSubmission:
        db.add(submission)
        db.commit()
        db.refresh(submission)
        return submission

    @staticmethod
    def update_submission(db: Session, submission: FormSubmission) -> FormSubmission:
        db.commit()
        db.refresh(submission)
        return submission

    @staticmethod
    def get_by_application_id(db: Session, application_id: str) -> Optional[FormSubmission]:
        return db.query(FormSubmission).filter(FormSubmission.application_id == application_id).first()

    @staticmethod
    def get_active_by_aadhaar_and_pan(db: Session, aadhaar: str, pan: str) -> Optional[FormSubmission]:
        return db.query(FormSubmission).filter(
            FormSubmission.aadhaar == aadhaar,
            FormSubmission.pan == pan,
            FormSubmission.status.in_(ACTIVE_STATUSES),
        ).first()

    @staticmethod
    def get_page(db: Session, status: Optional[SubmissionStatus] = None, limit: int = 10, offset: int = 0) -> List[FormSubmission]:
        query = db.query(FormSubmission)
        if status:
            query = query.filter(FormSubmission.status == status)
        return query.order_by(
            FormSubmission.created_at.desc(), FormSubmission.id.desc()
        ).offset(offset).limit(limit).all()

    @staticmethod
    def count_all(db: Session, status: Optional[SubmissionStatus] = None) -> int:
        query = db.query(FormSubmission)
        if status:
            query = query.filter(FormSubmission.status == status)
        return query.count()

    @staticmethod
    def count_by_status(db: Session, status: SubmissionStatus) -> int:
        return db.query(FormSubmission).filter(FormSubmission.status == status).count()

    @staticmethod
    def count_created_since(db: Session, since: datetime) -> int:
        return db.query(FormSubmission).filter(FormSubmission.created_at >= since).count()
