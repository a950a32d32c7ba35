import json
import logging
import math
import secrets
import string
import time
from datetime import timedelta
from typing import Optional
from sqlalchemy.orm import Session

from core.config import (
    OTP_RECENCY_MINUTES, PAN_RECENCY_HOURS, PROCESSING_DELAY_SECONDS,
    APPROVAL_DELAY_SECONDS, ESTIMATED_PROCESSING_TIME,
)
from core.database import SessionLocal
from core.exceptions import UdyamAPIError, ValidationFailed, IntegrityFailed, DuplicateSubmission, ResourceNotFound
from models.form_submission import FormSubmission, SubmissionStatus
from repositories.otp_log_repository import OtpLogRepository
from repositories.pan_verification_repository import PanVerificationRepository
from repositories.form_submission_repository import FormSubmissionRepository
from repositories.audit_log_repository import AuditLogRepository
from services.status_scheduler import status_scheduler
from utils.name_matcher import normalize_name
from utils.timestamps import utcnow, as_utc, iso
from utils.validators import (
    MESSAGES, validate_aadhaar, validate_mobile, validate_otp, validate_pan,
    validate_name, validate_date_of_birth, parse_date, clean_aadhaar, clean_mobile, format_pan,
)

logger = logging.getLogger(__name__)

BASE36_ALPHABET = string.digits + string.ascii_lowercase

FORM_FIELD_VALIDATORS = (
    ("aadhaar", validate_aadhaar),
    ("mobile", validate_mobile),
    ("otp", validate_otp),
    ("pan", validate_pan),
    ("panHolderName", validate_name),
    ("dateOfBirth", validate_date_of_birth),
)


def to_base36(number: int) -> str:
    if number == 0:
        return "0"
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(BASE36_ALPHABET[remainder])
    return "".join(reversed(digits))


def generate_application_id() -> str:
    timestamp = to_base36(int(time.time() * 1000))
    random_part = "".join(secrets.choice(BASE36_ALPHABET) for _ in range(5))
    return f"UDYAM{timestamp}{random_part}".upper()


def _validate_payload(payload: dict) -> dict:
    """Field-format checks on a ``SubmitFormRequest.model_dump()``; timestamp and IP are already typed."""
    errors = {}
    form = payload.get("formData")
    if not form:
        raise ValidationFailed({"formData": MESSAGES["required"]})

    for field, validator in FORM_FIELD_VALIDATORS:
        error = validator(form.get(field))
        if error:
            errors[field] = error

    submitted_at = payload.get("timestamp")
    if submitted_at is None:
        errors["timestamp"] = MESSAGES["required"]

    if errors:
        raise ValidationFailed(errors)

    return {
        "aadhaar":       clean_aadhaar(form["aadhaar"]),
        "mobile":        clean_mobile(form["mobile"]),
        "otp":           form["otp"],
        "pan":           format_pan(form["pan"]),
        "panHolderName": form["panHolderName"].strip(),
        "dateOfBirth":   parse_date(form["dateOfBirth"]),
        "submittedAt":   as_utc(submitted_at),
    }


def check_integrity(db: Session, form: dict) -> dict:
    """Cross-check the submitted form against the persisted OTP and PAN verifications.

    Every problem is collected; a lookup that errors counts as a failure.
    """
    errors = {}
    now = utcnow()

    try:
        otp_verification = OtpLogRepository.get_verified_since(
            db, form["aadhaar"], form["mobile"], now - timedelta(minutes=OTP_RECENCY_MINUTES)
        )
        if not otp_verification:
            errors["otp"] = "OTP verification not found or expired"
    except Exception:
        db.rollback()
        logger.error("OTP verification check error", exc_info=True)
        errors["otp"] = "Unable to verify OTP status"

    try:
        pan_verification = PanVerificationRepository.get_verified_since(
            db, form["pan"], now - timedelta(hours=PAN_RECENCY_HOURS)
        )
        if not pan_verification:
            errors["pan"] = "PAN verification not found or expired"
        else:
            if pan_verification.date_of_birth != form["dateOfBirth"]:
                errors["dateOfBirth"] = "Date of birth does not match verified PAN data"
            if normalize_name(pan_verification.pan_holder_name) != normalize_name(form["panHolderName"]):
                errors["panHolderName"] = "Name does not match verified PAN data"
    except Exception:
        db.rollback()
        logger.error("PAN verification check error", exc_info=True)
        errors["pan"] = "Unable to verify PAN status"

    return errors


def advance_status(application_id: str, from_status: SubmissionStatus, to_status: SubmissionStatus,
                   session_factory=SessionLocal) -> bool:
    """Move a submission between workflow states; a no-op if it is no longer in ``from_status``."""
    db = session_factory()
    try:
        submission = FormSubmissionRepository.get_by_application_id(db, application_id)
        if not submission:
            logger.warning(f"Status update skipped, application {application_id} not found")
            return False
        if submission.status != from_status:
            logger.info(
                f"Status update skipped for {application_id}: "
                f"expected {from_status.value}, found {submission.status.value}"
            )
            return False

        submission.status = to_status
        if to_status == SubmissionStatus.APPROVED:
            submission.approved_at = utcnow()
        FormSubmissionRepository.update_submission(db, submission)
        logger.info(f"Application {application_id}: {from_status.value} -> {to_status.value}")

        try:
            AuditLogRepository.create_entry(
                db, application_id, "STATUS_CHANGED",
                {"from": from_status.value, "to": to_status.value},
            )
        except Exception:
            db.rollback()
            logger.error(f"Audit log error for {application_id}", exc_info=True)
        return True
    except Exception:
        db.rollback()
        logger.error(f"Status update error for {application_id}", exc_info=True)
        return False
    finally:
        db.close()


def _begin_processing(application_id: str):
    if advance_status(application_id, SubmissionStatus.SUBMITTED, SubmissionStatus.PROCESSING):
        status_scheduler.schedule(
            APPROVAL_DELAY_SECONDS, _approve, application_id, name=f"approve:{application_id}"
        )


def _approve(application_id: str):
    advance_status(application_id, SubmissionStatus.PROCESSING, SubmissionStatus.APPROVED)


def schedule_workflow(application_id: str):
    status_scheduler.schedule(
        PROCESSING_DELAY_SECONDS, _begin_processing, application_id, name=f"process:{application_id}"
    )


def _status_history(db: Session, application_id: str) -> list:
    try:
        entries = AuditLogRepository.get_by_application_id(db, application_id)
    except Exception:
        db.rollback()
        logger.error(f"Status history error for {application_id}", exc_info=True)
        return []
    return [
        {
            "action": entry.action,
            "timestamp": iso(entry.timestamp),
            "details": json.loads(entry.details) if entry.details else None,
        }
        for entry in entries
    ]


class SubmissionService:

    @staticmethod
    def submit_form(db: Session, payload: dict, client_ip: Optional[str] = None) -> dict:
        form = _validate_payload(payload)

        errors = check_integrity(db, form)
        if errors:
            logger.info(f"Submission rejected for PAN {form['pan']}: {sorted(errors)}")
            raise IntegrityFailed(errors)

        try:
            existing = FormSubmissionRepository.get_active_by_aadhaar_and_pan(db, form["aadhaar"], form["pan"])
        except Exception:
            db.rollback()
            logger.error("Duplicate check error", exc_info=True)
            existing = None

        if existing:
            raise DuplicateSubmission(
                "A submission already exists for this Aadhaar-PAN combination",
                data={
                    "applicationId": existing.application_id,
                    "submittedAt": iso(existing.created_at),
                    "status": existing.status.value,
                },
            )

        ip_address = str(payload["ipAddress"]) if payload.get("ipAddress") else client_ip
        user_agent = payload.get("userAgent")
        application_id = generate_application_id()

        try:
            submission = FormSubmissionRepository.create_submission(db, FormSubmission(
                application_id  = application_id,
                aadhaar         = form["aadhaar"],
                mobile          = form["mobile"],
                pan             = form["pan"],
                pan_holder_name = form["panHolderName"],
                date_of_birth   = form["dateOfBirth"],
                status          = SubmissionStatus.SUBMITTED,
                submission_data = json.dumps(payload["formData"]),
                submitted_at    = form["submittedAt"],
                ip_address      = ip_address,
                user_agent      = user_agent,
            ))
        except Exception:
            db.rollback()
            logger.error("Submit form error", exc_info=True)
            raise UdyamAPIError(500, "Failed to submit form. Please try again.")

        try:
            AuditLogRepository.create_entry(db, application_id, "FORM_SUBMITTED", {
                "aadhaar": form["aadhaar"],
                "mobile": form["mobile"],
                "pan": form["pan"],
                "ipAddress": ip_address,
                "userAgent": user_agent,
            })
        except Exception:
            db.rollback()
            logger.error(f"Audit log error for {application_id}", exc_info=True)

        schedule_workflow(application_id)
        logger.info(f"Application {application_id} submitted")

        return {
            "success": True,
            "message": "Form submitted successfully",
            "data": {
                "applicationId": application_id,
                "status": SubmissionStatus.SUBMITTED.value,
                "submittedAt": iso(submission.created_at),
                "estimatedProcessingTime": ESTIMATED_PROCESSING_TIME,
            },
        }

    @staticmethod
    def get_application_status(db: Session, application_id: str) -> dict:
        submission = FormSubmissionRepository.get_by_application_id(db, application_id)
        if not submission:
            raise ResourceNotFound("Application not found")

        data = {
            "applicationId": submission.application_id,
            "status": submission.status.value,
            "applicantName": submission.pan_holder_name,
            "pan": submission.pan,
            "submittedAt": iso(submission.submitted_at),
            "statusHistory": _status_history(db, application_id),
        }
        if submission.approved_at:
            data["approvedAt"] = iso(submission.approved_at)
        return {"success": True, "data": data}

    @staticmethod
    def list_submissions(db: Session, page: int = 1, limit: int = 10, status: Optional[str] = None) -> dict:
        status_filter = None
        if status:
            try:
                status_filter = SubmissionStatus(status)
            except ValueError:
                raise UdyamAPIError(400, "Invalid status filter")

        submissions = FormSubmissionRepository.get_page(db, status_filter, limit, (page - 1) * limit)
        total = FormSubmissionRepository.count_all(db, status_filter)

        return {
            "success": True,
            "data": {
                "submissions": [
                    {
                        "applicationId": s.application_id,
                        "panHolderName": s.pan_holder_name,
                        "pan":           s.pan,
                        "mobile":        s.mobile,
                        "status":        s.status.value,
                        "createdAt":     iso(s.created_at),
                        "submittedAt":   iso(s.submitted_at),
                        "approvedAt":    iso(s.approved_at),
                    }
                    for s in submissions
                ],
                "pagination": {
                    "page": page,
                    "limit": limit,
                    "total": total,
                    "pages": math.ceil(total / limit),
                },
            },
        }

    @staticmethod
    def get_statistics(db: Session) -> dict:
        total      = FormSubmissionRepository.count_all(db)
        submitted  = FormSubmissionRepository.count_by_status(db, SubmissionStatus.SUBMITTED)
        processing = FormSubmissionRepository.count_by_status(db, SubmissionStatus.PROCESSING)
        approved   = FormSubmissionRepository.count_by_status(db, SubmissionStatus.APPROVED)
        rejected   = FormSubmissionRepository.count_by_status(db, SubmissionStatus.REJECTED)

        midnight = utcnow().replace(hour=0, minute=0, second=0, microsecond=0)
        today = FormSubmissionRepository.count_created_since(db, midnight)

        return {
            "success": True,
            "data": {
                "total": total,
                "byStatus": {
                    "submitted":  submitted,
                    "processing": processing,
                    "approved":   approved,
                    "rejected":   rejected,
                },
                "today": today,
                "approvalRate": f"{(approved / total * 100):.2f}" if total > 0 else "0.00",
            },
        }
