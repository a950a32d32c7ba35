"""
Submission service internals: integrity checks, workflow transitions,
application ids and the housekeeping sweep.
"""

from __future__ import annotations

import re
from datetime import date, datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from core.database import SessionLocal
from core.exceptions import IntegrityFailed, ValidationFailed
from models.form_submission import FormSubmission, SubmissionStatus
from models.otp_log import OtpLog
from models.pan_verification import PanVerificationLog
from repositories.audit_log_repository import AuditLogRepository
from repositories.form_submission_repository import FormSubmissionRepository
from repositories.otp_log_repository import OtpLogRepository
from repositories.pan_verification_repository import PanVerificationRepository
from schemas.form_schema import SubmitFormRequest
from services.auto_cleanup import AutoCleanup
from services.submission_service import (
    SubmissionService,
    advance_status,
    check_integrity,
    generate_application_id,
    to_base36,
)
from utils.timestamps import utcnow

AADHAAR = "123456789012"
MOBILE = "9876543210"
PAN = "ABCDE1234F"
DOB = date(1990, 1, 15)

FORM = {
    "aadhaar": AADHAAR,
    "mobile": MOBILE,
    "pan": PAN,
    "panHolderName": "John Doe",
    "dateOfBirth": DOB,
}

RAW_PAYLOAD = {
    "formData": {
        "aadhaar": AADHAAR,
        "mobile": MOBILE,
        "otp": "123456",
        "pan": PAN,
        "panHolderName": "John Doe",
        "dateOfBirth": DOB.isoformat(),
    },
    "timestamp": "2024-06-15T10:00:00Z",
    "ipAddress": "10.0.0.7",
}

PAYLOAD = SubmitFormRequest(**RAW_PAYLOAD).model_dump()


@pytest.fixture()
def db():
    session = SessionLocal()
    yield session
    session.close()


def _record_verifications(db) -> None:
    now = utcnow()
    OtpLogRepository.create_log(
        db, AADHAAR, MOBILE, "VERIFIED", expiry_time=now + timedelta(minutes=10), verified_at=now
    )
    PanVerificationRepository.create_verification_log(
        db, PAN, "John Doe", DOB, "VERIFIED", match_percentage=100.0
    )


def _boom(*args, **kwargs):
    raise RuntimeError("database unavailable")


class TestIdentifiers:
    def test_to_base36(self) -> None:
        assert to_base36(0) == "0"
        assert to_base36(35) == "z"
        assert to_base36(36) == "10"

    def test_application_id_shape(self) -> None:
        application_id = generate_application_id()
        assert re.fullmatch(r"UDYAM[0-9A-Z]{13,}", application_id)

    def test_application_ids_are_distinct(self) -> None:
        assert len({generate_application_id() for _ in range(200)}) == 200


class TestSubmitFormRequest:
    def test_timestamp_is_parsed_to_utc(self) -> None:
        request = SubmitFormRequest(timestamp="2024-06-15T15:30:00+05:30")
        assert request.timestamp == datetime(2024, 6, 15, 10, 0, tzinfo=timezone.utc)
        assert request.timestamp.tzinfo == timezone.utc

    def test_naive_timestamp_is_taken_as_utc(self) -> None:
        request = SubmitFormRequest(timestamp="2024-06-15T10:00:00")
        assert request.timestamp == datetime(2024, 6, 15, 10, 0, tzinfo=timezone.utc)

    def test_blank_optional_fields_are_absent(self) -> None:
        request = SubmitFormRequest(timestamp="  ", ipAddress="")
        assert request.timestamp is None
        assert request.ipAddress is None

    @pytest.mark.parametrize("field, value", [
        ("timestamp", "yesterday"),
        ("ipAddress", "999.1.1.1"),
        ("ipAddress", "10.0.0.7\n"),
    ])
    def test_malformed_values_are_rejected(self, field: str, value: str) -> None:
        with pytest.raises(ValidationError) as exc_info:
            SubmitFormRequest(**{field: value})
        assert exc_info.value.errors()[0]["loc"] == (field,)

    def test_ipv6_is_accepted(self) -> None:
        assert str(SubmitFormRequest(ipAddress="::1").ipAddress) == "::1"

    def test_missing_timestamp_is_reported_as_required(self, db) -> None:
        payload = SubmitFormRequest(**{**RAW_PAYLOAD, "timestamp": None}).model_dump()
        with pytest.raises(ValidationFailed) as exc_info:
            SubmissionService.submit_form(db, payload)
        assert exc_info.value.errors == {"timestamp": "This field is required"}


class TestIntegrity:
    def test_passes_with_fresh_verifications(self, db) -> None:
        _record_verifications(db)
        assert check_integrity(db, FORM) == {}

    def test_stale_otp_verification_is_ignored(self, db) -> None:
        old = utcnow() - timedelta(minutes=31)
        OtpLogRepository.create_log(db, AADHAAR, MOBILE, "VERIFIED", expiry_time=old, verified_at=old)
        PanVerificationRepository.create_verification_log(db, PAN, "John Doe", DOB, "VERIFIED")
        assert check_integrity(db, FORM) == {"otp": "OTP verification not found or expired"}

    def test_name_mismatch_against_verified_pan(self, db) -> None:
        _record_verifications(db)
        errors = check_integrity(db, {**FORM, "panHolderName": "John Smith"})
        assert errors == {"panHolderName": "Name does not match verified PAN data"}

    def test_otp_lookup_failure_fails_closed(self, db, monkeypatch: pytest.MonkeyPatch) -> None:
        _record_verifications(db)
        monkeypatch.setattr(OtpLogRepository, "get_verified_since", staticmethod(_boom))
        assert check_integrity(db, FORM) == {"otp": "Unable to verify OTP status"}

    def test_pan_lookup_failure_fails_closed(self, db, monkeypatch: pytest.MonkeyPatch) -> None:
        _record_verifications(db)
        monkeypatch.setattr(PanVerificationRepository, "get_verified_since", staticmethod(_boom))
        assert check_integrity(db, FORM) == {"pan": "Unable to verify PAN status"}

    def test_submit_raises_on_integrity_failure(self, db) -> None:
        with pytest.raises(IntegrityFailed) as exc_info:
            SubmissionService.submit_form(db, PAYLOAD)
        assert exc_info.value.status_code == 400
        assert set(exc_info.value.errors) == {"otp", "pan"}


class TestSubmit:
    def test_ip_from_body_wins_over_client(self, db) -> None:
        _record_verifications(db)
        result = SubmissionService.submit_form(db, PAYLOAD, client_ip="127.0.0.1")
        submission = FormSubmissionRepository.get_by_application_id(db, result["data"]["applicationId"])
        assert submission.ip_address == "10.0.0.7"
        assert submission.status == SubmissionStatus.SUBMITTED

    def test_client_ip_used_when_body_has_none(self, db) -> None:
        _record_verifications(db)
        payload = {**PAYLOAD, "ipAddress": None}
        result = SubmissionService.submit_form(db, payload, client_ip="127.0.0.1")
        submission = FormSubmissionRepository.get_by_application_id(db, result["data"]["applicationId"])
        assert submission.ip_address == "127.0.0.1"

    def test_audit_failure_does_not_fail_submission(self, db, monkeypatch: pytest.MonkeyPatch) -> None:
        _record_verifications(db)
        monkeypatch.setattr(AuditLogRepository, "create_entry", staticmethod(_boom))
        result = SubmissionService.submit_form(db, PAYLOAD)
        assert result["success"] is True

    def test_duplicate_check_failure_does_not_block(self, db, monkeypatch: pytest.MonkeyPatch) -> None:
        _record_verifications(db)
        monkeypatch.setattr(FormSubmissionRepository, "get_active_by_aadhaar_and_pan", staticmethod(_boom))
        result = SubmissionService.submit_form(db, PAYLOAD)
        assert result["data"]["status"] == "SUBMITTED"

    def test_rejected_application_can_be_resubmitted(self, db) -> None:
        _record_verifications(db)
        first = SubmissionService.submit_form(db, PAYLOAD)["data"]["applicationId"]
        submission = FormSubmissionRepository.get_by_application_id(db, first)
        submission.status = SubmissionStatus.REJECTED
        FormSubmissionRepository.update_submission(db, submission)

        second = SubmissionService.submit_form(db, PAYLOAD)["data"]["applicationId"]
        assert second != first


class TestAdvanceStatus:
    def _create(self, db, status: SubmissionStatus) -> str:
        application_id = generate_application_id()
        FormSubmissionRepository.create_submission(db, FormSubmission(
            application_id=application_id,
            aadhaar=AADHAAR,
            mobile=MOBILE,
            pan=PAN,
            pan_holder_name="John Doe",
            date_of_birth=DOB,
            status=status,
            submitted_at=utcnow(),
        ))
        return application_id

    def test_transition_writes_audit_entry(self, db) -> None:
        application_id = self._create(db, SubmissionStatus.SUBMITTED)
        assert advance_status(application_id, SubmissionStatus.SUBMITTED, SubmissionStatus.PROCESSING)

        db.expire_all()
        assert FormSubmissionRepository.get_by_application_id(db, application_id).status == SubmissionStatus.PROCESSING
        actions = [entry.action for entry in AuditLogRepository.get_by_application_id(db, application_id)]
        assert actions == ["STATUS_CHANGED"]

    def test_approval_sets_timestamp(self, db) -> None:
        application_id = self._create(db, SubmissionStatus.PROCESSING)
        assert advance_status(application_id, SubmissionStatus.PROCESSING, SubmissionStatus.APPROVED)
        db.expire_all()
        assert FormSubmissionRepository.get_by_application_id(db, application_id).approved_at is not None

    def test_noop_when_status_moved_on(self, db) -> None:
        application_id = self._create(db, SubmissionStatus.REJECTED)
        assert not advance_status(application_id, SubmissionStatus.PROCESSING, SubmissionStatus.APPROVED)
        db.expire_all()
        assert FormSubmissionRepository.get_by_application_id(db, application_id).status == SubmissionStatus.REJECTED

    def test_unknown_application(self) -> None:
        assert not advance_status("UDYAMMISSING", SubmissionStatus.SUBMITTED, SubmissionStatus.PROCESSING)


class TestAutoCleanup:
    def test_removes_only_old_failed_and_unverified_logs(self, db) -> None:
        long_ago = utcnow() - timedelta(days=120)
        db.add_all([
            PanVerificationLog(pan=PAN, pan_holder_name="John Doe", date_of_birth=DOB,
                               status="FAILED", created_at=long_ago),
            PanVerificationLog(pan=PAN, pan_holder_name="John Doe", date_of_birth=DOB,
                               status="VERIFIED", created_at=long_ago),
            PanVerificationLog(pan=PAN, pan_holder_name="John Doe", date_of_birth=DOB,
                               status="FAILED", created_at=utcnow()),
            OtpLog(aadhaar=AADHAAR, mobile=MOBILE, status="SENT", expiry_time=long_ago, created_at=long_ago),
            OtpLog(aadhaar=AADHAAR, mobile=MOBILE, status="VERIFIED", expiry_time=long_ago,
                   verified_at=long_ago, created_at=long_ago),
        ])
        db.commit()

        result = AutoCleanup(interval_hours=24).cleanup()

        assert result == {"pan_verifications": 1, "otp_logs": 1, "otp_records": 0}
        assert db.query(PanVerificationLog).count() == 2
        assert db.query(OtpLog).count() == 1
