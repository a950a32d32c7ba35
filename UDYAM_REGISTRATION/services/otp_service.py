import logging
from sqlalchemy.orm import Session

from core.exceptions import OTPError, OTPRateLimited, ValidationFailed, RateLimited, ResourceNotFound
from repositories.otp_log_repository import OtpLogRepository
from providers.sms_provider import get_sms_provider
from services.otp_store import OTPStore
from utils.validators import validate_step, validate_otp, clean_aadhaar, clean_mobile
from utils.timestamps import utcnow, iso

logger = logging.getLogger(__name__)

# Process-wide; the persisted otp_logs table is written alongside it on a
# best-effort basis, so the two can disagree after a failed log write.
otp_store = OTPStore()


def _validate_identity(values: dict, require_otp: bool) -> dict:
    errors = validate_step(values, 1)
    if require_otp and "otp" not in errors:
        otp_error = validate_otp(values.get("otp"))
        if otp_error:
            errors["otp"] = otp_error
    if not require_otp:
        errors.pop("otp", None)
    if errors:
        raise ValidationFailed(errors)
    return {
        "aadhaar": clean_aadhaar(values["aadhaar"]),
        "entrepreneurName": values["entrepreneurName"].strip(),
        "mobile": clean_mobile(values["mobile"]),
        "otp": values.get("otp"),
    }


class OTPService:

    @staticmethod
    def send_otp(db: Session, values: dict) -> dict:
        fields = _validate_identity(values, require_otp=False)
        aadhaar, mobile = fields["aadhaar"], fields["mobile"]

        try:
            record = otp_store.issue(aadhaar, fields["entrepreneurName"], mobile)
        except OTPRateLimited as e:
            raise RateLimited(e.message)

        get_sms_provider().send_otp(mobile, record.code)

        try:
            OtpLogRepository.create_log(
                db=db,
                aadhaar=aadhaar,
                mobile=mobile,
                status="SENT",
                expiry_time=record.expires_at,
            )
        except Exception:
            db.rollback()
            logger.error("Failed to write OTP SENT log", exc_info=True)

        return {
            "success": True,
            "message": "OTP sent successfully",
            "data": {
                "mobile": f"+91 {mobile}",
                "expiryTime": iso(record.expires_at),
            },
        }

    @staticmethod
    def verify_otp(db: Session, values: dict) -> dict:
        fields = _validate_identity(values, require_otp=True)
        aadhaar, mobile = fields["aadhaar"], fields["mobile"]

        try:
            record = otp_store.verify(aadhaar, mobile, fields["otp"])
        except OTPError as e:
            logger.info(f"OTP verification refused ({e.code}) for aadhaar ending {aadhaar[-4:]}")
            raise ValidationFailed({"otp": e.message}, message=e.message)

        verified_at = utcnow()
        try:
            OtpLogRepository.create_log(
                db=db,
                aadhaar=aadhaar,
                mobile=mobile,
                status="VERIFIED",
                expiry_time=record.expires_at,
                verified_at=verified_at,
            )
        except Exception:
            db.rollback()
            logger.error("Failed to write OTP VERIFIED log", exc_info=True)

        logger.info(f"OTP verified for aadhaar ending {aadhaar[-4:]}")
        return {
            "success": True,
            "message": "OTP verified successfully",
            "data": {
                "aadhaar": aadhaar,
                "mobile": mobile,
                "verifiedAt": iso(verified_at),
            },
        }

    @staticmethod
    def get_status(aadhaar: str, mobile: str) -> dict:
        record = otp_store.get(aadhaar, mobile)
        if not record:
            raise ResourceNotFound("No OTP found for this combination")
        return {
            "success": True,
            "data": {
                "exists": True,
                "expired": otp_store.is_expired(record),
                "verified": record.verified,
                "attempts": record.attempts,
                "expiryTime": iso(record.expires_at),
            },
        }
