import json
import logging
from datetime import timedelta
from sqlalchemy.orm import Session

from core.config import PAN_CACHE_HOURS, MIN_AGE, MAX_AGE
from core.exceptions import UdyamAPIError, ValidationFailed, ResourceNotFound
from providers.pan_provider import get_pan_provider, MOCK_PAN_DIRECTORY
from repositories.pan_verification_repository import PanVerificationRepository
from utils.validators import validate_step, parse_date, calculate_age, format_pan, PAN_PATTERN
from utils.timestamps import utcnow, iso

logger = logging.getLogger(__name__)


class PANVerificationService:

    @staticmethod
    def verify_pan(db: Session, values: dict) -> dict:
        errors = validate_step(values, 2)
        if errors:
            raise ValidationFailed(errors)

        pan  = format_pan(values["pan"])
        name = values["panHolderName"].strip()
        dob  = parse_date(values["dateOfBirth"])

        age = calculate_age(dob)
        if age < MIN_AGE:
            raise ValidationFailed(
                {"dateOfBirth": "You must be at least 18 years old"},
                message="Applicant must be at least 18 years old",
            )
        if age > MAX_AGE:
            raise ValidationFailed(
                {"dateOfBirth": "Please enter a valid date of birth"},
                message="Please enter a valid date of birth",
            )

        try:
            recent = PanVerificationRepository.get_verified_since(
                db, pan, utcnow() - timedelta(hours=PAN_CACHE_HOURS)
            )
        except Exception:
            db.rollback()
            logger.error("PAN cache lookup failed, verifying against provider", exc_info=True)
            recent = None

        if recent:
            logger.info(f"PAN {pan} served from verification cache")
            return {
                "success": True,
                "message": "PAN already verified",
                "data": {
                    "pan": recent.pan,
                    "name": recent.pan_holder_name,
                    "verifiedAt": iso(recent.created_at),
                    "cached": True,
                },
            }

        result = get_pan_provider().verify(pan=pan, name=name, dob=dob)
        status = "VERIFIED" if result["success"] else "FAILED"

        try:
            PanVerificationRepository.create_verification_log(
                db=db,
                pan=pan,
                pan_holder_name=name,
                date_of_birth=dob,
                status=status,
                error_message=None if result["success"] else result["message"],
                match_percentage=result.get("match_percentage"),
                verification_data=json.dumps(result["record"]) if result["success"] else None,
            )
        except Exception:
            db.rollback()
            logger.error(f"Failed to write PAN {status} log", exc_info=True)

        if not result["success"]:
            logger.info(f"PAN {pan} verification failed: {result['code']}")
            raise UdyamAPIError(400, result["message"], errors={"pan": result["message"]})

        record = result["record"]
        logger.info(f"PAN {pan} verified (name match {result['match_percentage']}%)")
        return {
            "success": True,
            "message": "PAN verified successfully",
            "data": {
                "pan": record["pan"],
                "name": record["name"],
                "dateOfBirth": record["date_of_birth"],
                "status": record["status"],
                "verifiedAt": iso(utcnow()),
                "age": age,
            },
        }

    @staticmethod
    def get_status(db: Session, pan: str) -> dict:
        if not PAN_PATTERN.fullmatch(pan):
            raise UdyamAPIError(400, "Invalid PAN format")

        verification = PanVerificationRepository.get_latest_by_pan(db, pan.upper())
        if not verification:
            raise ResourceNotFound("No verification found for this PAN")

        data = {
            "pan": verification.pan,
            "status": verification.status,
            "verifiedAt": iso(verification.created_at),
            "name": verification.pan_holder_name,
        }
        if verification.status == "FAILED":
            data["errorMessage"] = verification.error_message
        return {"success": True, "data": data}

    @staticmethod
    def mock_directory() -> dict:
        return {
            "success": True,
            "message": "Mock PAN data for testing",
            "data": [
                {"pan": r["pan"], "name": r["name"], "dateOfBirth": r["date_of_birth"]}
                for r in MOCK_PAN_DIRECTORY
            ],
        }
