import logging
import time
from datetime import date
from core.config import VERIFICATION_MODE, PAN_VERIFY_DELAY_SECONDS
from utils.name_matcher import name_match_ratio, names_match

logger = logging.getLogger(__name__)

MOCK_PAN_DIRECTORY = (
    {"pan": "ABCDE1234F", "name": "JOHN DOE",      "date_of_birth": "1990-01-15", "status": "ACTIVE"},
    {"pan": "FGHIJ5678K", "name": "JANE SMITH",    "date_of_birth": "1985-05-20", "status": "ACTIVE"},
    {"pan": "KLMNO9012P", "name": "RAJESH KUMAR",  "date_of_birth": "1988-12-10", "status": "ACTIVE"},
    {"pan": "QRSTU3456V", "name": "PRIYA SHARMA",  "date_of_birth": "1992-08-25", "status": "ACTIVE"},
    {"pan": "WXYZ7890A",  "name": "AMIT PATEL",    "date_of_birth": "1987-03-18", "status": "ACTIVE"},
    {"pan": "LMNPQ4321R", "name": "SURESH REDDY",  "date_of_birth": "1979-11-02", "status": "INACTIVE"},
)


def find_pan_record(pan: str):
    pan = pan.upper()
    return next((record for record in MOCK_PAN_DIRECTORY if record["pan"] == pan), None)


def _failure(code: str, message: str, record=None, match_pct=None) -> dict:
    return {
        "success": False,
        "code": code,
        "message": message,
        "record": record,
        "match_percentage": match_pct,
    }


class DummyPANProvider:

    @staticmethod
    def verify(pan: str, name: str, dob: date) -> dict:
        logger.info(f"Verifying PAN {pan} for {name}")
        if PAN_VERIFY_DELAY_SECONDS > 0:
            time.sleep(PAN_VERIFY_DELAY_SECONDS)

        record = find_pan_record(pan)
        if not record:
            return _failure("NOT_FOUND", "PAN not found in records")

        if record["status"] != "ACTIVE":
            return _failure("INACTIVE", "PAN is not active", record)

        match_pct = round(min(name_match_ratio(name, record["name"]), 1.0) * 100, 2)
        if not names_match(name, record["name"]):
            return _failure("NAME_MISMATCH", "Name does not match PAN records", record, match_pct)

        if dob.isoformat() != record["date_of_birth"]:
            return _failure("DOB_MISMATCH", "Date of birth does not match PAN records", record, match_pct)

        return {
            "success": True,
            "code": "VERIFIED",
            "message": "PAN verified successfully",
            "record": record,
            "match_percentage": match_pct,
        }


def get_pan_provider():
    if VERIFICATION_MODE != "dummy":
        logger.warning(f"No live PAN registry for VERIFICATION_MODE={VERIFICATION_MODE}; using dummy provider")
    return DummyPANProvider
