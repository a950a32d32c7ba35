import logging
import time
from core.config import VERIFICATION_MODE, SMS_DELAY_SECONDS

logger = logging.getLogger(__name__)


class DummySMSProvider:
    """Stands in for the SMS gateway: logs the message and always reports delivery."""

    @staticmethod
    def send_otp(mobile: str, otp: str) -> bool:
        logger.info(f"Sending OTP {otp} to mobile {mobile}")
        if SMS_DELAY_SECONDS > 0:
            time.sleep(SMS_DELAY_SECONDS)
        return True


def get_sms_provider():
    if VERIFICATION_MODE != "dummy":
        logger.warning(f"No live SMS gateway for VERIFICATION_MODE={VERIFICATION_MODE}; using dummy provider")
    return DummySMSProvider
