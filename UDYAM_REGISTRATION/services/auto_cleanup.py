import logging
import threading
from datetime import timedelta
from core.database import SessionLocal
from core.config import RETENTION_DAYS, OTP_RECORD_RETENTION_HOURS
from repositories.pan_verification_repository import PanVerificationRepository
from repositories.otp_log_repository import OtpLogRepository
from services.otp_service import otp_store
from utils.timestamps import utcnow

logger = logging.getLogger(__name__)


class AutoCleanup:

    def __init__(self, interval_hours: int = 24, session_factory=SessionLocal):
        self.interval_hours = interval_hours
        self.session_factory = session_factory
        self._stop_event = threading.Event()
        self._thread = None
        logger.info(f"AutoCleanup initialized with interval: {interval_hours}h")

    def start(self):
        if self.is_running():
            logger.warning("Auto cleanup already running")
            return

        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name="auto-cleanup", daemon=True)
        self._thread.start()
        logger.info(f"Auto cleanup started (runs every {self.interval_hours}h)")

    def stop(self):
        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=5)
            self._thread = None
        logger.info("Auto cleanup stopped")

    def is_running(self):
        return self._thread is not None and self._thread.is_alive()

    def _run(self):
        while not self._stop_event.is_set():
            try:
                self.cleanup()
            except Exception as e:
                logger.error(f"Cleanup error: {str(e)}", exc_info=True)

            self._stop_event.wait(self.interval_hours * 3600)

    def cleanup(self) -> dict:
        db = self.session_factory()
        try:
            logger.info("Starting cleanup...")

            failed_pans = self._cleanup_failed_pan_verifications(db)
            stale_otps = self._cleanup_unverified_otp_logs(db)
            otp_records = otp_store.prune(OTP_RECORD_RETENTION_HOURS)

            logger.info(
                f"Cleanup completed: "
                f"{failed_pans} PAN verifications, "
                f"{stale_otps} OTP logs, "
                f"{otp_records} in-memory OTP records removed"
            )
            return {"pan_verifications": failed_pans, "otp_logs": stale_otps, "otp_records": otp_records}
        finally:
            db.close()

    def _cleanup_failed_pan_verifications(self, db):
        try:
            cutoff = utcnow() - timedelta(days=RETENTION_DAYS)
            return PanVerificationRepository.delete_failed_verifications(db, cutoff)
        except Exception as e:
            db.rollback()
            logger.error(f"PAN verification cleanup error: {str(e)}")
            return 0

    def _cleanup_unverified_otp_logs(self, db):
        try:
            cutoff = utcnow() - timedelta(days=RETENTION_DAYS)
            return OtpLogRepository.delete_unverified_before(db, cutoff)
        except Exception as e:
            db.rollback()
            logger.error(f"OTP log cleanup error: {str(e)}")
            return 0
