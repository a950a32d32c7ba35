"""Pytest configuration: service directory on sys.path, throwaway SQLite database, no simulated delays."""

import os
import sys
import tempfile
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent / "UDYAM_REGISTRATION"))

_db_dir = tempfile.mkdtemp(prefix="udyam-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{_db_dir}/test.db"
os.environ["VERIFICATION_MODE"] = "dummy"
os.environ["SMS_DELAY_SECONDS"] = "0"
os.environ["PAN_VERIFY_DELAY_SECONDS"] = "0"


@pytest.fixture(autouse=True)
def _fresh_state():
    """Fresh tables, an empty OTP store and an empty task queue for every test."""
    from core.database import Base, engine
    import models.otp_log  # noqa: F401
    import models.pan_verification  # noqa: F401
    import models.form_submission  # noqa: F401
    import models.audit_log  # noqa: F401
    from services.otp_service import otp_store
    from services.status_scheduler import status_scheduler

    Base.metadata.create_all(bind=engine)
    otp_store.clear()
    yield
    status_scheduler.stop()
    otp_store.clear()
    Base.metadata.drop_all(bind=engine)
