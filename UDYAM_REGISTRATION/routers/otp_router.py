from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from core.database import get_db
from services.otp_service import OTPService
import logging
from schemas.otp_schema import SendOTPRequest, SendOTPResponse, VerifyOTPRequest, VerifyOTPResponse, OTPStatusResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Aadhaar OTP"])

@router.post("/send-otp", response_model=SendOTPResponse)
def send_otp(request: SendOTPRequest, db: Session = Depends(get_db)):
    try:
        return OTPService.send_otp(db, request.model_dump())
    except HTTPException:
        raise
    except Exception:
        logger.error("Send OTP error", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to send OTP. Please try again.")

@router.post("/verify-otp", response_model=VerifyOTPResponse)
def verify_otp(request: VerifyOTPRequest, db: Session = Depends(get_db)):
    try:
        return OTPService.verify_otp(db, request.model_dump())
    except HTTPException:
        raise
    except Exception:
        logger.error("Verify OTP error", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to verify OTP. Please try again.")

@router.get("/otp-status/{aadhaar}/{mobile}", response_model=OTPStatusResponse)
def otp_status(aadhaar: str, mobile: str):
    try:
        return OTPService.get_status(aadhaar, mobile)
    except HTTPException:
        raise
    except Exception:
        logger.error("OTP status error", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to get OTP status")
