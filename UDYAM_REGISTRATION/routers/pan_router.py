from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from core.database import get_db
from services.pan_verification_service import PANVerificationService
import logging
from schemas.pan_schema import PANVerificationRequest, PANVerificationResponse, PANStatusResponse, MockPANDataResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["PAN Verification"])

@router.post("/verify-pan", response_model=PANVerificationResponse, response_model_exclude_none=True)
def verify_pan(request: PANVerificationRequest, db: Session = Depends(get_db)):
    try:
        return PANVerificationService.verify_pan(db, request.model_dump())
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"PAN verification error: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to verify PAN. Please try again.")

@router.get("/pan-status/{pan}", response_model=PANStatusResponse, response_model_exclude_none=True)
def pan_status(pan: str, db: Session = Depends(get_db)):
    try:
        return PANVerificationService.get_status(db, pan)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"PAN status error: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to get PAN status")

@router.get("/mock-pan-data", response_model=MockPANDataResponse)
def mock_pan_data():
    return PANVerificationService.mock_directory()
