from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session
from typing import Optional
from core.database import get_db
from services.submission_service import SubmissionService
import logging
from schemas.form_schema import (
    SubmitFormRequest, SubmitFormResponse, ApplicationStatusResponse,
    SubmissionListResponse, StatisticsResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Form Submission"])

@router.post("/submit-form", response_model=SubmitFormResponse, status_code=201)
def submit_form(request: SubmitFormRequest, http_request: Request, db: Session = Depends(get_db)):
    client_ip = http_request.client.host if http_request.client else None
    try:
        return SubmissionService.submit_form(db, request.model_dump(), client_ip=client_ip)
    except HTTPException:
        raise
    except Exception:
        db.rollback()
        logger.error("Submit form error", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to submit form. Please try again.")

@router.get("/application-status/{application_id}", response_model=ApplicationStatusResponse, response_model_exclude_none=True)
def application_status(application_id: str, db: Session = Depends(get_db)):
    try:
        return SubmissionService.get_application_status(db, application_id)
    except HTTPException:
        raise
    except Exception:
        logger.error("Application status error", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to get application status")

@router.get("/submissions", response_model=SubmissionListResponse)
def list_submissions(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status: Optional[str] = Query(None, description="SUBMITTED, PROCESSING, APPROVED, REJECTED"),
    db: Session = Depends(get_db),
):
    try:
        return SubmissionService.list_submissions(db, page=page, limit=limit, status=status)
    except HTTPException:
        raise
    except Exception:
        logger.error("Get submissions error", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to get submissions")

@router.get("/statistics", response_model=StatisticsResponse)
def statistics(db: Session = Depends(get_db)):
    try:
        return SubmissionService.get_statistics(db)
    except HTTPException:
        raise
    except Exception:
        logger.error("Statistics error", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to get statistics")
