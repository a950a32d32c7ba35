from datetime import datetime
from pydantic import BaseModel, IPvAnyAddress, field_validator
from typing import Any, Dict, List, Optional
from utils.timestamps import as_utc


class SubmissionFormData(BaseModel):
    aadhaar: Optional[str] = None
    mobile: Optional[str] = None
    otp: Optional[str] = None
    pan: Optional[str] = None
    panHolderName: Optional[str] = None
    dateOfBirth: Optional[str] = None


class SubmitFormRequest(BaseModel):
    formData: Optional[SubmissionFormData] = None
    timestamp: Optional[datetime] = None
    userAgent: Optional[str] = None
    ipAddress: Optional[IPvAnyAddress] = None

    @field_validator("timestamp", "ipAddress", mode="before")
    @classmethod
    def blank_is_absent(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("timestamp")
    @classmethod
    def normalize_timestamp(cls, v: Optional[datetime]) -> Optional[datetime]:
        return as_utc(v)


class SubmitFormData(BaseModel):
    applicationId: str
    status: str
    submittedAt: str
    estimatedProcessingTime: str


class SubmitFormResponse(BaseModel):
    success: bool = True
    message: str
    data: SubmitFormData


class StatusHistoryEntry(BaseModel):
    action: str
    timestamp: str
    details: Optional[Dict[str, Any]] = None


class ApplicationStatusData(BaseModel):
    applicationId: str
    status: str
    applicantName: str
    pan: str
    submittedAt: str
    approvedAt: Optional[str] = None
    statusHistory: List[StatusHistoryEntry] = []


class ApplicationStatusResponse(BaseModel):
    success: bool = True
    data: ApplicationStatusData


class SubmissionSummary(BaseModel):
    applicationId: str
    panHolderName: str
    pan: str
    mobile: str
    status: str
    createdAt: str
    submittedAt: str
    approvedAt: Optional[str] = None


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class SubmissionListData(BaseModel):
    submissions: List[SubmissionSummary]
    pagination: Pagination


class SubmissionListResponse(BaseModel):
    success: bool = True
    data: SubmissionListData


class StatusCounts(BaseModel):
    submitted: int
    processing: int
    approved: int
    rejected: int


class StatisticsData(BaseModel):
    total: int
    byStatus: StatusCounts
    today: int
    approvalRate: str


class StatisticsResponse(BaseModel):
    success: bool = True
    data: StatisticsData
