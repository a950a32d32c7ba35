from pydantic import BaseModel
from typing import List, Optional


class PANVerificationRequest(BaseModel):
    pan: Optional[str] = None
    panHolderName: Optional[str] = None
    dateOfBirth: Optional[str] = None


class PANVerificationData(BaseModel):
    pan: str
    name: str
    verifiedAt: str
    dateOfBirth: Optional[str] = None
    status: Optional[str] = None
    age: Optional[int] = None
    cached: Optional[bool] = None


class PANVerificationResponse(BaseModel):
    success: bool = True
    message: str
    data: PANVerificationData


class PANStatusData(BaseModel):
    pan: str
    status: str
    verifiedAt: str
    name: str
    errorMessage: Optional[str] = None


class PANStatusResponse(BaseModel):
    success: bool = True
    data: PANStatusData


class MockPANRecord(BaseModel):
    pan: str
    name: str
    dateOfBirth: str


class MockPANDataResponse(BaseModel):
    success: bool = True
    message: str
    data: List[MockPANRecord]
