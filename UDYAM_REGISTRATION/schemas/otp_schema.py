from pydantic import BaseModel
from typing import Optional


class SendOTPRequest(BaseModel):
    aadhaar: Optional[str] = None
    entrepreneurName: Optional[str] = None
    mobile: Optional[str] = None


class VerifyOTPRequest(SendOTPRequest):
    otp: Optional[str] = None


class SendOTPData(BaseModel):
    mobile: str
    expiryTime: str


class SendOTPResponse(BaseModel):
    success: bool = True
    message: str
    data: SendOTPData


class VerifyOTPData(BaseModel):
    aadhaar: str
    mobile: str
    verifiedAt: str


class VerifyOTPResponse(BaseModel):
    success: bool = True
    message: str
    data: VerifyOTPData


class OTPStatusData(BaseModel):
    exists: bool
    expired: bool
    verified: bool
    attempts: int
    expiryTime: str


class OTPStatusResponse(BaseModel):
    success: bool = True
    data: OTPStatusData
