import os
from dotenv import load_dotenv

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./udyam.db")

VERIFICATION_MODE = os.getenv("VERIFICATION_MODE", "dummy").lower()

# OTP
OTP_LENGTH = 6
OTP_EXPIRY_MINUTES = int(os.getenv("OTP_EXPIRY_MINUTES", "10"))
OTP_MAX_ATTEMPTS = int(os.getenv("OTP_MAX_ATTEMPTS", "3"))
OTP_RATE_LIMIT_MAX = int(os.getenv("OTP_RATE_LIMIT_MAX", "3"))
OTP_RATE_LIMIT_WINDOW_MINUTES = int(os.getenv("OTP_RATE_LIMIT_WINDOW_MINUTES", "60"))
SMS_DELAY_SECONDS = float(os.getenv("SMS_DELAY_SECONDS", "1.0"))

# PAN
PAN_VERIFY_DELAY_SECONDS = float(os.getenv("PAN_VERIFY_DELAY_SECONDS", "2.0"))
PAN_CACHE_HOURS = int(os.getenv("PAN_CACHE_HOURS", "24"))
NAME_MATCH_THRESHOLD = 0.7
MIN_AGE = 18
MAX_AGE = 100

# Form submission
OTP_RECENCY_MINUTES = int(os.getenv("OTP_RECENCY_MINUTES", "30"))
PAN_RECENCY_HOURS = int(os.getenv("PAN_RECENCY_HOURS", "24"))
PROCESSING_DELAY_SECONDS = float(os.getenv("PROCESSING_DELAY_SECONDS", "5"))
APPROVAL_DELAY_SECONDS = float(os.getenv("APPROVAL_DELAY_SECONDS", "30"))
ESTIMATED_PROCESSING_TIME = os.getenv("ESTIMATED_PROCESSING_TIME", "2-3 business days")

# Housekeeping
CLEANUP_INTERVAL_HOURS = int(os.getenv("CLEANUP_INTERVAL_HOURS", "24"))
RETENTION_DAYS = int(os.getenv("RETENTION_DAYS", "90"))
OTP_RECORD_RETENTION_HOURS = int(os.getenv("OTP_RECORD_RETENTION_HOURS", "48"))
