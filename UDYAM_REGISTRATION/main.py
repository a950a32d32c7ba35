import logging
import time
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager
from core.config import CLEANUP_INTERVAL_HOURS
from core.database import Base, engine
from routers.otp_router import router as otp_router
from routers.pan_router import router as pan_router
from routers.form_router import router as form_router
from services.auto_cleanup import AutoCleanup
from services.status_scheduler import status_scheduler
from utils.timestamps import utcnow, iso
import models.otp_log
import models.pan_verification
import models.form_submission
import models.audit_log

logging.basicConfig( level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)

auto_cleanup = AutoCleanup(interval_hours=CLEANUP_INTERVAL_HOURS)

START_TIME = time.monotonic()

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting Udyam registration backend...")
    Base.metadata.create_all(bind=engine, checkfirst=True)
    logger.info("Database tables created")

    status_scheduler.start()
    auto_cleanup.start()
    logger.info("Background services started")

    yield

    auto_cleanup.stop()
    status_scheduler.stop()
    logger.info("Udyam registration backend stopped")

app = FastAPI(title="Udyam Registration API", lifespan=lifespan)

app.include_router(otp_router)
app.include_router(pan_router)
app.include_router(form_router)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    message = exc.detail
    if exc.status_code == 404 and message == "Not Found":
        message = "Endpoint not found"

    body = {"success": False, "message": message}
    errors = getattr(exc, "errors", None)
    if errors:
        body["errors"] = errors
    data = getattr(exc, "data", None)
    if data:
        body["data"] = data
    return JSONResponse(status_code=exc.status_code, content=body, headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    if any(error.get("type") == "json_invalid" for error in exc.errors()):
        return JSONResponse(
            status_code=400,
            content={"success": False, "message": "Invalid JSON in request body"},
        )

    errors = {}
    for error in exc.errors():
        field = ".".join(str(part) for part in error["loc"][1:]) or str(error["loc"][0])
        message = "This field is required" if error.get("type") == "missing" else error.get("msg", "Invalid value")
        errors.setdefault(field, message)

    return JSONResponse(
        status_code=400,
        content={"success": False, "message": next(iter(errors.values())), "errors": errors},
    )


@app.get("/health")
def health():
    return {
        "status": "OK",
        "timestamp": iso(utcnow()),
        "uptime": round(time.monotonic() - START_TIME, 3),
    }

@app.get("/")
def root():
    return {
        "status": "Udyam Registration API is running"
    }
