from datetime import datetime, timezone

from fastapi import APIRouter

from app.models.schemas import HealthResponse

SERVICE_NAME = "autoraffle API"
SERVICE_VERSION = "0.1.0"

router = APIRouter(tags=["meta"])


@router.get("/")
def root():
    return {"ok": True, "service": SERVICE_NAME}


@router.get("/health", response_model=HealthResponse)
def health():
    return {"status": "ok", "time": datetime.now(timezone.utc)}


@router.get("/version")
def version():
    return {"version": SERVICE_VERSION}
