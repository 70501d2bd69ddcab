# routers/health.py
import logging
from datetime import UTC, datetime

from fastapi import APIRouter

from schemas.problems import HealthOut

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthOut)
def health():
    logger.info("Health check requested")
    return {"status": "OK", "timestamp": datetime.now(UTC).isoformat()}
