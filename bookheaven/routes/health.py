import logging
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, text
from datetime import datetime, timezone

from bookheaven.database import get_session
from bookheaven.utils.responses import envelope

logger = logging.getLogger(__name__)

router = APIRouter()

@router.get("")
def health_check(session: Session = Depends(get_session)):
    status = {
        "status": "ok",
        "database": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat()
    }

    try:
        # simple DB ping
        session.exec(text("SELECT 1"))
    except SQLAlchemyError:
        logger.exception("Health check could not reach the database")
        status["status"] = "degraded"
        status["database"] = "failed"
        return JSONResponse(
            status_code=500,
            content={"success": False, "message": "Database unavailable", "data": status}
        )

    return envelope(status, "Service is healthy")
