from fastapi import APIRouter
from sqlalchemy import text

from app.db import engine
from app.utils.logging import get_logger

log = get_logger(__name__)

router = APIRouter()


@router.get("/health", tags=["health"])
def health():
    db_ok = False
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
            db_ok = True
    except Exception:
        log.exception("health check: database unreachable")
        db_ok = False

    return {"status": "ok" if db_ok else "degraded", "db": db_ok}
