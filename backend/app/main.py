from contextlib import asynccontextmanager

from apscheduler.schedulers.background import BackgroundScheduler
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.health import router as health_router
from app.api.routes_admin import router as admin_router
from app.api.routes_cart import router as cart_router
from app.api.routes_catalogue import router as catalogue_router
from app.api.routes_kiosk import router as kiosk_router
from app.api.routes_order import router as order_router
from app.config import settings
from app.db import SessionLocal, init_db
from app.services.kiosk_session_service import KioskSessionService
from app.utils.logging import get_logger

log = get_logger(__name__)


def expire_kiosk_sessions_job():
    db = SessionLocal()
    try:
        ids = KioskSessionService(db).sweep_expired()
        if ids:
            log.info("expired %d idle kiosk sessions: %s", len(ids), ids)
    except Exception:
        log.exception("kiosk session sweep failed")
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # startup
    init_db()

    scheduler = None
    if settings.KIOSK_SWEEP_INTERVAL_SECONDS > 0:
        scheduler = BackgroundScheduler()
        scheduler.add_job(
            expire_kiosk_sessions_job,
            "interval",
            seconds=settings.KIOSK_SWEEP_INTERVAL_SECONDS,
            id="expire_kiosk_sessions",
        )
        scheduler.start()
        log.info("kiosk sweep every %ss", settings.KIOSK_SWEEP_INTERVAL_SECONDS)

    try:
        yield
    finally:
        if scheduler:
            scheduler.shutdown(wait=False)


app = FastAPI(title="Kiosk POS - Backend", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.FRONTEND_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health_router, prefix=settings.API_PREFIX, tags=["health"])

app.include_router(catalogue_router, prefix=settings.API_PREFIX, tags=["catalogue"])

app.include_router(cart_router, prefix=settings.API_PREFIX, tags=["cart"])

app.include_router(kiosk_router, prefix=settings.API_PREFIX, tags=["kiosk"])

app.include_router(order_router, prefix=settings.API_PREFIX, tags=["orders"])

app.include_router(admin_router, prefix=settings.API_PREFIX, tags=["admin"])


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:app", host=settings.APP_HOST, port=settings.APP_PORT)
