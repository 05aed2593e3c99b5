import uuid
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional

from sqlalchemy.orm import Session

from app.config import settings
from app.models.cart import Cart, CartStatus
from app.repositories.cart_repo import CartRepository
from app.services.exceptions import SessionExpired, SessionNotFound, ValidationError
from app.utils.logging import get_logger

log = get_logger(__name__)


def _aware(dt: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored in UTC
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


class KioskSessionService:
    """
    Session guard for kiosk carts.

    Every kiosk cart/order operation goes through `touch`, which rejects
    unknown, finished or idle sessions and otherwise refreshes the activity
    timestamp. Expiry is evaluated lazily here; `sweep_expired` only lets the
    stored status catch up for sessions nobody touches again.
    """

    def __init__(
        self,
        db: Session,
        ttl_seconds: Optional[int] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.db = db
        self.repo = CartRepository(db)
        self.ttl = timedelta(
            seconds=settings.KIOSK_SESSION_TTL_SECONDS if ttl_seconds is None else ttl_seconds
        )
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def _now(self) -> datetime:
        return self._clock()

    def init_session(self) -> Dict:
        cart = self.repo.create_kiosk_cart(str(uuid.uuid4()), self._now())
        self.db.commit()
        log.info("kiosk session started cart=%s", cart.id)
        return {"session_key": cart.session_key, "cart_id": cart.id}

    def touch(self, session_key: Optional[str]) -> Cart:
        if not session_key:
            raise ValidationError("X-Session-Key header is required")

        cart = self.repo.get_by_session_key(session_key)
        if not cart:
            raise SessionNotFound("Kiosk session not found")

        if cart.status != CartStatus.ACTIVE:
            raise SessionExpired()

        now = self._now()
        if cart.last_activity_at and now - _aware(cart.last_activity_at) > self.ttl:
            cart.status = CartStatus.EXPIRED
            self.db.commit()
            log.info("kiosk session expired cart=%s", cart.id)
            raise SessionExpired()

        cart.last_activity_at = now
        self.db.commit()
        return cart

    def ping(self, session_key: Optional[str]) -> Dict:
        cart = self.touch(session_key)
        return {"message": "OK", "last_activity_at": cart.last_activity_at}

    def sweep_expired(self) -> List[int]:
        """
        Mark ACTIVE kiosk carts idle past the TTL as EXPIRED.
        Return list of expired cart ids.
        """
        stale = self.repo.list_stale_kiosk_carts(self._now() - self.ttl)
        ids = []
        for cart in stale:
            cart.status = CartStatus.EXPIRED
            ids.append(cart.id)
        self.db.commit()
        return ids
