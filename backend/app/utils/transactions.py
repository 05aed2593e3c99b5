import os
from contextlib import ExitStack
from typing import Optional

from filelock import FileLock
from sqlalchemy.orm import Session

from app.config import settings


class UnitOfWork:
    """
    Explicit transaction boundary for a single business operation.

    Everything done through `session` between entering and leaving the block
    is committed on a clean exit and rolled back on any exception. Locks
    registered with `hold_lock` are released only after the commit/rollback,
    so they cover the whole transaction.

    Usage:
        with UnitOfWork(db) as uow:
            uow.hold_lock(f"variant_{variant_id}")
            ... DB work via uow.session ...
    """

    def __init__(self, session: Session, lock_dir: Optional[str] = None):
        self.session = session
        self.lock_dir = lock_dir or settings.INVENTORY_LOCK_DIR
        self._locks = ExitStack()
        self._held = set()

    def __enter__(self) -> "UnitOfWork":
        os.makedirs(self.lock_dir, exist_ok=True)
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        try:
            if exc_type is None:
                self.session.commit()
            else:
                self.session.rollback()
        except Exception:
            self.session.rollback()
            raise
        finally:
            self._locks.close()
            self._held.clear()

    def hold_lock(self, name: str, timeout: float) -> None:
        """
        Acquire the named cross-process lock and keep it until the unit of
        work ends. Raises filelock.Timeout if it cannot be acquired in time.
        Re-acquiring a name already held by this unit of work is a no-op.
        """
        if name in self._held:
            return
        lock = FileLock(os.path.join(self.lock_dir, f"{name}.lock"))
        lock.acquire(timeout=timeout)
        self._locks.callback(lock.release)
        self._held.add(name)

    def flush(self) -> None:
        self.session.flush()
