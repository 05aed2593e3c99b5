from fastapi import HTTPException

from app.services.exceptions import InventoryLockTimeout, PosError


def to_http(e: PosError) -> HTTPException:
    headers = None
    if isinstance(e, InventoryLockTimeout):
        headers = {"Retry-After": str(e.retry_after_seconds)}
    return HTTPException(status_code=e.status_code, detail=e.message, headers=headers)
