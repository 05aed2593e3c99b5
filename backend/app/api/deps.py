import enum
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header, HTTPException, status


class Role(str, enum.Enum):
    ADMIN = "ADMIN"
    STAFF = "STAFF"
    CUSTOMER = "CUSTOMER"


@dataclass(frozen=True)
class CurrentUser:
    id: int
    role: Role


def get_current_user(
    x_user_id: Optional[str] = Header(None, alias="X-User-Id"),
    x_user_role: Optional[str] = Header(None, alias="X-User-Role"),
) -> CurrentUser:
    """
    Identity is established upstream by the auth service and forwarded in
    headers; it is trusted as-is, only its shape is checked.
    """
    try:
        user_id = int(x_user_id)
        role = Role((x_user_role or Role.CUSTOMER.value).upper())
    except (TypeError, ValueError):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthenticated.")
    if user_id <= 0:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthenticated.")
    return CurrentUser(id=user_id, role=role)


def require_role(*roles: Role):
    """Route dependency: the caller's role must be one of `roles`."""

    def _check(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if user.role not in roles:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden.")
        return user

    return _check


def get_session_key(x_session_key: Optional[str] = Header(None, alias="X-Session-Key")) -> Optional[str]:
    # absence is reported by the session guard (422), not here
    return x_session_key
