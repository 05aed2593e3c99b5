"""
POS SERVICE ERRORS

Domain errors raised by the cart, session, inventory and checkout services.
Each carries the HTTP status the API layer answers with; services never
import FastAPI.
"""


class PosError(Exception):
    """Base exception for all POS service failures."""

    status_code = 400

    def __init__(self, message: str = ""):
        message = message or (self.__doc__ or self.__class__.__name__).strip()
        super().__init__(message)
        self.message = message


class ValidationError(PosError):
    """Malformed or unacceptable input."""

    status_code = 422


class NotFound(PosError):
    """Cart item or order not found."""

    status_code = 404


class EmptyCart(PosError):
    """Cart is empty"""

    status_code = 422


class VariantInactive(PosError):
    """Variant is not active"""

    status_code = 422


class InsufficientStock(PosError):
    """Not enough stock"""

    status_code = 422


class SessionNotFound(PosError):
    """Kiosk session not found"""

    status_code = 404


class SessionExpired(PosError):
    """SESSION_EXPIRED"""

    # non-standard status so kiosk clients can tell "restart session" apart
    status_code = 440

    def __init__(self, message: str = "SESSION_EXPIRED"):
        super().__init__(message)


class InventoryLockTimeout(PosError):
    """Inventory is busy, try again"""

    status_code = 503
    retry_after_seconds = 1
