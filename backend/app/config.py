import os
import tempfile
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    DATABASE_URL: str = "sqlite:///./dev.db"
    APP_HOST: str = "127.0.0.1"
    APP_PORT: int = 8000
    API_PREFIX: str = "/api"
    FRONTEND_ORIGINS: List[str] = ["http://localhost:3000"]
    LOG_LEVEL: str = "INFO"
    RESET_DB: bool = False

    # kiosk carts idle longer than this are expired on next access
    KIOSK_SESSION_TTL_SECONDS: int = 180
    # 0 disables the background sweep
    KIOSK_SWEEP_INTERVAL_SECONDS: int = 0

    INVENTORY_LOCK_TIMEOUT_SECONDS: float = 10.0
    INVENTORY_LOCK_DIR: str = os.path.join(tempfile.gettempdir(), "kioskpos_locks")
    CHECKOUT_LOCK_ORDER: str = "insertion"  # insertion | variant_id

    ORDER_NUMBER_PREFIX: str = "ORD"
    ORDER_NUMBER_MAX_ATTEMPTS: int = 5


settings = Settings()
