# gigflow/shared/config.py
from pathlib import Path
from pydantic import BaseModel
import os

ROOT = Path(__file__).resolve().parents[2]   # project root
_STORAGE = os.getenv("STORAGE_DIR", str(ROOT / "storage"))

class Settings(BaseModel):
    ENV: str = os.getenv("ENV", "dev")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # storage
    STORAGE_DIR: str = _STORAGE
    DATABASE_URL: str = os.getenv("DATABASE_URL", f"sqlite:///{(Path(_STORAGE) / 'gigflow.db').as_posix()}")
    SQLITE_BUSY_TIMEOUT: float = float(os.getenv("SQLITE_BUSY_TIMEOUT", "15"))
    TX_ATTEMPTS: int = int(os.getenv("TX_ATTEMPTS", "3"))

    # JWT settings
    JWT_KEY: str = os.getenv("JWT_KEY", "dev-secret")
    JWT_ALG: str = os.getenv("JWT_ALG", "HS256")
    JWT_ISS: str | None = os.getenv("JWT_ISS")
    JWT_AUD: str | None = os.getenv("JWT_AUD")
    JWT_EXPIRE_MIN: int = int(os.getenv("JWT_EXPIRE_MIN", str(30 * 24 * 60)))
    AUTH_COOKIE: str = os.getenv("AUTH_COOKIE", "jwt")
    COOKIE_SECURE: bool = os.getenv("COOKIE_SECURE", "false").lower() == "true"

    # registration
    OTP_TTL_MIN: int = int(os.getenv("OTP_TTL_MIN", "10"))

    # notifications
    NOTIFY_QUEUE_SIZE: int = int(os.getenv("NOTIFY_QUEUE_SIZE", "100"))

settings = Settings()
