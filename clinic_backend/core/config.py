import os
from datetime import time

from dotenv import load_dotenv

load_dotenv()



def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_time(value: str | None, default: time) -> time:
    if not value:
        return default
    hour, minute = value.strip().split(":", 1)
    return time(int(hour), int(minute))


def _get_list(value: str | None, default: list[str]) -> list[str]:
    if not value:
        return default
    return [item.strip() for item in value.split(",") if item.strip()]

APP_ENV = os.getenv("APP_ENV", "development")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./clinic.db")
DATABASE_ECHO = _get_bool(os.getenv("DATABASE_ECHO"), default=False)

CORS_ALLOWED_ORIGINS = _get_list(os.getenv("CORS_ALLOWED_ORIGINS"), ["http://localhost:5173"])

JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRES_MINUTES = int(os.getenv("JWT_EXPIRES_MINUTES", "60"))

DEFAULT_WORKING_HOURS_START = _get_time(os.getenv("DEFAULT_WORKING_HOURS_START"), time(10, 0))
DEFAULT_WORKING_HOURS_END = _get_time(os.getenv("DEFAULT_WORKING_HOURS_END"), time(21, 0))
SLOT_DURATION_MINUTES = int(os.getenv("SLOT_DURATION_MINUTES", "30"))
SLOT_WINDOW_DAYS = int(os.getenv("SLOT_WINDOW_DAYS", "7"))

# Razorpay-compatible order API
PAYMENT_API_BASE_URL = os.getenv("PAYMENT_API_BASE_URL", "https://api.razorpay.com/v1")
PAYMENT_KEY_ID = os.getenv("PAYMENT_KEY_ID", "")
PAYMENT_KEY_SECRET = os.getenv("PAYMENT_KEY_SECRET", "")
PAYMENT_CURRENCY = os.getenv("PAYMENT_CURRENCY", "INR")
PAYMENT_TIMEOUT_SECONDS = float(os.getenv("PAYMENT_TIMEOUT_SECONDS", "10"))

def validate_runtime_config() -> None:
    if APP_ENV.lower() == "production" and JWT_SECRET_KEY == "change-me":
        raise RuntimeError("JWT_SECRET_KEY must be set in production.")
    if APP_ENV.lower() == "production" and not (PAYMENT_KEY_ID and PAYMENT_KEY_SECRET):
        raise RuntimeError("PAYMENT_KEY_ID and PAYMENT_KEY_SECRET must be set in production.")
    if SLOT_DURATION_MINUTES <= 0:
        raise RuntimeError("SLOT_DURATION_MINUTES must be positive.")
