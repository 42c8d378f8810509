import os

from dotenv import load_dotenv


load_dotenv()


def _get_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_list(value: str | None, default: tuple[str, ...]) -> tuple[str, ...]:
    if value is None:
        return default
    items = tuple(item.strip().lower() for item in value.split(",") if item.strip())
    return items or default

APP_ENV = os.getenv("APP_ENV", "development")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./wellbeing.db")
CORS_ORIGINS = _get_list(os.getenv("CORS_ORIGINS"), ("http://localhost:5173",))

JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRES_MINUTES = int(os.getenv("JWT_EXPIRES_MINUTES", "60"))

# Roles whose users can be booked as a professional.
PROFESSIONAL_ROLES = _get_list(os.getenv("PROFESSIONAL_ROLES"), ("admin", "mentor", "teacher"))

GROUP_SESSION_CAPACITY = int(os.getenv("GROUP_SESSION_CAPACITY", "5"))
BOOKING_WINDOW_DAYS = int(os.getenv("BOOKING_WINDOW_DAYS", "30"))
PENDING_RESERVES_SLOT = _get_bool(os.getenv("PENDING_RESERVES_SLOT"), default=False)


def validate_runtime_config() -> None:
    if APP_ENV.lower() == "production" and JWT_SECRET_KEY == "change-me":
        raise RuntimeError("JWT_SECRET_KEY must be set in production.")
    if GROUP_SESSION_CAPACITY < 1:
        raise RuntimeError("GROUP_SESSION_CAPACITY must be at least 1.")
    if BOOKING_WINDOW_DAYS < 0:
        raise RuntimeError("BOOKING_WINDOW_DAYS cannot be negative.")
