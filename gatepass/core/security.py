"""Password hashing and session token helpers."""


import secrets
from datetime import datetime, timedelta, timezone

from bcrypt import checkpw, gensalt, hashpw

from gatepass.core.config import settings

_TOKEN_BYTES = 32


def hash_password(raw_password: str) -> str:
    return hashpw(raw_password.encode("utf-8"), gensalt()).decode("utf-8")


def verify_password(raw_password: str, password_hash: str) -> bool:
    return checkpw(raw_password.encode("utf-8"), password_hash.encode("utf-8"))


def new_session_token() -> str:
    """Opaque bearer token; only its value is stored, it carries no claims."""
    return secrets.token_urlsafe(_TOKEN_BYTES)


def session_expiry(now: datetime | None = None) -> datetime:
    now = now or datetime.now(timezone.utc)
    return now + timedelta(minutes=settings.session_ttl_minutes)
