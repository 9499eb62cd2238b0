from datetime import datetime, timedelta, timezone

import jwt

from clinic_backend.auth.actors import Actor
from clinic_backend.core import config


def create_access_token(actor: Actor, expires_minutes: int | None = None) -> str:
    """Issue a bearer token for ``actor``; used by whatever service signs users in."""
    expire_minutes = expires_minutes or config.JWT_EXPIRES_MINUTES
    expire = datetime.now(timezone.utc) + timedelta(minutes=expire_minutes)
    payload = {
        "sub": actor.subject,
        "role": actor.role.value,
        "exp": expire,
        "iat": datetime.now(timezone.utc),
    }
    return jwt.encode(payload, config.JWT_SECRET_KEY, algorithm=config.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict:
    return jwt.decode(token, config.JWT_SECRET_KEY, algorithms=[config.JWT_ALGORITHM])
