"""Security utilities: JWT tokens, password hashing."""

from datetime import datetime, timedelta, timezone

import bcrypt
import jwt

from familyhub.config import settings


# --- Password Hashing ---

def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def verify_password(password: str, hashed: str) -> bool:
    if not hashed:
        return False
    return bcrypt.checkpw(password.encode(), hashed.encode())


# --- JWT Tokens ---

def _encode(payload: dict) -> str:
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def create_access_token(user_id: str) -> str:
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.access_token_expire_minutes)
    return _encode({"sub": user_id, "exp": expire, "type": "access"})


def create_refresh_token(user_id: str) -> str:
    expire = datetime.now(timezone.utc) + timedelta(days=settings.refresh_token_expire_days)
    return _encode({"sub": user_id, "exp": expire, "type": "refresh"})


def create_confirmation_token(user_id: str, email: str) -> str:
    """Email confirmation token. Bound to the address it was issued for."""
    expire = datetime.now(timezone.utc) + timedelta(hours=settings.confirm_token_expire_hours)
    return _encode({"sub": user_id, "email": email, "exp": expire, "type": "confirm"})


def decode_token(token: str) -> dict:
    """Decode and validate a JWT token. Raises jwt.PyJWTError on failure."""
    return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
