from datetime import datetime, timedelta
from typing import Optional, Dict, Any
from jose import JWTError, jwt
import bcrypt

from app.core.config import settings
from app.core.exceptions import InvalidTokenError


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password"""
    # Bcrypt has a 72 byte limit - truncate password if necessary
    password_bytes = plain_password.encode('utf-8')[:72]
    try:
        return bcrypt.checkpw(password_bytes, hashed_password.encode('utf-8'))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


def get_password_hash(password: str) -> str:
    """Hash password with configurable rounds (BCRYPT_ROUNDS in .env)"""
    # Bcrypt has a 72 byte limit - truncate password if necessary
    password_bytes = password.encode('utf-8')[:72]
    hashed = bcrypt.hashpw(password_bytes, bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS))
    return hashed.decode('utf-8')


def _encode(data: Dict[str, Any], token_type: str, expires_delta: timedelta, issued_at: Optional[datetime]) -> str:
    now = issued_at or datetime.utcnow()
    to_encode = data.copy()
    to_encode.update({"iat": now, "exp": now + expires_delta, "type": token_type})
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def create_access_token(
    data: Dict[str, Any],
    expires_delta: Optional[timedelta] = None,
    issued_at: Optional[datetime] = None,
) -> str:
    """
    Create JWT access token.

    data carries the principal claims: sub (record id), role and email.
    issued_at defaults to now; passing it lets callers mint tokens whose
    lifetime is anchored at a known instant.
    """
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    return _encode(data, "access", expires_delta, issued_at)


def create_password_reset_token(student_id: str, email: str) -> str:
    """Short-lived token mailed to a student who forgot their password"""
    return _encode(
        {"sub": student_id, "email": email, "role": "student"},
        "password_reset",
        timedelta(minutes=settings.PASSWORD_RESET_EXPIRE_MINUTES),
        None,
    )


def decode_token(token: str, expected_type: str = "access", now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Decode and verify a JWT token.

    Raises InvalidTokenError when the token is malformed, wrongly signed,
    expired, or of another type. When `now` is given, expiry is checked
    against it instead of the wall clock.
    """
    options = {"verify_exp": now is None}
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
            options=options,
        )
    except JWTError:
        raise InvalidTokenError()

    if now is not None:
        exp = payload.get("exp")
        if exp is None or datetime.utcfromtimestamp(exp) <= now:
            raise InvalidTokenError()

    if payload.get("type") != expected_type:
        raise InvalidTokenError("Invalid token type")

    return payload
