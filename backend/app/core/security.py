# app/core/security.py
"""
Security module for authentication.
Handles password hashing and signing/validating the session tokens handed to clients.
"""
import datetime as dt
import jwt  # PyJWT
from passlib.context import CryptContext
from passlib.hash import hex_sha256

from app.config import settings

# Password hashing context
# New hashes use argon2; "hex_sha256" verifies digests written by the earlier
# deployment (plain unsalted sha256 hex) and is flagged deprecated so that
# needs_rehash() reports them for upgrade on the next successful login.
pwd_context = CryptContext(
    schemes=["argon2", "hex_sha256"],
    deprecated=["hex_sha256"],
)

JWT_ALG = "HS256"  # JWT signing algorithm (HMAC SHA-256)

# Verified against when the username is unknown, so both login failures cost one argon2 verify
DUMMY_PASSWORD_HASH = pwd_context.hash("dummy-password-for-unknown-users")


def digest(plain: str) -> str:
    """
    Deterministic one-way digest of a password (unsalted SHA-256, hex).

    Same input always gives the same output. Kept for records created before
    argon2 hashing; new passwords go through hash_password().
    """
    return hex_sha256.hash(plain)


def hash_password(plain: str) -> str:
    """
    Hash a plain text password using Argon2.

    Args:
        plain: Plain text password to hash

    Returns:
        Hashed password string (safe to store in database)
    """
    return pwd_context.hash(plain)


def verify_password(plain: str, hashed: str | None) -> bool:
    """
    Verify a plain text password against a stored argon2 hash or legacy digest.

    Returns False (never raises) when the stored value is empty or not a recognised hash.
    """
    if not hashed:
        return False
    try:
        return pwd_context.verify(plain, hashed)
    except ValueError:
        return False


def needs_rehash(hashed: str) -> bool:
    """True when the stored value should be replaced by a fresh argon2 hash."""
    try:
        return pwd_context.needs_update(hashed)
    except ValueError:
        return False


def create_session_token(
    session_id: str,
    user_id: int,
    ttl: dt.timedelta,
    now: dt.datetime | None = None,
) -> str:
    """
    Create the signed token a client presents for an existing server-side session.

    Payload:
        - sid: server-side session id (the token is useless once the session is gone)
        - sub: user id, as a string
        - iat / exp: issue and expiry timestamps, taken from `now` (wall clock by default)
    """
    now = now or dt.datetime.now(dt.timezone.utc)
    payload = {
        "sid": session_id,
        "sub": str(user_id),
        "iat": now,
        "exp": now + ttl,
    }
    return jwt.encode(payload, settings.session_secret, algorithm=JWT_ALG)


def decode_session_token(token: str, now: dt.datetime | None = None) -> dict:
    """
    Decode and validate a session token.

    When `now` is given, expiry is checked against it instead of the wall clock,
    so tokens follow the same clock as the session store.

    Raises:
        jwt.ExpiredSignatureError: If token has expired
        jwt.InvalidTokenError: If token is invalid or malformed
    """
    if now is None:
        return jwt.decode(token, settings.session_secret, algorithms=[JWT_ALG])

    payload = jwt.decode(
        token,
        settings.session_secret,
        algorithms=[JWT_ALG],
        options={"verify_exp": False, "verify_iat": False, "require": ["exp"]},
    )
    if payload["exp"] <= now.timestamp():
        raise jwt.ExpiredSignatureError("Signature has expired")
    return payload
