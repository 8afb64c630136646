from __future__ import annotations

import hashlib
import hmac
import secrets

from passlib.context import CryptContext

from app.core.config import Settings

pwd_context = CryptContext(schemes=["bcrypt", "pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # malformed or unknown hash format
        return False


def verify_admin_password(candidate: str, settings: Settings) -> bool:
    """Check a submitted password against the configured admin secret.

    Both paths compare in constant time. An unconfigured secret never matches.
    """
    if settings.admin_password_hash:
        return verify_password(candidate, settings.admin_password_hash)

    secret = settings.admin_password.get_secret_value()
    if not secret:
        return False
    return hmac.compare_digest(candidate.encode("utf-8"), secret.encode("utf-8"))


def generate_session_token() -> str:
    return secrets.token_urlsafe(32)


def hash_token(raw: str, secret_key: str) -> str:
    return hashlib.sha256((secret_key + "|" + raw).encode("utf-8")).hexdigest()
