"""Email/password accounts and bearer-token sessions."""

from __future__ import annotations

import logging
import os
from typing import Mapping, Optional

from cryptography.exceptions import InvalidKey
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from .exceptions import AuthenticationError, ValidationFailedError
from .models import Session, User
from .store import EMAIL_RE, JsonStore, normalize_email

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
_ITERATIONS = 200_000


def _kdf(salt: str) -> PBKDF2HMAC:
    return PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=32,
        salt=bytes.fromhex(salt),
        iterations=_ITERATIONS,
    )


def hash_password(password: str, salt: str) -> str:
    return _kdf(salt).derive(password.encode("utf-8")).hex()


def verify_password(password: str, salt: str, password_hash: str) -> bool:
    """Constant-time check of ``password`` against a stored hex hash."""
    try:
        _kdf(salt).verify(password.encode("utf-8"), bytes.fromhex(password_hash))
    except InvalidKey:
        return False
    return True


def parse_bearer(authorization: Optional[str]) -> Optional[str]:
    """Return the token of a ``Bearer <token>`` header, or ``None``."""
    if not authorization or not authorization.startswith("Bearer "):
        return None
    token = authorization[len("Bearer "):].strip()
    return token or None


def sign_up(store: JsonStore, email: str, password: str) -> User:
    normalized = normalize_email(email or "")
    if not EMAIL_RE.search(normalized):
        raise ValidationFailedError("Invalid email", details={"email": normalized})
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationFailedError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
        )
    salt = os.urandom(16).hex()
    user = store.add_user(
        User(email=normalized, password_hash=hash_password(password, salt), salt=salt)
    )
    logger.info("Registered user %s", user.id)
    return user


def sign_in(store: JsonStore, email: str, password: str) -> Session:
    """Check credentials and open a new session."""
    user = store.find_user_by_email(email or "")
    if user is None or not verify_password(password or "", user.salt, user.password_hash):
        raise AuthenticationError("Invalid login credentials")
    return store.add_session(Session(user_id=user.id))


def user_id_from_headers(store: JsonStore, headers: Mapping[str, str]) -> Optional[str]:
    """Resolve the user behind the request's ``Authorization`` header."""
    lowered = {k.lower(): v for k, v in headers.items()}
    token = parse_bearer(lowered.get("authorization"))
    if token is None:
        return None
    session = store.find_session(token)
    return session.user_id if session else None


__all__ = [
    "hash_password",
    "verify_password",
    "parse_bearer",
    "sign_up",
    "sign_in",
    "user_id_from_headers",
]
