from __future__ import annotations

import hmac
from functools import lru_cache

from passlib.context import CryptContext

from core.config import get_settings


@lru_cache(maxsize=4)
def _crypt_context(rounds: int) -> CryptContext:
    return CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)


def pwd_context() -> CryptContext:
    return _crypt_context(get_settings().password_hash_rounds)


def is_legacy_plaintext(stored: str) -> bool:
    """Rows imported from the old storage kept the credential unhashed."""
    return pwd_context().identify(stored) is None


def hash_password(password: str) -> str:
    return pwd_context().hash(password)


def verify_password(password: str, stored: str) -> bool:
    if not stored:
        return False
    if is_legacy_plaintext(stored):
        return hmac.compare_digest(password.encode("utf-8"), stored.encode("utf-8"))
    try:
        return pwd_context().verify(password, stored)
    except ValueError:
        return False


def password_needs_upgrade(stored: str) -> bool:
    return is_legacy_plaintext(stored) or pwd_context().needs_update(stored)
