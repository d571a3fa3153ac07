"""Encryption helpers for OAuth credentials stored at rest."""

import base64
import logging
from functools import lru_cache

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from socialsync.config import settings

logger = logging.getLogger(__name__)

_KDF_SALT = b"socialsync.credentials.v1"
_KDF_ITERATIONS = 100_000


@lru_cache(maxsize=4)
def _fernet_for(key: str) -> Fernet:
    """Use the key directly if it is a Fernet key, otherwise derive one from it."""
    try:
        return Fernet(key.encode())
    except ValueError:
        pass
    if key == "change-me-in-production":
        logger.warning(
            "Using the default encryption key. Set SOCIALSYNC_ENCRYPTION_KEY in production."
        )
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=32,
        salt=_KDF_SALT,
        iterations=_KDF_ITERATIONS,
    )
    return Fernet(base64.urlsafe_b64encode(kdf.derive(key.encode())))


def _get_fernet() -> Fernet:
    return _fernet_for(settings.encryption_key)


def encrypt(plaintext: str) -> str:
    """Encrypt a credential. Empty values stay empty."""
    if not plaintext:
        return ""
    return _get_fernet().encrypt(plaintext.encode()).decode()


def decrypt(ciphertext: str) -> str:
    """Decrypt a credential produced by ``encrypt``."""
    if not ciphertext:
        return ""
    try:
        return _get_fernet().decrypt(ciphertext.encode()).decode()
    except InvalidToken as e:
        raise ValueError("Failed to decrypt stored credential") from e


def mask_secret(raw: str) -> str:
    """Mask a secret, showing only the last 4 chars."""
    if not raw:
        return ""
    if len(raw) <= 4:
        return "****"
    return "*" * (len(raw) - 4) + raw[-4:]
