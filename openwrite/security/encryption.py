"""Encryption helpers for AI provider API keys stored at rest."""

import hashlib
import logging

from cryptography.fernet import Fernet, InvalidToken

from openwrite.config import settings
from openwrite.exceptions import EncryptionError

logger = logging.getLogger(__name__)

KEY_HASH_LENGTH = 16


def generate_encryption_key() -> str:
    return Fernet.generate_key().decode("ascii")


def _get_fernet() -> Fernet:
    key = settings.ENCRYPTION_KEY
    if not key:
        raise EncryptionError("ENCRYPTION_KEY environment variable is required for API key encryption")
    try:
        return Fernet(key)
    except (ValueError, TypeError) as e:
        raise EncryptionError("ENCRYPTION_KEY must be a valid Fernet key", e)


def encrypt_api_key(plaintext: str) -> str:
    """Encrypt an API key; the result is a URL-safe base64 Fernet token."""
    fernet = _get_fernet()
    return fernet.encrypt(plaintext.encode("utf-8")).decode("ascii")


def decrypt_api_key(token: str) -> str:
    fernet = _get_fernet()
    try:
        return fernet.decrypt(token.encode("ascii")).decode("utf-8")
    except InvalidToken as e:
        logger.error("Failed to decrypt API key: token invalid or key rotated")
        raise EncryptionError("Failed to decrypt API key", e)


def hash_api_key(api_key: str) -> str:
    """Short SHA-256 fingerprint used to recognise a key without decrypting it."""
    return hashlib.sha256(api_key.encode("utf-8")).hexdigest()[:KEY_HASH_LENGTH]
