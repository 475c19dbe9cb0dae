import pytest
from cryptography.fernet import Fernet

from openwrite.config import settings
from openwrite.exceptions import EncryptionError
from openwrite.security import encryption


def test_round_trip():
    token = encryption.encrypt_api_key("sk-secret")
    assert token != "sk-secret"
    assert encryption.decrypt_api_key(token) == "sk-secret"


def test_hash_is_short_and_stable():
    assert encryption.hash_api_key("sk-secret") == encryption.hash_api_key("sk-secret")
    assert len(encryption.hash_api_key("sk-secret")) == encryption.KEY_HASH_LENGTH
    assert encryption.hash_api_key("sk-secret") != encryption.hash_api_key("sk-other")


def test_missing_key(monkeypatch):
    monkeypatch.setattr(settings, "ENCRYPTION_KEY", None)
    with pytest.raises(EncryptionError):
        encryption.encrypt_api_key("sk-secret")


def test_invalid_key(monkeypatch):
    monkeypatch.setattr(settings, "ENCRYPTION_KEY", "not-a-fernet-key")
    with pytest.raises(EncryptionError) as exc_info:
        encryption.encrypt_api_key("sk-secret")
    assert "caused by" in str(exc_info.value)


def test_token_from_another_key_is_rejected():
    foreign = Fernet(Fernet.generate_key()).encrypt(b"sk-secret").decode("ascii")
    with pytest.raises(EncryptionError):
        encryption.decrypt_api_key(foreign)


def test_generated_key_is_usable():
    assert Fernet(encryption.generate_encryption_key().encode("ascii"))
