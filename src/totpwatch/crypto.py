"""Password sealing for credential manifests."""

import base64
import os

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from .errors import ConfigurationError

SALT_SIZE = 16
KDF_ITERATIONS = 480000  # OWASP recommended minimum for PBKDF2-SHA256


def derive_key(password: str, salt: bytes) -> bytes:
    """Derive a Fernet key from a password and salt.

    Args:
        password: Sealing password
        salt: Random salt stored alongside the sealed data

    Returns:
        urlsafe base64 encoded 32-byte key
    """
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=32,
        salt=salt,
        iterations=KDF_ITERATIONS,
    )
    return base64.urlsafe_b64encode(kdf.derive(password.encode()))


def seal(data: bytes, password: str) -> bytes:
    """Encrypt data, returning ``salt + fernet token``."""
    salt = os.urandom(SALT_SIZE)
    return salt + Fernet(derive_key(password, salt)).encrypt(data)


def unseal(blob: bytes, password: str) -> bytes:
    """Decrypt data produced by ``seal``.

    Raises:
        ConfigurationError: If the password is wrong or the data is damaged
    """
    salt, token = blob[:SALT_SIZE], blob[SALT_SIZE:]
    try:
        return Fernet(derive_key(password, salt)).decrypt(token)
    except InvalidToken as e:
        raise ConfigurationError("Cannot unseal manifest: wrong password or damaged file") from e
