"""
Encryption of two-factor secrets at rest.

Uses Fernet (symmetric encryption). Secrets are encrypted before they are
stored on the user row and decrypted only to check a submitted token.
"""

import logging
from typing import Optional
from cryptography.fernet import Fernet, InvalidToken
from app.core.config import settings

logger = logging.getLogger(__name__)


class SecretEncryption:
    """
    Encrypt/decrypt small secrets using Fernet symmetric encryption.

    Without ENCRYPTION_KEY (local development) values pass through unchanged.
    Production refuses to run without a valid key.
    """

    def __init__(self, key: Optional[str] = None):
        key = key if key is not None else settings.ENCRYPTION_KEY
        if not key:
            if settings.is_production:
                raise RuntimeError("ENCRYPTION_KEY must be set in production")
            logger.warning(
                "ENCRYPTION_KEY not set. Two-factor secrets will be stored unencrypted. "
                "Generate a key with: python -c \"from cryptography.fernet import Fernet; print(Fernet.generate_key().decode())\""
            )
            self.cipher = None
        else:
            self.cipher = Fernet(key.encode())

    def encrypt(self, value: str) -> str:
        if not self.cipher:
            return value
        return self.cipher.encrypt(value.encode()).decode()

    def decrypt(self, stored: str) -> str:
        """
        Raises:
            InvalidToken: stored value was not produced with the current key
        """
        if not self.cipher:
            return stored
        try:
            return self.cipher.decrypt(stored.encode()).decode()
        except InvalidToken:
            logger.error("Stored secret could not be decrypted with the configured ENCRYPTION_KEY")
            raise


_secret_encryption: Optional[SecretEncryption] = None


def get_secret_encryption() -> SecretEncryption:
    global _secret_encryption
    if _secret_encryption is None:
        _secret_encryption = SecretEncryption()
    return _secret_encryption
