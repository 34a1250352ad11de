import re
import logging
from typing import List
from cryptography.fernet import Fernet, InvalidToken
from hris.core.config import settings

logger = logging.getLogger(__name__)

_cipher = Fernet(settings.fernet_key)

PASSWORD_MIN_LENGTH = 8
_SPECIAL_CHARS = r"[!@#$%^&*(),.?\":{}|<>]"


def encrypt_data(data: str) -> str:
    """Encrypt sensitive string data."""
    if not data:
        return data
    try:
        return _cipher.encrypt(data.encode()).decode()
    except Exception as e:
        logger.error(f"Encryption failed: {e}")
        raise ValueError(f"Encryption failed, refusing to store plaintext: {e}") from e


def decrypt_data(encrypted_data: str) -> str:
    """Decrypt sensitive string data."""
    if not encrypted_data:
        return encrypted_data
    try:
        return _cipher.decrypt(encrypted_data.encode()).decode()
    except InvalidToken:
        # Rows written before encryption was enabled hold plaintext
        logger.warning("Decryption failed (possibly not encrypted)")
        return encrypted_data


def password_policy_errors(password: str) -> List[str]:
    """Returns the list of policy violations; empty means the password is acceptable."""
    errors = []
    if len(password) < PASSWORD_MIN_LENGTH:
        errors.append(f"Password must be at least {PASSWORD_MIN_LENGTH} characters long")
    if not re.search(r"[A-Z]", password):
        errors.append("Password must contain at least one uppercase letter")
    if not re.search(r"[a-z]", password):
        errors.append("Password must contain at least one lowercase letter")
    if not re.search(r"\d", password):
        errors.append("Password must contain at least one number")
    if not re.search(_SPECIAL_CHARS, password):
        errors.append("Password must contain at least one special character")
    return errors

