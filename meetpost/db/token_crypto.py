import logging

from cryptography.fernet import Fernet, InvalidToken
from meetpost.config import settings

logger = logging.getLogger(__name__)


def _fernet() -> Fernet:
    if not settings.fernet_key:
        raise RuntimeError("FERNET_KEY is missing in .env")
    return Fernet(settings.fernet_key.encode())


def encrypt_token(plain: str) -> str:
    return _fernet().encrypt(plain.encode()).decode()


def encrypt_optional(plain: str | None) -> str | None:
    return encrypt_token(plain) if plain else None


def decrypt_token(cipher: str) -> str:
    try:
        return _fernet().decrypt(cipher.encode()).decode()
    except (TypeError, InvalidToken) as e:
        # caller decides how to surface this
        logger.error("Token decrypt failed: %s", type(e).__name__)
        raise
