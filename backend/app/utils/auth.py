"""Credential utilities: password hashing and one-time numeric codes"""
import secrets

import bcrypt

from app.config import settings

CODE_MIN = 100000
CODE_MAX = 999999

# bcrypt only reads the first 72 bytes of its input
_BCRYPT_MAX_BYTES = 72


def _password_bytes(password: str) -> bytes:
    return password.encode()[:_BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    """Hash a password with bcrypt at the configured cost factor"""
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(_password_bytes(password), salt).decode()


def verify_password(password: str, password_hash: str) -> bool:
    """Check a plaintext password against a stored bcrypt hash.

    Malformed hashes compare as a mismatch rather than raising.
    """
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(_password_bytes(password), password_hash.encode())
    except ValueError:
        return False


def generate_numeric_code() -> str:
    """Six ASCII digits drawn uniformly from 100000-999999"""
    return str(CODE_MIN + secrets.randbelow(CODE_MAX - CODE_MIN + 1))
