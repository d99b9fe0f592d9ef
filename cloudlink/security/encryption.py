"""AES-256 encryption for credential material at rest."""

from __future__ import annotations

import base64
import os
from pathlib import Path
from typing import Optional

from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from cloudlink.config import get_settings
from cloudlink.logging_config import get_logger

logger = get_logger(__name__)

_ENV_KEY = "CLOUDLINK_ENCRYPTION_KEY"
_NONCE_SIZE = 12

_cipher: Optional[AESGCM] = None


def _persist_key_to_env(key_b64: str) -> bool:
    """Write the encryption key to .env so stored secrets survive restarts.

    If .env exists, update/add the CLOUDLINK_ENCRYPTION_KEY line.
    If .env doesn't exist, create it with just the key.
    Returns True if the key was persisted successfully.
    """
    env_path = Path(".env")
    try:
        if env_path.exists():
            lines = env_path.read_text().splitlines()
            for i, line in enumerate(lines):
                if line.strip().split("=", 1)[0].strip() == _ENV_KEY:
                    lines[i] = f"{_ENV_KEY}={key_b64}"
                    break
            else:
                lines.append(f"{_ENV_KEY}={key_b64}")
            env_path.write_text("\n".join(lines) + "\n")
        else:
            env_path.write_text(f"{_ENV_KEY}={key_b64}\n")
        logger.info("encryption_key_persisted", path=str(env_path.resolve()))
        return True
    except OSError as exc:
        logger.warning("encryption_key_persist_failed", error=str(exc))
        return False


def _generate_key() -> bytes:
    key = AESGCM.generate_key(bit_length=256)
    if not _persist_key_to_env(base64.urlsafe_b64encode(key).decode()):
        logger.warning("encryption_key_ephemeral", msg="Stored secrets will not survive a restart")
    return key


def _decode_key(key_b64: str) -> bytes:
    padded = key_b64 + "=" * (-len(key_b64) % 4)
    key = base64.urlsafe_b64decode(padded)
    if len(key) != 32:
        raise ValueError(f"Key is {len(key)} bytes, need 32")
    return key


def _get_cipher() -> AESGCM:
    """Return or create the AES-GCM cipher from the configured key."""
    global _cipher
    if _cipher is not None:
        return _cipher

    key_b64 = get_settings().cloudlink_encryption_key
    if not key_b64:
        key = _generate_key()
    else:
        try:
            key = _decode_key(key_b64)
        except ValueError as exc:
            logger.warning("encryption_key_invalid", error=str(exc))
            key = _generate_key()

    _cipher = AESGCM(key)
    return _cipher


def encrypt(plaintext: str) -> str:
    """Encrypt a plaintext string, returning base64-encoded ciphertext with nonce."""
    cipher = _get_cipher()
    nonce = os.urandom(_NONCE_SIZE)
    ciphertext = cipher.encrypt(nonce, plaintext.encode("utf-8"), None)
    return base64.urlsafe_b64encode(nonce + ciphertext).decode("ascii")


def decrypt(token: str) -> str:
    """Decrypt a base64-encoded token back to plaintext.

    Raises:
        cryptography.exceptions.InvalidTag: If the token was produced with
            another key or has been tampered with.
    """
    cipher = _get_cipher()
    padded = token + "=" * (-len(token) % 4)
    raw = base64.urlsafe_b64decode(padded)
    nonce, ciphertext = raw[:_NONCE_SIZE], raw[_NONCE_SIZE:]
    return cipher.decrypt(nonce, ciphertext, None).decode("utf-8")
