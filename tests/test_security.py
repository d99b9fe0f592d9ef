"""Tests for the security module — credential encryption."""

from __future__ import annotations

import base64
import os
from unittest.mock import MagicMock, patch

import pytest

import cloudlink.security.encryption as enc
from cloudlink.security.encryption import _get_cipher, _persist_key_to_env, decrypt, encrypt


class TestEncryption:
    """Tests for AES-256 encryption/decryption."""

    @pytest.fixture(autouse=True)
    def reset_cipher(self):
        """Reset the global cipher before each test."""
        enc._cipher = None
        yield
        enc._cipher = None

    def test_encrypt_decrypt_roundtrip(self) -> None:
        """Encrypting then decrypting returns original text."""
        key = base64.urlsafe_b64encode(os.urandom(32)).decode()
        with patch("cloudlink.security.encryption.get_settings") as mock:
            mock.return_value = MagicMock(cloudlink_encryption_key=key)
            encrypted = encrypt("s3cret")
            assert encrypted != "s3cret"
            assert decrypt(encrypted) == "s3cret"

    def test_encrypt_produces_different_ciphertexts(self) -> None:
        """Same plaintext produces different ciphertexts due to random nonce."""
        key = base64.urlsafe_b64encode(os.urandom(32)).decode()
        with patch("cloudlink.security.encryption.get_settings") as mock:
            mock.return_value = MagicMock(cloudlink_encryption_key=key)
            assert encrypt("token") != encrypt("token")

    def test_decrypt_wrong_key_fails(self) -> None:
        """Decryption with wrong key raises an error."""
        key1 = base64.urlsafe_b64encode(os.urandom(32)).decode()
        key2 = base64.urlsafe_b64encode(os.urandom(32)).decode()

        with patch("cloudlink.security.encryption.get_settings") as mock:
            mock.return_value = MagicMock(cloudlink_encryption_key=key1)
            encrypted = encrypt("secret data")

        enc._cipher = None
        with patch("cloudlink.security.encryption.get_settings") as mock:
            mock.return_value = MagicMock(cloudlink_encryption_key=key2)
            with pytest.raises(Exception):
                decrypt(encrypted)

    def test_key_generated_when_empty(self) -> None:
        """When no key is configured, one is generated and persisted."""
        with patch("cloudlink.security.encryption.get_settings") as mock, patch(
            "cloudlink.security.encryption._persist_key_to_env", return_value=True
        ) as persist:
            mock.return_value = MagicMock(cloudlink_encryption_key="")
            assert _get_cipher() is not None
            persist.assert_called_once()

    def test_invalid_key_replaced(self) -> None:
        """A key of the wrong length is replaced by a generated one."""
        short = base64.urlsafe_b64encode(b"too-short").decode()
        with patch("cloudlink.security.encryption.get_settings") as mock, patch(
            "cloudlink.security.encryption._persist_key_to_env", return_value=False
        ) as persist:
            mock.return_value = MagicMock(cloudlink_encryption_key=short)
            assert _get_cipher() is not None
            persist.assert_called_once()


class TestPersistKey:
    """Tests for writing generated keys to .env."""

    def test_creates_env_file(self, tmp_path, monkeypatch) -> None:
        monkeypatch.chdir(tmp_path)
        assert _persist_key_to_env("abc") is True
        assert (tmp_path / ".env").read_text() == "CLOUDLINK_ENCRYPTION_KEY=abc\n"

    def test_updates_existing_line(self, tmp_path, monkeypatch) -> None:
        monkeypatch.chdir(tmp_path)
        (tmp_path / ".env").write_text("CLOUDLINK_ENV=test\nCLOUDLINK_ENCRYPTION_KEY=old\n")
        assert _persist_key_to_env("new") is True
        assert (tmp_path / ".env").read_text() == (
            "CLOUDLINK_ENV=test\nCLOUDLINK_ENCRYPTION_KEY=new\n"
        )

    def test_appends_missing_line(self, tmp_path, monkeypatch) -> None:
        monkeypatch.chdir(tmp_path)
        (tmp_path / ".env").write_text("CLOUDLINK_ENV=test\n")
        _persist_key_to_env("k")
        assert (tmp_path / ".env").read_text().endswith("CLOUDLINK_ENCRYPTION_KEY=k\n")
