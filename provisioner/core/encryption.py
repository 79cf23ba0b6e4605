"""Encryption primitives for secret material held by the vault."""

from __future__ import annotations

import base64
import os

from cryptography.hazmat.primitives.ciphers.aead import AESGCM

_ENC_PREFIX = "enc:v2:"
_NONCE_BYTES = 12


class EncryptionError(Exception):
    """Raised when encryption or decryption fails."""


def _b64decode(data: str, *, error_context: str) -> bytes:
    try:
        return base64.b64decode(data, validate=True)
    except ValueError as exc:
        raise EncryptionError(error_context) from exc


def _to_aad_bytes(aad: str | bytes | None) -> bytes | None:
    if aad is None:
        return None
    if isinstance(aad, bytes):
        return aad
    return aad.encode("utf-8")


def is_encrypted_secret_value(value: object) -> bool:
    """Return True when a value carries the encrypted token prefix."""
    return isinstance(value, str) and value.startswith(_ENC_PREFIX)


class SecretEncryptor:
    """AES-GCM encryption of secret values with keyring-aware ``enc:v2`` tokens."""

    def __init__(
        self,
        master_key_b64: str | None = None,
        *,
        keyring: dict[str, str] | None = None,
        active_key_id: str = "default",
    ) -> None:
        parsed_keyring: dict[str, str] = {}
        if keyring:
            parsed_keyring = {
                str(key_id).strip(): str(value).strip()
                for key_id, value in keyring.items()
                if str(key_id).strip() and str(value).strip()
            }
        if not parsed_keyring and master_key_b64:
            parsed_keyring[active_key_id.strip() or "default"] = master_key_b64.strip()
        if not parsed_keyring:
            raise EncryptionError("encryption keyring is empty (set VAULT_ENCRYPTION_KEY)")

        self._keys: dict[str, bytes] = {}
        for key_id, key_b64 in parsed_keyring.items():
            raw_key = _b64decode(
                key_b64,
                error_context=f"encryption key '{key_id}' is not valid base64",
            )
            if len(raw_key) != 32:
                raise EncryptionError(
                    f"encryption key '{key_id}' must be 256 bits (32 bytes), got {len(raw_key)}"
                )
            self._keys[key_id] = raw_key

        active = active_key_id.strip() or "default"
        if active not in self._keys:
            active = next(iter(self._keys))
        self._active_key_id = active

    @property
    def active_key_id(self) -> str:
        return self._active_key_id

    def encrypt_secret(self, plaintext: str, *, aad: str | bytes | None = None) -> str:
        nonce = os.urandom(_NONCE_BYTES)
        key = self._keys[self._active_key_id]
        ciphertext = AESGCM(key).encrypt(nonce, plaintext.encode("utf-8"), _to_aad_bytes(aad))
        payload = base64.b64encode(nonce + ciphertext).decode("ascii")
        return f"{_ENC_PREFIX}{self._active_key_id}:{payload}"

    def decrypt_secret(self, token: str, *, aad: str | bytes | None = None) -> str:
        if not token.startswith(_ENC_PREFIX):
            raise EncryptionError("value does not have a supported encrypted prefix")
        raw = token[len(_ENC_PREFIX) :]
        if ":" not in raw:
            raise EncryptionError("corrupted enc:v2 payload (missing key id delimiter)")
        key_id, b64_payload = raw.split(":", 1)
        key_id = key_id.strip()
        if key_id not in self._keys:
            raise EncryptionError(f"unknown encryption key id '{key_id}' for enc:v2 payload")
        blob = _b64decode(b64_payload, error_context="corrupted enc:v2 payload (bad base64)")
        if len(blob) <= _NONCE_BYTES:
            raise EncryptionError("corrupted enc:v2 payload (too short)")
        nonce = blob[:_NONCE_BYTES]
        ciphertext = blob[_NONCE_BYTES:]
        try:
            plaintext_bytes = AESGCM(self._keys[key_id]).decrypt(
                nonce, ciphertext, _to_aad_bytes(aad)
            )
        except Exception as exc:
            raise EncryptionError(
                "decryption failed: key mismatch, AAD mismatch, or corrupted ciphertext"
            ) from exc
        return plaintext_bytes.decode("utf-8")
