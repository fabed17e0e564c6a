# whisper_vault/crypto/__init__.py
"""
WhisperVault Crypto Layer

Password-based AES-256-GCM codec for message payloads.

Components:
    encrypt / decrypt: bytes payload API
    encrypt_text / decrypt_text: hex payload API (what gets stored)
    derive_key: PBKDF2-HMAC-SHA256 key derivation
"""

from .codec import (
    SALT_SIZE,
    IV_SIZE,
    TAG_SIZE,
    KEY_SIZE,
    PBKDF2_ITERATIONS,
    MIN_PAYLOAD_SIZE,
    CodecError,
    DecryptionError,
    derive_key,
    encrypt,
    decrypt,
    encrypt_text,
    decrypt_text,
)

__all__ = [
    "SALT_SIZE",
    "IV_SIZE",
    "TAG_SIZE",
    "KEY_SIZE",
    "PBKDF2_ITERATIONS",
    "MIN_PAYLOAD_SIZE",
    "CodecError",
    "DecryptionError",
    "derive_key",
    "encrypt",
    "decrypt",
    "encrypt_text",
    "decrypt_text",
]
