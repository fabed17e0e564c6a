# whisper_vault/crypto/codec.py
"""
WhisperVault Crypto: Password Codec

Client-side message encryption. Every call derives a fresh key from the
password and a random salt, then seals the text with AES-256-GCM.

Payload Format:
    salt (16B) || iv (12B) || ciphertext || tag (16B)

    - salt: PBKDF2 salt, fresh per call
    - iv: AES-GCM nonce, fresh per call
    - ciphertext || tag: AESGCM.encrypt() output

Usage:
    from whisper_vault.crypto import encrypt_text, decrypt_text

    payload_hex = encrypt_text("Hello!", "hunter22")
    text = decrypt_text(payload_hex, "hunter22")  # "Hello!"
"""

from __future__ import annotations

import binascii
import secrets
from typing import Union

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC


# =============================================================================
# Constants
# =============================================================================

SALT_SIZE = 16
IV_SIZE = 12
TAG_SIZE = 16
KEY_SIZE = 32  # AES-256

PBKDF2_ITERATIONS = 100_000

HEADER_SIZE = SALT_SIZE + IV_SIZE
MIN_PAYLOAD_SIZE = HEADER_SIZE + TAG_SIZE


# =============================================================================
# Exceptions
# =============================================================================

class CodecError(Exception):
    """Base codec error."""
    pass


class DecryptionError(CodecError):
    """Wrong password, corrupted payload, or malformed input."""
    pass


# =============================================================================
# Key Derivation
# =============================================================================

def derive_key(
    password: str,
    salt: bytes,
    iterations: int = PBKDF2_ITERATIONS,
) -> bytes:
    """
    Derive a 256-bit AES key from a password.

    Args:
        password: User password (UTF-8 encoded before derivation)
        salt: Random salt (SALT_SIZE bytes)
        iterations: PBKDF2 iteration count

    Returns:
        32-byte key
    """
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_SIZE,
        salt=salt,
        iterations=iterations,
    )
    return kdf.derive(password.encode("utf-8"))


# =============================================================================
# Binary API
# =============================================================================

def encrypt(plaintext: Union[str, bytes], password: str) -> bytes:
    """
    Encrypt plaintext under a password.

    Returns:
        salt || iv || ciphertext-with-tag
    """
    if isinstance(plaintext, str):
        plaintext = plaintext.encode("utf-8")

    salt = secrets.token_bytes(SALT_SIZE)
    iv = secrets.token_bytes(IV_SIZE)
    key = derive_key(password, salt)

    ct_with_tag = AESGCM(key).encrypt(iv, plaintext, None)
    return salt + iv + ct_with_tag


def decrypt(payload: bytes, password: str) -> str:
    """
    Decrypt a payload produced by encrypt().

    Raises:
        DecryptionError: Payload too short, tag mismatch, or non-UTF-8 text
    """
    if len(payload) < MIN_PAYLOAD_SIZE:
        raise DecryptionError(
            f"Payload too short: {len(payload)} < {MIN_PAYLOAD_SIZE} bytes"
        )

    salt = payload[:SALT_SIZE]
    iv = payload[SALT_SIZE:HEADER_SIZE]
    ct_with_tag = payload[HEADER_SIZE:]

    key = derive_key(password, salt)
    try:
        plaintext = AESGCM(key).decrypt(iv, ct_with_tag, None)
    except InvalidTag:
        raise DecryptionError("Authentication failed (wrong password or corrupted payload)")

    try:
        return plaintext.decode("utf-8")
    except UnicodeDecodeError as e:
        raise DecryptionError(f"Decrypted payload is not UTF-8 text: {e}")


# =============================================================================
# Hex API
# =============================================================================

def _strip_hex_prefix(value: str) -> str:
    if value.startswith(("0x", "0X")):
        return value[2:]
    return value


def encrypt_text(plaintext: str, password: str) -> str:
    """Encrypt and return the payload as a lowercase hex string (no 0x)."""
    return encrypt(plaintext, password).hex()


def decrypt_text(payload_hex: str, password: str) -> str:
    """Decrypt a hex payload. A leading 0x is accepted."""
    try:
        payload = bytes.fromhex(_strip_hex_prefix(payload_hex or ""))
    except (ValueError, binascii.Error) as e:
        raise DecryptionError(f"Payload is not valid hex: {e}")
    return decrypt(payload, password)
