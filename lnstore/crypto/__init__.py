"""
Cryptographic helpers for lnstore.

This module provides:
- The secret vault sealing the wallet seed phrase
- BIP-39 mnemonic validation
- Hex encoding helpers used for identifiers at rest

Design Notes:
-------------
The seed is sealed with Fernet (AES-128-CBC + HMAC-SHA256). The Fernet key
is derived from the user's password with PBKDF2-HMAC-SHA256 and a random
per-ciphertext salt, stored in front of the token:

    base64url(salt) + "$" + fernet_token

Fernet authenticates before decrypting, so a wrong password always fails
with InvalidToken instead of yielding garbage plaintext.
"""

import base64
import binascii
import hashlib
import secrets
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken
from mnemonic import Mnemonic

from lnstore.core.errors import (
    CorruptSecretError,
    InvalidMnemonicError,
    InvalidRecordError,
    WrongPasswordError,
)


# =============================================================================
# Constants
# =============================================================================

SALT_SIZE = 16
DEFAULT_PBKDF2_ITERATIONS = 100_000
SALT_SEPARATOR = "$"

_wordlist = Mnemonic("english")


# =============================================================================
# Mnemonic
# =============================================================================


def parse_mnemonic(phrase: str) -> str:
    """
    Validate a BIP-39 phrase and return its normalized form.

    Raises:
        InvalidMnemonicError: wrong word count, unknown word or bad checksum
    """
    normalized = " ".join(phrase.split()).lower()
    if not normalized or not _wordlist.check(normalized):
        raise InvalidMnemonicError("Invalid mnemonic phrase")
    return normalized


def generate_mnemonic(strength: int = 128) -> str:
    """Generate a fresh 12-word (128 bit) phrase."""
    return _wordlist.generate(strength=strength)


# =============================================================================
# Secret Vault
# =============================================================================


class SecretVault:
    """
    Password-based sealing of the wallet seed.

    Args:
        iterations: PBKDF2 iteration count
    """

    def __init__(self, iterations: int = DEFAULT_PBKDF2_ITERATIONS):
        self.iterations = iterations

    def _fernet(self, password: str, salt: bytes) -> Fernet:
        key = base64.urlsafe_b64encode(
            hashlib.pbkdf2_hmac("sha256", password.encode(), salt, self.iterations)
        )
        return Fernet(key)

    def encrypt(self, password: str, plaintext: str) -> str:
        """Seal plaintext under password. Each call uses a fresh salt."""
        salt = secrets.token_bytes(SALT_SIZE)
        token = self._fernet(password, salt).encrypt(plaintext.encode())
        encoded_salt = base64.urlsafe_b64encode(salt).decode()
        return f"{encoded_salt}{SALT_SEPARATOR}{token.decode()}"

    def decrypt(self, password: str, ciphertext: str) -> str:
        """
        Open a sealed value.

        Raises:
            InvalidRecordError: the value is not in salt$token form
            WrongPasswordError: the password does not match the token
        """
        encoded_salt, sep, token = ciphertext.strip().partition(SALT_SEPARATOR)
        if not sep or not token:
            raise InvalidRecordError("Sealed value is missing its salt separator")
        try:
            salt = base64.urlsafe_b64decode(encoded_salt.encode())
        except (binascii.Error, ValueError) as e:
            raise InvalidRecordError("Sealed value has a malformed salt") from e
        if len(salt) != SALT_SIZE:
            raise InvalidRecordError(f"Sealed value salt must be {SALT_SIZE} bytes, got {len(salt)}")

        try:
            plaintext = self._fernet(password, salt).decrypt(token.encode())
        except InvalidToken as e:
            raise WrongPasswordError() from e
        return plaintext.decode()

    def seal_mnemonic(self, password: str, phrase: str) -> str:
        """Validate then encrypt a seed phrase."""
        return self.encrypt(password, parse_mnemonic(phrase))

    def open_mnemonic(self, password: str, ciphertext: str) -> str:
        """
        Decrypt a sealed seed phrase.

        A phrase that decrypts but does not validate was never written by
        seal_mnemonic, so it raises CorruptSecretError.
        """
        phrase = self.decrypt(password, ciphertext)
        try:
            return parse_mnemonic(phrase)
        except InvalidMnemonicError as e:
            raise CorruptSecretError("stored secret is not a valid mnemonic") from e


# =============================================================================
# Utility Functions
# =============================================================================


def hex_str(data: bytes) -> str:
    """Lowercase hex without prefix, as stored in the database."""
    return data.hex()


def hex_to_bytes(hex_str: str) -> bytes:
    """Convert hex string (with or without 0x prefix) to bytes."""
    if hex_str.startswith("0x") or hex_str.startswith("0X"):
        hex_str = hex_str[2:]
    return bytes.fromhex(hex_str)


def try_hex_to_bytes(value: str) -> Optional[bytes]:
    """Like hex_to_bytes but returns None on malformed input."""
    try:
        return hex_to_bytes(value)
    except (ValueError, TypeError):
        return None
