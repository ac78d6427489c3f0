"""
Unit tests for the secret vault and crypto helpers.

Tests cover:
1. Encrypt / decrypt
2. Wrong password detection
3. Mnemonic validation
4. Hex helpers
"""

import pytest

from conftest import OTHER_MNEMONIC, VALID_MNEMONIC
from lnstore.core.errors import (
    CorruptSecretError,
    InvalidMnemonicError,
    InvalidRecordError,
    WrongPasswordError,
)
from lnstore.crypto import (
    SecretVault,
    generate_mnemonic,
    hex_str,
    hex_to_bytes,
    parse_mnemonic,
    try_hex_to_bytes,
)


class TestSecretVault:
    """Tests for password-based sealing."""

    def test_roundtrip(self, fast_vault):
        """Decrypting with the same password returns the plaintext."""
        sealed = fast_vault.encrypt("A", VALID_MNEMONIC)
        assert fast_vault.decrypt("A", sealed) == VALID_MNEMONIC

    def test_ciphertext_does_not_contain_plaintext(self, fast_vault):
        sealed = fast_vault.encrypt("A", VALID_MNEMONIC)
        assert "abandon" not in sealed

    def test_fresh_salt_per_encryption(self, fast_vault):
        """Two seals of the same phrase differ."""
        assert fast_vault.encrypt("A", "x") != fast_vault.encrypt("A", "x")

    def test_wrong_password(self, fast_vault):
        """Password B on a phrase sealed with A is WrongPassword, never wrong plaintext."""
        sealed = fast_vault.encrypt("A", VALID_MNEMONIC)
        with pytest.raises(WrongPasswordError):
            fast_vault.decrypt("B", sealed)

    def test_tampered_token(self, fast_vault):
        sealed = fast_vault.encrypt("A", VALID_MNEMONIC)
        salt, token = sealed.split("$")
        tampered = salt + "$" + token[:-4] + ("AAAA" if not token.endswith("AAAA") else "BBBB")
        with pytest.raises(WrongPasswordError):
            fast_vault.decrypt("A", tampered)

    def test_garbage_ciphertext(self, fast_vault):
        """A damaged record is not reported as a wrong password."""
        with pytest.raises(InvalidRecordError):
            fast_vault.decrypt("A", "not-a-sealed-value")

    def test_malformed_salt(self, fast_vault):
        sealed = fast_vault.encrypt("A", VALID_MNEMONIC)
        _, token = sealed.split("$")
        with pytest.raises(InvalidRecordError):
            fast_vault.decrypt("A", "!!not base64!!$" + token)
        with pytest.raises(InvalidRecordError):
            fast_vault.decrypt("A", "AAAA$" + token)

    def test_missing_token(self, fast_vault):
        salt, _ = fast_vault.encrypt("A", VALID_MNEMONIC).split("$")
        with pytest.raises(InvalidRecordError):
            fast_vault.decrypt("A", salt + "$")

    def test_iterations_must_match(self):
        """Key derivation cost is part of the key."""
        sealed = SecretVault(iterations=1000).encrypt("A", "x")
        with pytest.raises(WrongPasswordError):
            SecretVault(iterations=1001).decrypt("A", sealed)

    def test_seal_rejects_invalid_mnemonic(self, fast_vault):
        with pytest.raises(InvalidMnemonicError):
            fast_vault.seal_mnemonic("A", "not a real seed phrase")

    def test_open_mnemonic(self, fast_vault):
        sealed = fast_vault.seal_mnemonic("A", OTHER_MNEMONIC)
        assert fast_vault.open_mnemonic("A", sealed) == OTHER_MNEMONIC

    def test_open_corrupt_secret(self, fast_vault):
        """A value that decrypts but is no mnemonic is an invariant violation."""
        sealed = fast_vault.encrypt("A", "hello world")
        with pytest.raises(CorruptSecretError):
            fast_vault.open_mnemonic("A", sealed)


class TestMnemonic:
    """Tests for BIP-39 validation."""

    def test_valid(self):
        assert parse_mnemonic(VALID_MNEMONIC) == VALID_MNEMONIC

    def test_normalizes_whitespace_and_case(self):
        messy = "  " + VALID_MNEMONIC.upper().replace(" ", "   ") + "\n"
        assert parse_mnemonic(messy) == VALID_MNEMONIC

    def test_bad_checksum(self):
        bad = VALID_MNEMONIC.replace("about", "abandon")
        with pytest.raises(InvalidMnemonicError):
            parse_mnemonic(bad)

    def test_empty(self):
        with pytest.raises(InvalidMnemonicError):
            parse_mnemonic("   ")

    def test_generated_is_valid(self):
        phrase = generate_mnemonic()
        assert len(phrase.split()) == 12
        assert parse_mnemonic(phrase) == phrase


class TestHexHelpers:
    def test_hex_str(self):
        assert hex_str(b"\x00\xab") == "00ab"

    def test_hex_to_bytes_accepts_prefix(self):
        assert hex_to_bytes("0x00ab") == b"\x00\xab"
        assert hex_to_bytes("00AB") == b"\x00\xab"

    def test_try_hex_to_bytes(self):
        assert try_hex_to_bytes("zz") is None
        assert try_hex_to_bytes("abc") is None
        assert try_hex_to_bytes("") == b""
