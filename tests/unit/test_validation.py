"""
Unit tests for per-row validation.
"""

from lnstore.utils.validation import (
    RowCheck,
    check_channel_id_row,
    check_hex,
    check_public_key,
    check_revocation_id,
    check_socket_addr,
)


class TestCheckHex:
    def test_keeps_valid(self):
        check = check_hex("00ff", "col")
        assert check.ok
        assert check.value == b"\x00\xff"

    def test_skips_non_hex(self):
        check = check_hex("xyz", "col")
        assert not check.ok
        assert check.value is None
        assert "col" in check.problem

    def test_skips_wrong_length(self):
        check = check_hex("00" * 31, "col", expected_bytes=32)
        assert not check.ok
        assert "expected 32" in check.problem

    def test_skips_non_string(self):
        assert not check_hex(None, "col").ok


class TestChannelIdRow:
    def test_valid_row(self):
        check = check_channel_id_row("aa" * 32, "bb" * 32)
        assert check.ok
        assert check.value == (b"\xaa" * 32, b"\xbb" * 32)

    def test_short_temporary_id(self):
        check = check_channel_id_row("aa" * 31, "bb" * 32)
        assert not check.ok
        assert "temporary_channel_id" in check.problem

    def test_bad_final_id(self):
        check = check_channel_id_row("aa" * 32, "not hex")
        assert not check.ok
        assert "channel_id" in check.problem


class TestRevocationId:
    def test_any_length(self):
        assert check_revocation_id("0102").value == b"\x01\x02"

    def test_empty_is_skipped(self):
        assert not check_revocation_id("").ok

    def test_malformed(self):
        assert not check_revocation_id("0g").ok


class TestPeerChecks:
    def test_public_key(self):
        assert check_public_key("02" + "AB" * 32).value == "02" + "ab" * 32

    def test_public_key_canonical_spelling(self):
        """Prefix and whitespace variants decode to one stored form."""
        canonical = "02" + "ab" * 32
        assert check_public_key("0x" + canonical).value == canonical
        assert check_public_key("02 " + "AB" * 32).value == canonical

    def test_public_key_bad_prefix(self):
        assert not check_public_key("04" + "ab" * 32).ok

    def test_public_key_wrong_length(self):
        assert not check_public_key("02" + "ab" * 31).ok

    def test_socket_addr(self):
        assert check_socket_addr("127.0.0.1:9735").ok
        assert check_socket_addr("node.example.com:9735").ok
        assert check_socket_addr("[::1]:9735").ok

    def test_socket_addr_invalid(self):
        assert not check_socket_addr("127.0.0.1").ok
        assert not check_socket_addr("127.0.0.1:99999").ok
        assert not check_socket_addr("host:port").ok


def test_rowcheck_constructors():
    assert RowCheck.keep(1).ok
    skipped = RowCheck.skip("bad")
    assert not skipped.ok and skipped.problem == "bad"
