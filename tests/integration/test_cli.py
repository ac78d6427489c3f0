"""
Integration tests for the lnstore CLI.
"""

import pytest
from click.testing import CliRunner

from conftest import PUBKEY_A, VALID_MNEMONIC
from lnstore.cli.main import cli


@pytest.fixture
def run(tmp_path, monkeypatch):
    monkeypatch.setenv("LNSTORE_PBKDF2_ITERATIONS", "1000")
    runner = CliRunner()
    data_dir = tmp_path / "node"

    def invoke(*args, input=None):
        return runner.invoke(cli, ["--data-dir", str(data_dir), *args], input=input)

    invoke.data_dir = data_dir
    return invoke


class TestSeedCommands:
    def test_init_then_unlock(self, run):
        result = run("init", "--mnemonic", VALID_MNEMONIC, "--password", "pw")
        assert result.exit_code == 0, result.output
        assert "Node initialized" in result.output

        result = run("unlock", "--password", "pw")
        assert result.exit_code == 0, result.output
        assert "12-word" in result.output

    def test_init_twice_fails(self, run):
        run("init", "--password", "pw")
        result = run("init", "--password", "pw")
        assert result.exit_code != 0
        assert "already been initialized" in result.output

    def test_unlock_wrong_password(self, run):
        run("init", "--mnemonic", VALID_MNEMONIC, "--password", "pw")
        result = run("unlock", "--password", "nope")
        assert result.exit_code != 0
        assert "incorrect" in result.output


class TestConfigCommands:
    def test_set_get_and_mirror(self, run):
        result = run("config", "set", "indexer_url", "127.0.0.1:50001")
        assert result.exit_code == 0, result.output

        result = run("config", "get", "indexer_url")
        assert result.exit_code == 0
        assert "127.0.0.1:50001" in result.output
        assert (run.data_dir / "indexer_url").read_text() == "127.0.0.1:50001"

    def test_get_unset(self, run):
        result = run("config", "get", "proxy_endpoint")
        assert result.exit_code != 0
        assert "not set" in result.output

    def test_migrate(self, run):
        run.data_dir.mkdir(parents=True)
        (run.data_dir / "bitcoin_network").write_text("regtest\n")

        result = run("migrate")
        assert result.exit_code == 0, result.output
        assert "bitcoin_network" in result.output
        assert (run.data_dir / "bitcoin_network").read_text() == "regtest"


class TestPeerAndTokenCommands:
    def test_peers(self, run):
        result = run("peers", "list")
        assert "No peers found" in result.output

        result = run("peers", "remove", PUBKEY_A)
        assert "not found" in result.output

    def test_tokens(self, run):
        assert run("tokens", "revoke", "DEADBEEF").exit_code == 0
        assert run("tokens", "revoke", "deadbeef").exit_code == 0
        result = run("tokens", "list")
        assert result.output.count("deadbeef") == 1

    def test_revoke_rejects_non_hex(self, run):
        result = run("tokens", "revoke", "xyz")
        assert result.exit_code != 0
