"""
CLI integration tests using Click's test runner.

Tests verify that the CLI commands work end-to-end via the Click
CliRunner, without requiring network access.  A Connection backed by an
in-memory transport is injected through the context object.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Optional
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from solwire.cli import cli
from solwire.connection import Connection
from solwire.errors import AccountNotFoundError, MethodNotFoundError
from solwire.keys import Keypair, PublicKey, generate_keypair, save_secret_key
from solwire.transaction import Transaction

BLOCKHASH = str(PublicKey(bytes([7] * 32)))
RECIPIENT = str(PublicKey(bytes([2] * 32)))


class RecordingTransport:
    def __init__(self, responses: dict[str, Any]) -> None:
        self.responses = responses
        self.calls: list[tuple[str, Any]] = []

    def call(self, method: str, params: Optional[list] = None) -> Any:
        self.calls.append((method, params))
        response = self.responses[method]
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture()
def solwire_home(tmp_path: Path) -> Path:
    """Create a temporary ~/.solwire directory."""
    home = tmp_path / ".solwire"
    home.mkdir()
    return home


@pytest.fixture()
def wallet(solwire_home: Path) -> tuple[str, str]:
    """Generate and save a wallet to the temp solwire home."""
    secret_key, address = generate_keypair()
    save_secret_key(secret_key, solwire_home / ".env")
    return secret_key, address


@pytest.fixture()
def transport() -> RecordingTransport:
    return RecordingTransport(
        {
            "getBalance": {"context": {"slot": 1}, "value": 1_500},
            "getAccountInfo": {"context": {"slot": 1}, "value": {"lamports": 3, "data": ["", "base64"]}},
            "getLatestBlockhash": {
                "context": {"slot": 1},
                "value": {"blockhash": BLOCKHASH, "lastValidBlockHeight": 77},
            },
            "getMinimumBalanceForRentExemption": 2_039_280,
            "getTransaction": {"slot": 12},
            "requestAirdrop": "airdropSig",
            "sendTransaction": "txSig",
        }
    )


def _invoke(runner: CliRunner, transport: RecordingTransport, args: list[str]):
    return runner.invoke(
        cli,
        args,
        obj={"connection_factory": lambda url: Connection(transport=transport)},
    )


class TestVersion:
    def test_version(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.3.0" in result.output


class TestIdentity:
    """keygen / whoami."""

    def test_keygen_then_whoami(self, runner: CliRunner, solwire_home: Path) -> None:
        env_path = solwire_home / ".env"
        with patch("solwire.keys.SOLWIRE_ENV", env_path):
            with patch.dict(os.environ, {"SECRET_KEY": ""}):
                result = runner.invoke(cli, ["keygen"])
                assert result.exit_code == 0
                assert "Keypair created" in result.output
                assert env_path.exists()

                result = runner.invoke(cli, ["whoami"])
                assert result.exit_code == 0
                assert "Address:" in result.output

                again = runner.invoke(cli, ["keygen"])
                assert again.exit_code != 0
                assert "already exists" in again.output

    def test_whoami_with_wallet(self, runner: CliRunner, wallet: tuple[str, str], solwire_home: Path) -> None:
        with patch("solwire.keys.SOLWIRE_ENV", solwire_home / ".env"):
            with patch.dict(os.environ, {"SECRET_KEY": wallet[0]}):
                result = runner.invoke(cli, ["whoami"])
                assert result.exit_code == 0
                assert wallet[1] in result.output

    def test_whoami_without_wallet(self, runner: CliRunner) -> None:
        with patch.dict(os.environ, {"SECRET_KEY": ""}):
            with patch("solwire.keys.SOLWIRE_ENV", Path("/nonexistent/.env")):
                result = runner.invoke(cli, ["whoami"])
                assert result.exit_code != 0
                assert "No wallet found" in result.output


class TestQueries:
    def test_balance(self, runner: CliRunner, transport: RecordingTransport) -> None:
        result = _invoke(runner, transport, ["balance", RECIPIENT])
        assert result.exit_code == 0
        assert f"{RECIPIENT}: 1500 lamports" in result.output
        assert transport.calls == [("getBalance", [RECIPIENT])]

    def test_balance_invalid_address(self, runner: CliRunner, transport: RecordingTransport) -> None:
        result = _invoke(runner, transport, ["balance", "xyz"])
        assert result.exit_code == 6
        assert "ERROR" in result.output

    def test_account(self, runner: CliRunner, transport: RecordingTransport) -> None:
        result = _invoke(runner, transport, ["account", RECIPIENT])
        assert result.exit_code == 0
        assert json.loads(result.output)["lamports"] == 3

    def test_account_not_found(self, runner: CliRunner, transport: RecordingTransport) -> None:
        transport.responses["getAccountInfo"] = {"context": {"slot": 1}, "value": None}
        result = _invoke(runner, transport, ["account", RECIPIENT])
        assert result.exit_code == AccountNotFoundError.exit_code
        assert "not found" in result.output

    def test_blockhash(self, runner: CliRunner, transport: RecordingTransport) -> None:
        result = _invoke(runner, transport, ["blockhash", "--commitment", "finalized"])
        assert result.exit_code == 0
        assert BLOCKHASH in result.output
        assert transport.calls == [("getLatestBlockhash", [{"commitment": "finalized"}])]

    def test_rent(self, runner: CliRunner, transport: RecordingTransport) -> None:
        result = _invoke(runner, transport, ["rent", "--space", "165"])
        assert result.exit_code == 0
        assert "2039280 lamports" in result.output
        assert transport.calls == [("getMinimumBalanceForRentExemption", [165])]

    def test_tx(self, runner: CliRunner, transport: RecordingTransport) -> None:
        result = _invoke(runner, transport, ["tx", "someSig"])
        assert result.exit_code == 0
        assert json.loads(result.output) == {"slot": 12}

    def test_rpc_error_exit_code(self, runner: CliRunner, transport: RecordingTransport) -> None:
        transport.responses["getTransaction"] = MethodNotFoundError("API Error: Method getTransaction not found.")
        result = _invoke(runner, transport, ["tx", "someSig"])
        assert result.exit_code == MethodNotFoundError.exit_code


class TestWrites:
    def test_airdrop(self, runner: CliRunner, transport: RecordingTransport) -> None:
        result = _invoke(runner, transport, ["airdrop", RECIPIENT, "--lamports", "5000"])
        assert result.exit_code == 0
        assert "airdropSig" in result.output
        assert transport.calls == [("requestAirdrop", [RECIPIENT, 5000])]

    def test_transfer_with_keypair_file(
        self, runner: CliRunner, transport: RecordingTransport, tmp_path: Path
    ) -> None:
        keypair = Keypair.generate()
        keyfile = tmp_path / "id.json"
        keyfile.write_text(json.dumps(list(keypair.secret_key())), encoding="utf-8")

        result = _invoke(
            runner,
            transport,
            ["transfer", RECIPIENT, "1234", "--keypair", str(keyfile), "--skip-preflight"],
        )

        assert result.exit_code == 0, result.output
        assert "txSig" in result.output
        assert [m for m, _ in transport.calls] == ["getLatestBlockhash", "sendTransaction"]

        encoded, params = transport.calls[1][1]
        assert params == {"encoding": "base64", "preflightCommitment": "confirmed", "skipPreflight": True}
        submitted = Transaction.from_base64(encoded)
        assert submitted.fee_payer == keypair.public_key
        assert submitted.recent_blockhash == BLOCKHASH
        assert submitted.verify_signatures()

    def test_transfer_with_malformed_keypair_file(
        self, runner: CliRunner, transport: RecordingTransport, tmp_path: Path
    ) -> None:
        keyfile = tmp_path / "id.json"
        keyfile.write_text("not json", encoding="utf-8")

        result = _invoke(runner, transport, ["transfer", RECIPIENT, "5", "--keypair", str(keyfile)])

        assert result.exit_code == 6
        assert "ERROR" in result.output
        assert transport.calls == []
