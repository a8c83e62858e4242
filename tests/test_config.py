"""Tests for commitment levels and submission option merging."""

from __future__ import annotations

import os
from unittest.mock import patch

import pytest

from solwire.config import (
    Commitment,
    ConfirmOptions,
    DEFAULT_RPC_URL,
    SendOptions,
    SimulateOptions,
    cluster_url,
    get_rpc_timeout,
    get_rpc_url,
    merge_params,
)
from solwire.errors import InputValidationError

SEND_DEFAULTS = {"encoding": "base64", "preflightCommitment": "confirmed"}


class TestCommitment:
    def test_values(self) -> None:
        assert [c.value for c in Commitment] == ["processed", "confirmed", "finalized"]
        assert str(Commitment.FINALIZED) == "finalized"

    def test_parse(self) -> None:
        assert Commitment.parse("processed") is Commitment.PROCESSED
        assert Commitment.parse(Commitment.CONFIRMED) is Commitment.CONFIRMED
        with pytest.raises(InputValidationError):
            Commitment.parse("recent")


class TestConfirmOptions:
    def test_defaults(self) -> None:
        opts = ConfirmOptions()
        assert opts.skip_preflight is False
        assert opts.commitment is Commitment.CONFIRMED
        assert opts.preflight_commitment is Commitment.CONFIRMED
        assert opts.max_retries == 0
        assert opts.min_context_slot == 0

    def test_mutable_and_coerced(self) -> None:
        opts = ConfirmOptions(commitment="finalized")
        assert opts.commitment is Commitment.FINALIZED
        opts.skip_preflight = True
        assert opts.skip_preflight is True

    def test_rejects_negative(self) -> None:
        with pytest.raises(InputValidationError):
            ConfirmOptions(max_retries=-1)
        with pytest.raises(InputValidationError):
            ConfirmOptions(min_context_slot=-5)


class TestMergeParams:
    """Overrides win key by key over defaults."""

    def test_dict_override(self) -> None:
        params = merge_params(SEND_DEFAULTS, {"preflightCommitment": "processed"})
        assert params == {"encoding": "base64", "preflightCommitment": "processed"}

    def test_dict_new_key(self) -> None:
        params = merge_params(SEND_DEFAULTS, {"skipPreflight": True})
        assert params == {**SEND_DEFAULTS, "skipPreflight": True}

    def test_none_keeps_defaults(self) -> None:
        params = merge_params(SEND_DEFAULTS, None)
        assert params == SEND_DEFAULTS
        assert params is not SEND_DEFAULTS

    def test_commitment_values_rendered(self) -> None:
        params = merge_params(SEND_DEFAULTS, {"preflightCommitment": Commitment.FINALIZED})
        assert params["preflightCommitment"] == "finalized"

    def test_send_options(self) -> None:
        opts = SendOptions(preflight_commitment=Commitment.PROCESSED, max_retries=3)
        assert merge_params(SEND_DEFAULTS, opts) == {
            "encoding": "base64",
            "preflightCommitment": "processed",
            "maxRetries": 3,
        }

    def test_named_fields_beat_extra(self) -> None:
        opts = SendOptions(
            preflight_commitment="finalized",
            extra={"preflightCommitment": "processed", "custom": 1},
        )
        params = opts.to_params(SEND_DEFAULTS)
        assert params["preflightCommitment"] == "finalized"
        assert params["custom"] == 1

    def test_extra_beats_defaults(self) -> None:
        params = SendOptions(extra={"encoding": "base58"}).to_params(SEND_DEFAULTS)
        assert params["encoding"] == "base58"

    def test_simulate_options(self) -> None:
        defaults = {"encoding": "base64", "commitment": "confirmed", "sigVerify": True}
        opts = SimulateOptions(sig_verify=False, replace_recent_blockhash=True)
        assert opts.to_params(defaults) == {
            "encoding": "base64",
            "commitment": "confirmed",
            "sigVerify": False,
            "replaceRecentBlockhash": True,
        }

    def test_from_confirm_options(self) -> None:
        opts = SendOptions.from_confirm_options(
            ConfirmOptions(skip_preflight=True, preflight_commitment="processed")
        )
        assert opts.to_params(SEND_DEFAULTS) == {
            "encoding": "base64",
            "preflightCommitment": "processed",
            "skipPreflight": True,
        }


class TestSettings:
    def test_cluster_url(self) -> None:
        assert cluster_url("localnet") == "http://localhost:8899"
        with pytest.raises(InputValidationError):
            cluster_url("moonnet")

    def test_rpc_url_from_env(self) -> None:
        with patch.dict(os.environ, {"SOLWIRE_RPC_URL": "http://node.test"}):
            assert get_rpc_url() == "http://node.test"
        env = {k: v for k, v in os.environ.items() if k != "SOLWIRE_RPC_URL"}
        with patch.dict(os.environ, env, clear=True):
            assert get_rpc_url() == DEFAULT_RPC_URL

    def test_timeout_from_env(self) -> None:
        with patch.dict(os.environ, {"SOLWIRE_RPC_TIMEOUT": "2.5"}):
            assert get_rpc_timeout() == 2.5
