"""
Configuration - commitment levels, submission options and RPC settings.

Submission options are typed structs.  ``to_params`` renders them into the
JSON config object the node expects, applying a fixed precedence:

    defaults  <  extra  <  explicitly set named fields
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union

from .errors import InputValidationError


# ============ Endpoints ============

CLUSTER_URLS: dict[str, str] = {
    "mainnet-beta": "https://api.mainnet-beta.solana.com",
    "devnet": "https://api.devnet.solana.com",
    "testnet": "https://api.testnet.solana.com",
    "localnet": "http://localhost:8899",
}

DEFAULT_RPC_URL = CLUSTER_URLS["devnet"]
DEFAULT_RPC_TIMEOUT = 30.0


def cluster_url(name: str) -> str:
    """Resolve a cluster name (``devnet``, ``mainnet-beta``...) to its URL."""
    try:
        return CLUSTER_URLS[name]
    except KeyError:
        raise InputValidationError(
            f"Unknown cluster '{name}'. Expected one of: {', '.join(CLUSTER_URLS)}"
        ) from None


def get_rpc_url() -> str:
    """Get the RPC URL from environment or default."""
    return os.environ.get("SOLWIRE_RPC_URL", DEFAULT_RPC_URL)


def get_rpc_timeout() -> float:
    """Get the RPC timeout (seconds) from environment or default."""
    return float(os.environ.get("SOLWIRE_RPC_TIMEOUT", str(DEFAULT_RPC_TIMEOUT)))


# ============ Commitment ============


class Commitment(str, Enum):
    PROCESSED = "processed"
    CONFIRMED = "confirmed"
    FINALIZED = "finalized"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, value: Union[str, "Commitment"]) -> "Commitment":
        try:
            return cls(value)
        except ValueError:
            raise InputValidationError(f"Invalid commitment: {value!r}") from None


CommitmentLike = Union[str, Commitment]


@dataclass
class ConfirmOptions:
    skip_preflight: bool = False
    commitment: Commitment = Commitment.CONFIRMED
    preflight_commitment: Commitment = Commitment.CONFIRMED
    # Carried to the node when set; never enforced locally.
    max_retries: int = 0
    min_context_slot: int = 0

    def __post_init__(self) -> None:
        self.commitment = Commitment.parse(self.commitment)
        self.preflight_commitment = Commitment.parse(self.preflight_commitment)
        if self.max_retries < 0:
            raise InputValidationError("max_retries must be >= 0")
        if self.min_context_slot < 0:
            raise InputValidationError("min_context_slot must be >= 0")


# ============ Submission options ============


def _render(value: Any) -> Any:
    return value.value if isinstance(value, Commitment) else value


def _merge(defaults: dict[str, Any], extra: dict[str, Any], named: dict[str, Any]) -> dict[str, Any]:
    params = dict(defaults)
    params.update(extra)
    params.update({k: _render(v) for k, v in named.items() if v is not None})
    return params


@dataclass
class SendOptions:
    """Overrides for ``sendTransaction``."""

    skip_preflight: Optional[bool] = None
    preflight_commitment: Optional[CommitmentLike] = None
    max_retries: Optional[int] = None
    min_context_slot: Optional[int] = None
    encoding: Optional[str] = None
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_confirm_options(cls, options: ConfirmOptions) -> "SendOptions":
        return cls(
            skip_preflight=options.skip_preflight,
            preflight_commitment=options.preflight_commitment,
            max_retries=options.max_retries or None,
            min_context_slot=options.min_context_slot or None,
        )

    def to_params(self, defaults: dict[str, Any]) -> dict[str, Any]:
        return _merge(
            defaults,
            self.extra,
            {
                "skipPreflight": self.skip_preflight,
                "preflightCommitment": self.preflight_commitment,
                "maxRetries": self.max_retries,
                "minContextSlot": self.min_context_slot,
                "encoding": self.encoding,
            },
        )


@dataclass
class SimulateOptions:
    """Overrides for ``simulateTransaction``."""

    sig_verify: Optional[bool] = None
    commitment: Optional[CommitmentLike] = None
    replace_recent_blockhash: Optional[bool] = None
    encoding: Optional[str] = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_params(self, defaults: dict[str, Any]) -> dict[str, Any]:
        return _merge(
            defaults,
            self.extra,
            {
                "sigVerify": self.sig_verify,
                "commitment": self.commitment,
                "replaceRecentBlockhash": self.replace_recent_blockhash,
                "encoding": self.encoding,
            },
        )


def merge_params(
    defaults: dict[str, Any],
    overrides: Union[SendOptions, SimulateOptions, dict[str, Any], None],
) -> dict[str, Any]:
    """Merge caller overrides over ``defaults``; overrides win key by key."""
    if overrides is None:
        return dict(defaults)
    if isinstance(overrides, (SendOptions, SimulateOptions)):
        return overrides.to_params(defaults)
    return _merge(defaults, {k: _render(v) for k, v in overrides.items()}, {})
