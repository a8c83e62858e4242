"""
Connection - high-level client for a Solana JSON-RPC node.

Each public method performs at most one RPC round-trip (two for
``send_transaction``/``simulate_transaction`` when a blockhash has to be
fetched) and performs no local recovery: transport errors reach the caller
unchanged.  The only error raised here is ``AccountNotFoundError``.

Transactions passed in are never mutated.  ``prepare_transaction`` returns
the signed copy that ``send_transaction`` submits.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Sequence, Union

from .config import (
    CLUSTER_URLS,
    Commitment,
    CommitmentLike,
    SendOptions,
    SimulateOptions,
    cluster_url,
    merge_params,
)
from .errors import AccountNotFoundError
from .keys import Keypair, PublicKey
from .rpc import HttpTransport, RpcTransport
from .transaction import PubkeyLike, Transaction

logger = logging.getLogger(__name__)

SEND_DEFAULTS: dict[str, Any] = {
    "encoding": "base64",
    "preflightCommitment": "confirmed",
}

SIMULATE_DEFAULTS: dict[str, Any] = {
    "encoding": "base64",
    "commitment": "confirmed",
    "sigVerify": True,
}

PROGRAM_ACCOUNTS_DATA_SIZE = 108
PROGRAM_ACCOUNTS_PAGE = 1
PROGRAM_ACCOUNTS_LIMIT = 1000

Overrides = Union[SendOptions, SimulateOptions, dict[str, Any], None]


class Connection:
    """
    Client for one RPC endpoint.

    Args:
        endpoint: RPC URL or cluster name (``devnet``, ``mainnet-beta``...);
            defaults to ``SOLWIRE_RPC_URL``
        transport: Any object with ``call(method, params)``; overrides
            ``endpoint``
        timeout: HTTP timeout in seconds for the default transport
    """

    def __init__(
        self,
        endpoint: Optional[str] = None,
        transport: Optional[RpcTransport] = None,
        timeout: Optional[float] = None,
    ) -> None:
        if transport is None:
            if endpoint in CLUSTER_URLS:
                endpoint = cluster_url(endpoint)
            transport = HttpTransport(rpc_url=endpoint, timeout=timeout)
        self.transport = transport

    def close(self) -> None:
        close = getattr(self.transport, "close", None)
        if close is not None:
            close()

    def __enter__(self) -> "Connection":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # ============ Queries ============

    def get_account_info(self, pubkey: PubkeyLike) -> dict[str, Any]:
        """
        Fetch an account, base64 encoded.

        Raises:
            AccountNotFoundError: The node returned no account
        """
        address = str(PublicKey(pubkey))
        response = self.transport.call("getAccountInfo", [address, {"encoding": "base64"}])
        value = response.get("value") if isinstance(response, dict) else None
        if not value:
            raise AccountNotFoundError(f"API Error: Account {address} not found.")
        return value

    def get_balance(self, pubkey: PubkeyLike) -> int:
        """Balance in lamports."""
        return self.transport.call("getBalance", [str(PublicKey(pubkey))])["value"]

    def get_latest_blockhash(self, commitment: Optional[CommitmentLike] = None) -> dict[str, Any]:
        """
        Fetch the latest blockhash.

        Returns:
            Dict with ``blockhash`` and ``lastValidBlockHeight``
        """
        params: list = []
        if commitment is not None:
            params.append({"commitment": Commitment.parse(commitment).value})
        return self.transport.call("getLatestBlockhash", params)["value"]

    def get_recent_blockhash(self, commitment: Optional[CommitmentLike] = None) -> dict[str, Any]:
        """Legacy name for :meth:`get_latest_blockhash`."""
        return self.get_latest_blockhash(commitment)

    def get_confirmed_transaction(self, signature: str) -> Any:
        return self.transport.call("getConfirmedTransaction", [signature])

    def get_transaction(self, signature: str) -> Any:
        # Requires solana-core 1.7+; older nodes only know getConfirmedTransaction.
        return self.transport.call("getTransaction", [signature])

    def request_airdrop(self, params: Optional[list] = None) -> str:
        """Request an airdrop; ``params`` go to the node verbatim."""
        return self.transport.call("requestAirdrop", list(params or []))

    def get_program_accounts(
        self,
        program_id: PubkeyLike,
        data_slice: Any = None,
        filters: Any = None,
    ) -> list[Any]:
        config = {
            "dataSlice": data_slice,
            "filters": filters,
            "dataSize": PROGRAM_ACCOUNTS_DATA_SIZE,
            "encoding": "base64",
            "page": PROGRAM_ACCOUNTS_PAGE,
            "limit": PROGRAM_ACCOUNTS_LIMIT,
        }
        return self.transport.call("getProgramAccounts", [str(PublicKey(program_id)), config])

    def get_minimum_balance_for_rent_exemption(self, space: int = 1024) -> int:
        return self.transport.call("getMinimumBalanceForRentExemption", [space])

    # ============ Submission ============

    def prepare_transaction(self, transaction: Transaction, signers: Sequence[Keypair]) -> Transaction:
        """
        Attach a blockhash if missing, then sign.

        The blockhash is part of the signed message, so it is fetched before
        signing.

        Returns:
            New signed Transaction; ``transaction`` is left untouched.
        """
        if transaction.recent_blockhash is None:
            blockhash = self.get_latest_blockhash()["blockhash"]
            logger.debug("Attached latest blockhash %s", blockhash)
            transaction = transaction.with_blockhash(blockhash)
        return transaction.sign(*signers)

    def send_transaction(
        self,
        transaction: Transaction,
        signers: Sequence[Keypair],
        params: Overrides = None,
    ) -> Any:
        """
        Sign, encode and submit a transaction.

        Args:
            transaction: Transaction to submit
            signers: Signing keypairs; the first pays fees unless the
                transaction names a fee payer
            params: ``SendOptions`` or a dict merged over
                ``{"encoding": "base64", "preflightCommitment": "confirmed"}``

        Returns:
            Node result, normally the transaction signature
        """
        signed = self.prepare_transaction(transaction, signers)
        return self.send_raw_transaction(_encode(signed), params)

    def send_raw_transaction(self, encoded: str, params: Overrides = None) -> Any:
        """Submit an already signed, base64 encoded transaction."""
        return self.transport.call("sendTransaction", [encoded, merge_params(SEND_DEFAULTS, params)])

    def simulate_transaction(
        self,
        transaction: Transaction,
        signers: Sequence[Keypair],
        params: Overrides = None,
    ) -> Any:
        """
        Sign, encode and simulate a transaction.

        ``params`` are merged over
        ``{"encoding": "base64", "commitment": "confirmed", "sigVerify": True}``.
        """
        signed = self.prepare_transaction(transaction, signers)
        return self.transport.call(
            "simulateTransaction",
            [_encode(signed), merge_params(SIMULATE_DEFAULTS, params)],
        )


def _encode(transaction: Transaction) -> str:
    # Partially signed multisig transactions are still submittable.
    encoded = transaction.to_base64(require_all_signatures=False)
    logger.debug("Encoded transaction: %d base64 chars", len(encoded))
    return encoded
