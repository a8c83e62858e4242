"""
SPL Token and Associated Token Account instruction builders.
"""

from __future__ import annotations

from enum import IntEnum

from ..keys import PublicKey
from ..transaction import AccountMeta, PubkeyLike, TransactionInstruction
from .system import SYSTEM_PROGRAM_ID

TOKEN_PROGRAM_ID = PublicKey("TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA")
TOKEN_2022_PROGRAM_ID = PublicKey("TokenzQdBNbLqP5VEhdkAS6EPFLC1PHnBqCXEpPxuEb")
ASSOCIATED_TOKEN_PROGRAM_ID = PublicKey("ATokenGPvbdGVxr1b2hvZbsiqW5xWH25efTNsLJA8knL")
NATIVE_MINT = PublicKey("So11111111111111111111111111111111111111112")


class TokenInstruction(IntEnum):
    INITIALIZE_MINT = 0
    INITIALIZE_ACCOUNT = 1
    INITIALIZE_MULTISIG = 2
    TRANSFER = 3
    APPROVE = 4
    REVOKE = 5
    SET_AUTHORITY = 6
    MINT_TO = 7
    BURN = 8
    CLOSE_ACCOUNT = 9
    FREEZE_ACCOUNT = 10
    THAW_ACCOUNT = 11
    TRANSFER_CHECKED = 12
    APPROVE_CHECKED = 13
    MINT_TO_CHECKED = 14
    BURN_CHECKED = 15
    INITIALIZE_ACCOUNT_2 = 16
    SYNC_NATIVE = 17


def create_associated_token_account_instruction(
    payer: PubkeyLike,
    associated_token: PubkeyLike,
    owner: PubkeyLike,
    mint: PubkeyLike,
    program_id: PubkeyLike = TOKEN_PROGRAM_ID,
    associated_token_program_id: PubkeyLike = ASSOCIATED_TOKEN_PROGRAM_ID,
) -> TransactionInstruction:
    """
    Create an associated token account for ``owner`` and ``mint``.

    Args:
        payer: Funds the new account; signs
        associated_token: Address of the account to create
        owner: Wallet that will own the token account
        mint: Token mint
        program_id: Token program that owns ``mint``
        associated_token_program_id: Program executing the instruction

    Returns:
        Instruction with empty data; semantics live in the account order.
    """
    return build_associated_token_account_instruction(
        payer,
        associated_token,
        owner,
        mint,
        b"",
        program_id,
        associated_token_program_id,
    )


def build_associated_token_account_instruction(
    payer: PubkeyLike,
    associated_token: PubkeyLike,
    owner: PubkeyLike,
    mint: PubkeyLike,
    instruction_data: bytes,
    program_id: PubkeyLike,
    associated_token_program_id: PubkeyLike,
) -> TransactionInstruction:
    # Order is part of the wire contract.
    keys = (
        AccountMeta(PublicKey(payer), is_signer=True, is_writable=True),
        AccountMeta(PublicKey(associated_token), is_signer=False, is_writable=True),
        AccountMeta(PublicKey(owner), is_signer=False, is_writable=False),
        AccountMeta(PublicKey(mint), is_signer=False, is_writable=False),
        AccountMeta(SYSTEM_PROGRAM_ID, is_signer=False, is_writable=False),
        AccountMeta(PublicKey(program_id), is_signer=False, is_writable=False),
    )
    return TransactionInstruction(
        program_id=PublicKey(associated_token_program_id),
        accounts=keys,
        data=instruction_data,
    )


def create_sync_native_instruction(
    account: PubkeyLike,
    program_id: PubkeyLike = TOKEN_PROGRAM_ID,
) -> TransactionInstruction:
    """Sync a wrapped-SOL token account's amount with its lamport balance."""
    return TransactionInstruction(
        program_id=PublicKey(program_id),
        accounts=(AccountMeta(PublicKey(account), is_signer=False, is_writable=True),),
        data=bytes([TokenInstruction.SYNC_NATIVE]),
    )
