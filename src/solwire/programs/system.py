from __future__ import annotations

import struct

from ..errors import InputValidationError
from ..keys import PublicKey
from ..transaction import AccountMeta, PubkeyLike, TransactionInstruction

SYSTEM_PROGRAM_ID = PublicKey("11111111111111111111111111111111")

# SystemInstruction enum index, encoded as u32 LE
TRANSFER = 2


def transfer(
    from_pubkey: PubkeyLike,
    to_pubkey: PubkeyLike,
    lamports: int,
    program_id: PubkeyLike = SYSTEM_PROGRAM_ID,
) -> TransactionInstruction:
    """Move ``lamports`` from a signing account to another account."""
    if lamports < 0:
        raise InputValidationError("lamports must be >= 0")
    return TransactionInstruction(
        program_id=PublicKey(program_id),
        accounts=(
            AccountMeta(PublicKey(from_pubkey), is_signer=True, is_writable=True),
            AccountMeta(PublicKey(to_pubkey), is_signer=False, is_writable=True),
        ),
        data=struct.pack("<IQ", TRANSFER, lamports),
    )
