"""
Transaction Builder - compile, sign, and serialize Solana transactions.

Transactions are immutable values.  Every operation that changes a
transaction (adding instructions, attaching a blockhash, signing) returns a
new ``Transaction``; changing the message drops existing signatures since
they no longer cover it.

Wire format (legacy message):

    compact_u16(n_sigs) || sig[64] * n_sigs || message
    message = header[3] || compact_u16(n_keys) || key[32] * n_keys
              || blockhash[32] || compact_u16(n_ix) || instruction *

Within each signer/writable group, account keys keep first-seen order;
solders and solana-py sort them by pubkey instead, so byte layouts can
differ from theirs while headers and signatures stay valid.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any, Iterable, Optional, Union

import base58

from .errors import InputValidationError
from .keys import PUBLIC_KEY_LENGTH, SIGNATURE_LENGTH, Keypair, PublicKey
from .utils import b64decode, b64encode, decode_length, encode_length

PubkeyLike = Union[PublicKey, str, bytes]

BLOCKHASH_LENGTH = 32
MAX_ACCOUNT_KEYS = 256
EMPTY_SIGNATURE = bytes(SIGNATURE_LENGTH)


@dataclass(frozen=True)
class AccountMeta:
    pubkey: PublicKey
    is_signer: bool
    is_writable: bool

    def __post_init__(self) -> None:
        object.__setattr__(self, "pubkey", PublicKey(self.pubkey))


@dataclass(frozen=True)
class TransactionInstruction:
    program_id: PublicKey
    accounts: tuple[AccountMeta, ...] = ()
    data: bytes = b""

    def __post_init__(self) -> None:
        object.__setattr__(self, "program_id", PublicKey(self.program_id))
        object.__setattr__(self, "accounts", tuple(self.accounts))
        object.__setattr__(self, "data", bytes(self.data))


# ============ Message ============


@dataclass(frozen=True)
class MessageHeader:
    num_required_signatures: int
    num_readonly_signed_accounts: int
    num_readonly_unsigned_accounts: int


@dataclass(frozen=True)
class CompiledInstruction:
    program_id_index: int
    accounts: tuple[int, ...]
    data: bytes


@dataclass(frozen=True)
class Message:
    header: MessageHeader
    account_keys: tuple[PublicKey, ...]
    recent_blockhash: str
    instructions: tuple[CompiledInstruction, ...]

    def is_signer(self, index: int) -> bool:
        return index < self.header.num_required_signatures

    def is_writable(self, index: int) -> bool:
        header = self.header
        if index < header.num_required_signatures:
            return index < header.num_required_signatures - header.num_readonly_signed_accounts
        return index < len(self.account_keys) - header.num_readonly_unsigned_accounts

    def signer_keys(self) -> tuple[PublicKey, ...]:
        return self.account_keys[: self.header.num_required_signatures]

    def serialize(self) -> bytes:
        parts = [
            bytes([
                self.header.num_required_signatures,
                self.header.num_readonly_signed_accounts,
                self.header.num_readonly_unsigned_accounts,
            ]),
            encode_length(len(self.account_keys)),
        ]
        parts.extend(bytes(key) for key in self.account_keys)
        parts.append(_blockhash_bytes(self.recent_blockhash))

        parts.append(encode_length(len(self.instructions)))
        for ix in self.instructions:
            parts.append(bytes([ix.program_id_index]))
            parts.append(encode_length(len(ix.accounts)))
            parts.append(bytes(ix.accounts))
            parts.append(encode_length(len(ix.data)))
            parts.append(ix.data)

        return b"".join(parts)

    @classmethod
    def from_bytes(cls, data: bytes) -> "Message":
        reader = _Reader(data)
        header = MessageHeader(*reader.take(3))

        n_keys = reader.length()
        keys = tuple(PublicKey(reader.take(PUBLIC_KEY_LENGTH)) for _ in range(n_keys))
        blockhash = base58.b58encode(reader.take(BLOCKHASH_LENGTH)).decode("ascii")

        instructions = []
        for _ in range(reader.length()):
            program_id_index = reader.take(1)[0]
            accounts = tuple(reader.take(reader.length()))
            ix_data = reader.take(reader.length())
            if program_id_index >= n_keys or any(i >= n_keys for i in accounts):
                raise InputValidationError("Instruction references an unknown account index")
            instructions.append(CompiledInstruction(program_id_index, accounts, ix_data))

        if not reader.done():
            raise InputValidationError("Trailing bytes after transaction message")
        if header.num_required_signatures > n_keys:
            raise InputValidationError("Message header requires more signers than account keys")
        if header.num_readonly_signed_accounts > header.num_required_signatures:
            raise InputValidationError("Message header has more readonly signers than signers")
        if header.num_readonly_unsigned_accounts > n_keys - header.num_required_signatures:
            raise InputValidationError("Message header has more readonly non-signers than non-signer keys")

        return cls(header, keys, blockhash, tuple(instructions))

    def decompile(self) -> tuple[TransactionInstruction, ...]:
        """Rebuild instructions, taking signer/writable flags from the header."""
        return tuple(
            TransactionInstruction(
                program_id=self.account_keys[ix.program_id_index],
                accounts=tuple(
                    AccountMeta(self.account_keys[i], self.is_signer(i), self.is_writable(i))
                    for i in ix.accounts
                ),
                data=ix.data,
            )
            for ix in self.instructions
        )


class _Reader:
    def __init__(self, data: bytes) -> None:
        self.data = data
        self.offset = 0

    def take(self, n: int) -> bytes:
        end = self.offset + n
        if end > len(self.data):
            raise InputValidationError("Truncated transaction bytes")
        chunk = self.data[self.offset:end]
        self.offset = end
        return chunk

    def length(self) -> int:
        value, self.offset = decode_length(self.data, self.offset)
        return value

    def done(self) -> bool:
        return self.offset == len(self.data)


def _blockhash_bytes(blockhash: str) -> bytes:
    try:
        raw = base58.b58decode(blockhash)
    except ValueError as exc:
        raise InputValidationError(f"Invalid base58 blockhash: {blockhash!r}") from exc
    if len(raw) != BLOCKHASH_LENGTH:
        raise InputValidationError(
            f"Invalid blockhash length: expected {BLOCKHASH_LENGTH} bytes, got {len(raw)}"
        )
    return raw


# ============ Transaction ============


@dataclass(frozen=True)
class Transaction:
    instructions: tuple[TransactionInstruction, ...] = ()
    recent_blockhash: Optional[str] = None
    fee_payer: Optional[PublicKey] = None
    # (signer, signature) pairs in canonical signer order
    signatures: tuple[tuple[PublicKey, bytes], ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "instructions", tuple(self.instructions))
        if self.fee_payer is not None:
            object.__setattr__(self, "fee_payer", PublicKey(self.fee_payer))

    # ---- building ----

    def _evolve(self, **changes: Any) -> "Transaction":
        changes.setdefault("signatures", ())
        return dataclasses.replace(self, **changes)

    def add(self, *instructions: TransactionInstruction) -> "Transaction":
        return self._evolve(instructions=self.instructions + tuple(instructions))

    def with_blockhash(self, blockhash: str) -> "Transaction":
        _blockhash_bytes(blockhash)
        return self._evolve(recent_blockhash=blockhash)

    def with_fee_payer(self, fee_payer: PubkeyLike) -> "Transaction":
        return self._evolve(fee_payer=PublicKey(fee_payer))

    # ---- compiling ----

    def compile_message(self) -> Message:
        if self.recent_blockhash is None:
            raise InputValidationError("Transaction recent_blockhash required")
        if self.fee_payer is None:
            raise InputValidationError("Transaction fee payer required")

        # pubkey -> [is_signer, is_writable], first-seen order
        flags: dict[PublicKey, list[bool]] = {self.fee_payer: [True, True]}
        for ix in self.instructions:
            for meta in ix.accounts:
                entry = flags.setdefault(meta.pubkey, [False, False])
                entry[0] = entry[0] or meta.is_signer
                entry[1] = entry[1] or meta.is_writable
            flags.setdefault(ix.program_id, [False, False])

        if len(flags) > MAX_ACCOUNT_KEYS:
            raise InputValidationError(f"Too many account keys: {len(flags)} > {MAX_ACCOUNT_KEYS}")

        ordered = sorted(flags.items(), key=lambda item: (not item[1][0], not item[1][1]))
        keys = tuple(key for key, _ in ordered)
        index = {key: i for i, key in enumerate(keys)}

        header = MessageHeader(
            num_required_signatures=sum(1 for _, (s, _w) in ordered if s),
            num_readonly_signed_accounts=sum(1 for _, (s, w) in ordered if s and not w),
            num_readonly_unsigned_accounts=sum(1 for _, (s, w) in ordered if not s and not w),
        )
        compiled = tuple(
            CompiledInstruction(
                program_id_index=index[ix.program_id],
                accounts=tuple(index[meta.pubkey] for meta in ix.accounts),
                data=ix.data,
            )
            for ix in self.instructions
        )
        return Message(header, keys, self.recent_blockhash, compiled)

    def serialize_message(self) -> bytes:
        return self.compile_message().serialize()

    # ---- signing ----

    def sign(self, *signers: Keypair) -> "Transaction":
        """Return a copy signed by exactly ``signers``.

        The first signer becomes the fee payer unless one is already set.
        """
        if not signers:
            raise InputValidationError("No signers")
        unique = _dedupe(signers)
        tx = self if self.fee_payer is not None else self._evolve(fee_payer=unique[0].public_key)
        return tx._evolve()._apply_signers(unique)

    def partial_sign(self, *signers: Keypair) -> "Transaction":
        """Return a copy with ``signers`` added to the existing signatures."""
        if not signers:
            raise InputValidationError("No signers")
        unique = _dedupe(signers)
        tx = self if self.fee_payer is not None else self._evolve(fee_payer=unique[0].public_key)
        return tx._apply_signers(unique)

    def _apply_signers(self, signers: Iterable[Keypair]) -> "Transaction":
        message = self.compile_message()
        data = message.serialize()
        signer_keys = message.signer_keys()
        collected = dict(self.signatures)
        for keypair in signers:
            if keypair.public_key not in signer_keys:
                raise InputValidationError(f"Unknown signer: {keypair.public_key}")
            collected[keypair.public_key] = keypair.sign(data)
        return self._with_signatures(signer_keys, collected)

    def add_signature(self, pubkey: PubkeyLike, signature: bytes) -> "Transaction":
        """Attach an externally produced signature for ``pubkey``."""
        pubkey = PublicKey(pubkey)
        if len(signature) != SIGNATURE_LENGTH:
            raise InputValidationError(
                f"Signature must be {SIGNATURE_LENGTH} bytes, got {len(signature)}"
            )
        signer_keys = self.compile_message().signer_keys()
        if pubkey not in signer_keys:
            raise InputValidationError(f"Unknown signer: {pubkey}")
        collected = dict(self.signatures)
        collected[pubkey] = bytes(signature)
        return self._with_signatures(signer_keys, collected)

    def _with_signatures(
        self,
        signer_keys: tuple[PublicKey, ...],
        collected: dict[PublicKey, bytes],
    ) -> "Transaction":
        pairs = tuple((key, collected[key]) for key in signer_keys if key in collected)
        return dataclasses.replace(self, signatures=pairs)

    @property
    def signature(self) -> Optional[str]:
        """The fee payer's signature in base58 (the transaction id), if signed."""
        if self.fee_payer is None:
            return None
        for key, sig in self.signatures:
            if key == self.fee_payer:
                return base58.b58encode(sig).decode("ascii")
        return None

    def verify_signatures(self, require_all: bool = True) -> bool:
        message = self.compile_message()
        data = message.serialize()
        collected = dict(self.signatures)
        for key in message.signer_keys():
            sig = collected.get(key)
            if sig is None:
                if require_all:
                    return False
                continue
            if not key.verify(data, sig):
                return False
        return True

    # ---- wire format ----

    def serialize(self, require_all_signatures: bool = True) -> bytes:
        message = self.compile_message()
        collected = dict(self.signatures)
        parts = [encode_length(message.header.num_required_signatures)]
        for key in message.signer_keys():
            sig = collected.get(key)
            if sig is None:
                if require_all_signatures:
                    raise InputValidationError(f"Missing signature for {key}")
                sig = EMPTY_SIGNATURE
            parts.append(sig)
        parts.append(message.serialize())
        return b"".join(parts)

    def to_base64(self, require_all_signatures: bool = True) -> str:
        return b64encode(self.serialize(require_all_signatures=require_all_signatures))

    @classmethod
    def from_bytes(cls, raw: bytes) -> "Transaction":
        n_sigs, offset = decode_length(raw, 0)
        end = offset + n_sigs * SIGNATURE_LENGTH
        if end > len(raw):
            raise InputValidationError("Truncated transaction signatures")
        sigs = [raw[offset + i * SIGNATURE_LENGTH: offset + (i + 1) * SIGNATURE_LENGTH] for i in range(n_sigs)]

        message = Message.from_bytes(raw[end:])
        if n_sigs != message.header.num_required_signatures:
            raise InputValidationError(
                f"Signature count {n_sigs} does not match header "
                f"({message.header.num_required_signatures})"
            )

        signer_keys = message.signer_keys()
        return cls(
            instructions=message.decompile(),
            recent_blockhash=message.recent_blockhash,
            fee_payer=message.account_keys[0] if message.account_keys else None,
            signatures=tuple(
                (key, sig) for key, sig in zip(signer_keys, sigs) if sig != EMPTY_SIGNATURE
            ),
        )

    @classmethod
    def from_base64(cls, value: str) -> "Transaction":
        return cls.from_bytes(b64decode(value))


def _dedupe(signers: Iterable[Keypair]) -> list[Keypair]:
    seen: set[PublicKey] = set()
    unique = []
    for keypair in signers:
        if keypair.public_key not in seen:
            seen.add(keypair.public_key)
            unique.append(keypair)
    return unique
