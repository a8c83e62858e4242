"""
Ed25519 Key Management for Solwire.

This module handles the keys used for:
- Account and program addresses (``PublicKey``)
- Transaction signing (``Keypair``)

Secret keys are stored in ~/.solwire/.env as SECRET_KEY (base58 of the
64-byte secret key, seed followed by public key), or read from a Solana CLI
``id.json`` keypair file.

Dependencies: cryptography (Ed25519), base58
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Optional, Union

import base58
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ed25519
from dotenv import load_dotenv, set_key

from .errors import InputValidationError

logger = logging.getLogger(__name__)

PUBLIC_KEY_LENGTH = 32
SECRET_KEY_LENGTH = 64
SIGNATURE_LENGTH = 64

# Default config directory
SOLWIRE_DIR = Path.home() / ".solwire"
SOLWIRE_ENV = SOLWIRE_DIR / ".env"


def _to_bytes(value: Union[bytes, bytearray, list[int]], what: str) -> bytes:
    try:
        return bytes(value)
    except (TypeError, ValueError) as exc:
        raise InputValidationError(f"Invalid {what} bytes: {exc}") from exc


class PublicKey:
    """A 32-byte account address, displayed in base58."""

    __slots__ = ("_raw",)

    def __init__(self, value: Union[str, bytes, bytearray, "PublicKey", list[int]]) -> None:
        if isinstance(value, PublicKey):
            raw = value._raw
        elif isinstance(value, str):
            try:
                raw = base58.b58decode(value)
            except ValueError as exc:
                raise InputValidationError(f"Invalid base58 public key: {value!r}") from exc
        elif isinstance(value, (bytes, bytearray, list)):
            raw = _to_bytes(value, "public key")
        else:
            raise InputValidationError(f"Unsupported public key type: {type(value).__name__}")

        if len(raw) != PUBLIC_KEY_LENGTH:
            raise InputValidationError(
                f"Invalid public key length: expected {PUBLIC_KEY_LENGTH} bytes, got {len(raw)}"
            )
        self._raw = raw

    @classmethod
    def default(cls) -> "PublicKey":
        """The all-zero key (System Program id)."""
        return cls(bytes(PUBLIC_KEY_LENGTH))

    def to_base58(self) -> str:
        return base58.b58encode(self._raw).decode("ascii")

    def __bytes__(self) -> bytes:
        return self._raw

    def __str__(self) -> str:
        return self.to_base58()

    def __repr__(self) -> str:
        return f"PublicKey({self.to_base58()!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PublicKey):
            return NotImplemented
        return self._raw == other._raw

    def __hash__(self) -> int:
        return hash(self._raw)

    def verify(self, message: bytes, signature: bytes) -> bool:
        """Check an Ed25519 signature made by this key over ``message``."""
        key = ed25519.Ed25519PublicKey.from_public_bytes(self._raw)
        try:
            key.verify(bytes(signature), message)
        except InvalidSignature:
            return False
        return True


class Keypair:
    """An Ed25519 signing key and its public key."""

    def __init__(self, private_key: Optional[ed25519.Ed25519PrivateKey] = None) -> None:
        self._private_key = private_key or ed25519.Ed25519PrivateKey.generate()
        self.public_key = PublicKey(
            self._private_key.public_key().public_bytes(
                encoding=serialization.Encoding.Raw,
                format=serialization.PublicFormat.Raw,
            )
        )

    @classmethod
    def generate(cls) -> "Keypair":
        return cls()

    @classmethod
    def from_seed(cls, seed: bytes) -> "Keypair":
        if len(seed) != 32:
            raise InputValidationError(f"Seed must be 32 bytes, got {len(seed)}")
        return cls(ed25519.Ed25519PrivateKey.from_private_bytes(bytes(seed)))

    @classmethod
    def from_secret_key(cls, secret_key: Union[bytes, list[int]]) -> "Keypair":
        """Load a 64-byte secret key (seed || public key)."""
        raw = _to_bytes(secret_key, "secret key")
        if len(raw) != SECRET_KEY_LENGTH:
            raise InputValidationError(
                f"Secret key must be {SECRET_KEY_LENGTH} bytes, got {len(raw)}"
            )
        keypair = cls.from_seed(raw[:32])
        if bytes(keypair.public_key) != raw[32:]:
            raise InputValidationError("Secret key does not match its embedded public key")
        return keypair

    @classmethod
    def from_base58(cls, value: str) -> "Keypair":
        try:
            raw = base58.b58decode(value.strip())
        except ValueError as exc:
            raise InputValidationError("Invalid base58 secret key") from exc
        return cls.from_secret_key(raw)

    @classmethod
    def from_json_file(cls, path: Path) -> "Keypair":
        """Load a Solana CLI keypair file (JSON array of 64 ints)."""
        with Path(path).expanduser().open("r", encoding="utf-8") as f:
            try:
                payload: Any = json.load(f)
            except json.JSONDecodeError as exc:
                raise InputValidationError(f"Keypair file {path} is not valid JSON: {exc}") from exc
        if not isinstance(payload, list):
            raise InputValidationError(f"Keypair file {path} must contain a JSON array")
        return cls.from_secret_key(payload)

    def secret_key(self) -> bytes:
        seed = self._private_key.private_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PrivateFormat.Raw,
            encryption_algorithm=serialization.NoEncryption(),
        )
        return seed + bytes(self.public_key)

    def to_base58(self) -> str:
        return base58.b58encode(self.secret_key()).decode("ascii")

    def sign(self, message: bytes) -> bytes:
        return self._private_key.sign(message)

    def __repr__(self) -> str:
        return f"Keypair({self.public_key.to_base58()!r})"


def generate_keypair() -> tuple[str, str]:
    """
    Generate a new Ed25519 keypair.

    Returns:
        Tuple of (secret_key_b58, address)
    """
    keypair = Keypair.generate()
    return keypair.to_base58(), keypair.public_key.to_base58()


def save_secret_key(secret_key: str, env_path: Optional[Path] = None) -> Path:
    """
    Write SECRET_KEY into a .env file, leaving its other entries and
    comments in place.

    The file ends up readable by its owner only.

    Returns:
        Path to the .env file
    """
    env_path = Path(env_path or SOLWIRE_ENV)
    env_path.parent.mkdir(parents=True, exist_ok=True)
    env_path.touch(mode=0o600, exist_ok=True)
    set_key(str(env_path), "SECRET_KEY", secret_key, quote_mode="never")
    if os.name != "nt":
        env_path.chmod(0o600)
    logger.debug("Stored SECRET_KEY in %s", env_path)
    return env_path


def load_keypair(env_path: Optional[Path] = None) -> Keypair:
    """
    Load the signing keypair from .env file or environment.

    Args:
        env_path: Path to .env file (default: ~/.solwire/.env)

    Raises:
        ValueError: If SECRET_KEY is not set (InputValidationError)
    """
    env_path = env_path or SOLWIRE_ENV

    if env_path.exists():
        load_dotenv(env_path, override=True)

    secret_key = os.environ.get("SECRET_KEY")
    if not secret_key:
        raise InputValidationError(
            f"SECRET_KEY not found. Run 'solwire keygen' or set SECRET_KEY in {env_path}"
        )

    return Keypair.from_base58(secret_key)
