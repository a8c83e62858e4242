"""
Solwire error taxonomy.

Every error raised by the SDK derives from ``SolwireError``.  The
``exit_code`` attribute is what the CLI exits with when the error reaches it.
"""

from __future__ import annotations

from typing import Any, Optional


class SolwireError(RuntimeError):
    exit_code: int = 1


class AccountNotFoundError(SolwireError):
    exit_code = 2


class MethodNotFoundError(SolwireError):
    exit_code = 3


class InvalidIdResponseError(SolwireError):
    exit_code = 4


class GenericRpcError(SolwireError):
    """Node or transport failure that has no more specific category."""

    exit_code = 5

    def __init__(
        self,
        message: str,
        code: Optional[int] = None,
        data: Any = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.data = data


class InputValidationError(SolwireError, ValueError):
    exit_code = 6


__all__ = [
    "SolwireError",
    "AccountNotFoundError",
    "MethodNotFoundError",
    "InvalidIdResponseError",
    "GenericRpcError",
    "InputValidationError",
]
