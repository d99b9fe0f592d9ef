"""Failure taxonomy for account identity operations.

Store-originated failures (``IdentityNotFound``, ``AuthenticatorUnavailable``,
``IOFailure``, ``OperationCanceled``) are raised by store implementations and
pass through the identity layer untouched.
"""

from __future__ import annotations


class IdentityError(Exception):
    """Base class for all account identity failures."""


class InvalidArgument(IdentityError, ValueError):
    """A required input was missing or empty."""


class IdentityNotFound(IdentityError):
    """The store holds no record for the requested account."""

    def __init__(self, account_name: str | None, message: str = "Account not found") -> None:
        self.account_name = account_name
        super().__init__(f"{message}: {account_name}" if account_name else message)


class AuthenticatorUnavailable(IdentityError):
    """The store backend could not be reached or could not unlock its data."""


class IOFailure(IdentityError, OSError):
    """A transport or storage error occurred while talking to the store."""


class OperationCanceled(IdentityError):
    """The user or system aborted an interactive store flow."""
