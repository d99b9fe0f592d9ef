"""Collaborator contracts an account identity is resolved against."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Protocol

from cloudlink.modules.account.models import StoreHandle, StoreKey

# Reports whether the device is currently attached to the given network
# (e.g. a Wi-Fi SSID). Matching is exact.
NetworkProbe = Callable[[str], bool]


class AccountStore(Protocol):
    """Secure key/value persistence for account records.

    Implementations raise ``IdentityNotFound`` for an unknown handle,
    ``AuthenticatorUnavailable`` when the backend cannot be reached,
    ``IOFailure`` for storage errors and ``OperationCanceled`` when an
    interactive unlock flow is aborted.
    """

    def get(self, handle: StoreHandle, key: StoreKey) -> Optional[str]:
        """Return the value stored under `key`, or None if the key is unset."""

        ...


@dataclass(frozen=True)
class LookupContext:
    """Explicit environment handed to operations that reach collaborators."""

    store: AccountStore
    probe: Optional[NetworkProbe] = None
