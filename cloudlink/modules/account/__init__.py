"""Account identity module for cloudlink.

Resolves, for one account, the endpoint to address, the credentials to
authenticate with and a display name, backed by an optional secure store.
"""

from cloudlink.modules.account.context import AccountStore, LookupContext, NetworkProbe
from cloudlink.modules.account.identity import AccountIdentity
from cloudlink.modules.account.models import (
    AnonymousCredentials,
    AuthScheme,
    BasicCredentials,
    BearerCredentials,
    CredentialSet,
    PreferLocal,
    StoreHandle,
    StoreKey,
    build_account_name,
    build_credentials,
    get_anonymous_credentials,
)
from cloudlink.modules.account.store import SqlAccountStore

__all__ = [
    # Identity
    "AccountIdentity",
    # Credential sets
    "AuthScheme",
    "AnonymousCredentials",
    "BasicCredentials",
    "BearerCredentials",
    "CredentialSet",
    "build_credentials",
    "get_anonymous_credentials",
    # Store and context
    "AccountStore",
    "LookupContext",
    "NetworkProbe",
    "PreferLocal",
    "SqlAccountStore",
    "StoreHandle",
    "StoreKey",
    "build_account_name",
]
