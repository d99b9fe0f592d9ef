"""Account identity — endpoint, credentials and display name for one account."""

from __future__ import annotations

from typing import Optional

from cloudlink.errors import IdentityNotFound, InvalidArgument, IOFailure
from cloudlink.logging_config import get_logger
from cloudlink.modules.account.context import LookupContext, NetworkProbe
from cloudlink.modules.account.models import (
    AuthScheme,
    CredentialSet,
    PreferLocal,
    StoreHandle,
    StoreKey,
    build_account_name,
    build_credentials,
    get_anonymous_credentials,
    username_from_account_name,
)

logger = get_logger(__name__)


def _require(value: object, name: str) -> None:
    if value is None:
        raise InvalidArgument(f"Parameter '{name}' cannot be null")


def _require_endpoint(value: Optional[str], name: str) -> None:
    _require(value, name)
    if not isinstance(value, str) or not value.strip():
        raise InvalidArgument(f"Parameter '{name}' cannot be empty")


def _clamp_prefer_local(
    flag: PreferLocal, local_endpoint: Optional[str], local_network_id: Optional[str]
) -> PreferLocal:
    if flag is PreferLocal.TRUE and (local_endpoint is None or local_network_id is None):
        return PreferLocal.FALSE
    return flag


class AccountIdentity:
    """One account on a remote service.

    Identities are built either directly from an endpoint and a credential
    set (not yet persisted), or from a store handle with credentials left
    unloaded until :meth:`load_credentials` is called. Every field except
    the credentials is fixed at construction.
    """

    def __init__(
        self,
        base_endpoint: str,
        credentials: Optional[CredentialSet] = None,
        local_endpoint: Optional[str] = None,
        local_network_id: Optional[str] = None,
        *,
        display_name: Optional[str] = None,
    ) -> None:
        """Create an identity that is not yet persisted.

        Args:
            base_endpoint: URI of the remote service.
            credentials: Credentials to authenticate with. None means anonymous.
            local_endpoint: Alternate URI used while attached to `local_network_id`.
            local_network_id: Identifier (e.g. SSID) of the trigger network.
            display_name: Optional human-readable name override.

        Raises:
            InvalidArgument: If `base_endpoint` is null or empty.
        """
        _require_endpoint(base_endpoint, "base_endpoint")

        local_endpoint = local_endpoint or None
        local_network_id = local_network_id or None
        credentials = credentials if credentials is not None else get_anonymous_credentials()
        username = credentials.username

        self._initialize(
            base_endpoint=base_endpoint,
            local_endpoint=local_endpoint,
            local_network_id=local_network_id,
            prefer_local=PreferLocal.TRUE,
            credentials=credentials,
            display_name=display_name or None,
            store_handle=None,
            account_name=build_account_name(base_endpoint, username) if username else None,
        )

    def _initialize(
        self,
        *,
        base_endpoint: str,
        local_endpoint: Optional[str],
        local_network_id: Optional[str],
        prefer_local: PreferLocal,
        credentials: Optional[CredentialSet],
        display_name: Optional[str],
        store_handle: Optional[StoreHandle],
        account_name: Optional[str],
    ) -> None:
        self._base_endpoint = base_endpoint
        self._local_endpoint = local_endpoint
        self._local_network_id = local_network_id
        self._prefer_local = _clamp_prefer_local(prefer_local, local_endpoint, local_network_id)
        self._credentials = credentials
        self._display_name = display_name
        self._store_handle = store_handle
        self._account_name = account_name

    @classmethod
    def from_store(cls, handle: StoreHandle, context: LookupContext) -> AccountIdentity:
        """Look up a previously persisted account.

        Credentials are not read; call :meth:`load_credentials` for that.

        Raises:
            InvalidArgument: If `handle` or `context` is null.
            IdentityNotFound: If the store has no base endpoint for `handle`.
        """
        _require(handle, "handle")
        _require(context, "context")

        store = context.store
        base_endpoint = store.get(handle, StoreKey.BASE_URL)
        if not base_endpoint or not base_endpoint.strip():
            raise IdentityNotFound(handle.name)

        local_endpoint = store.get(handle, StoreKey.LOCAL_BASE_URL) or None
        local_network_id = store.get(handle, StoreKey.LOCAL_NETWORK_ID) or None
        prefer_local = PreferLocal.from_stored(store.get(handle, StoreKey.USE_LOCAL_URL))
        display_name = store.get(handle, StoreKey.DISPLAY_NAME) or None

        identity = cls(base_endpoint, local_endpoint=local_endpoint, local_network_id=local_network_id)
        identity._initialize(
            base_endpoint=base_endpoint,
            local_endpoint=local_endpoint,
            local_network_id=local_network_id,
            prefer_local=prefer_local,
            credentials=None,
            display_name=display_name,
            store_handle=handle,
            account_name=handle.name,
        )

        logger.debug(
            "identity_loaded_from_store",
            account_name=handle.name,
            has_local_endpoint=local_endpoint is not None,
            prefer_local=identity._prefer_local.value,
        )
        return identity

    # ------------------------------------------------------------------
    # Credentials
    # ------------------------------------------------------------------

    def load_credentials(self, context: LookupContext) -> CredentialSet:
        """Fetch this account's credentials from the store and keep them.

        Identities that were not read from a store already hold their
        credentials, which are returned without touching the store. Calling
        again re-fetches. On failure the identity keeps its previous state.

        Raises:
            InvalidArgument: If `context` is null.
            IdentityNotFound: If the store entry vanished or holds no
                credential material.
            AuthenticatorUnavailable: If the store backend is unreachable.
            IOFailure: On storage errors or malformed stored credentials.
            OperationCanceled: If the store's unlock flow was aborted.
        """
        _require(context, "context")

        if self._store_handle is None:
            return self._credentials

        store = context.store
        handle = self._store_handle
        stored_scheme = store.get(handle, StoreKey.AUTH_SCHEME) or AuthScheme.BASIC
        try:
            scheme = AuthScheme(stored_scheme)
        except ValueError as exc:
            raise IOFailure(
                f"Stored credentials for {handle.name} are malformed: unknown scheme {stored_scheme!r}"
            ) from exc
        username = store.get(handle, StoreKey.USERNAME) or username_from_account_name(
            handle.name, self._base_endpoint
        )

        if scheme is AuthScheme.ANONYMOUS:
            credentials: CredentialSet = get_anonymous_credentials()
        else:
            secret = store.get(handle, StoreKey.CREDENTIAL_MATERIAL)
            if secret is None:
                raise IdentityNotFound(handle.name, "No credentials stored")
            try:
                credentials = build_credentials(scheme, username, secret)
            except InvalidArgument as exc:
                raise IOFailure(f"Stored credentials for {handle.name} are malformed") from exc

        self._credentials = credentials
        logger.info("credentials_loaded", account_name=handle.name, scheme=credentials.scheme.value)
        return credentials

    @property
    def credentials(self) -> Optional[CredentialSet]:
        """Credentials, or None while a store-backed identity is not loaded."""
        return self._credentials

    @property
    def has_credentials(self) -> bool:
        return self._credentials is not None

    # ------------------------------------------------------------------
    # Endpoints
    # ------------------------------------------------------------------

    def resolve_endpoint(self, probe: NetworkProbe) -> str:
        """Return the endpoint to use right now.

        The local endpoint wins only when both it and the trigger network are
        configured and `probe` reports attachment to exactly that network.

        Raises:
            InvalidArgument: If `probe` is null.
        """
        _require(probe, "probe")

        if self._local_endpoint is None or self._local_network_id is None:
            return self._base_endpoint

        if probe(self._local_network_id):
            logger.debug("endpoint_resolved", account_name=self._account_name, endpoint="local")
            return self._local_endpoint
        return self._base_endpoint

    @property
    def base_endpoint(self) -> str:
        return self._base_endpoint

    @property
    def local_endpoint(self) -> Optional[str]:
        return self._local_endpoint

    @property
    def local_network_id(self) -> Optional[str]:
        return self._local_network_id

    @property
    def prefer_local(self) -> PreferLocal:
        return self._prefer_local

    # ------------------------------------------------------------------
    # Naming
    # ------------------------------------------------------------------

    @property
    def account_name(self) -> Optional[str]:
        """Store lookup key, ``<base_endpoint>_<username>``."""
        return self._account_name

    @property
    def store_handle(self) -> Optional[StoreHandle]:
        return self._store_handle

    @property
    def display_name_override(self) -> Optional[str]:
        return self._display_name

    @property
    def display_name(self) -> Optional[str]:
        """Human-readable name for this account.

        Uses the explicit override, then the loaded credentials' username,
        then the username embedded in the store handle. Never loads
        credentials.
        """
        if self._display_name:
            return self._display_name
        if self._credentials is not None and self._credentials.username:
            return self._credentials.username
        if self._store_handle is not None:
            return username_from_account_name(self._store_handle.name, self._base_endpoint)
        return None

    def __repr__(self) -> str:
        return (
            f"<AccountIdentity(account_name={self._account_name}, "
            f"base_endpoint={self._base_endpoint}, "
            f"stored={self._store_handle is not None}, "
            f"credentials_loaded={self._credentials is not None})>"
        )
