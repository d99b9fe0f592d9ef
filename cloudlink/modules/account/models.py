"""Credential sets and value types shared by account identities and stores."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, StrEnum
from typing import ClassVar, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, SecretStr, ValidationError

from cloudlink.errors import InvalidArgument

# Joins base endpoint and username into the store lookup key. Existing
# persisted accounts depend on this exact format.
ACCOUNT_NAME_SEPARATOR = "_"


class AuthScheme(StrEnum):
    """Supported authentication schemes."""

    ANONYMOUS = "anonymous"
    BASIC = "basic"
    BEARER = "bearer"


class PreferLocal(Enum):
    """Whether the local endpoint should be preferred on the trigger network.

    ``UNSET`` only appears for identities read from a store entry that never
    recorded the flag.
    """

    TRUE = "true"
    FALSE = "false"
    UNSET = "unset"

    @classmethod
    def from_stored(cls, value: Optional[str]) -> PreferLocal:
        """Parse the flag as persisted by an account store."""
        if value is None:
            return cls.UNSET
        normalized = value.strip().lower()
        if normalized in ("true", "1"):
            return cls.TRUE
        if normalized in ("false", "0"):
            return cls.FALSE
        return cls.UNSET

    def to_stored(self) -> Optional[str]:
        return None if self is PreferLocal.UNSET else self.value


class StoreKey(StrEnum):
    """Keys read from (and written to) an account store entry."""

    BASE_URL = "base_url"
    LOCAL_BASE_URL = "local_base_url"
    LOCAL_NETWORK_ID = "local_network_id"
    USE_LOCAL_URL = "use_local_url"
    DISPLAY_NAME = "display_name"
    USERNAME = "username"
    AUTH_SCHEME = "auth_scheme"
    CREDENTIAL_MATERIAL = "credential_material"


@dataclass(frozen=True)
class StoreHandle:
    """Opaque reference to one persisted account record."""

    name: str

    def __post_init__(self) -> None:
        if not self.name:
            raise InvalidArgument("Parameter 'name' cannot be empty")


# =============================================================================
# Credential sets
# =============================================================================


class AnonymousCredentials(BaseModel):
    """Credentials for unauthenticated access."""

    model_config = ConfigDict(frozen=True)

    scheme: Literal[AuthScheme.ANONYMOUS] = AuthScheme.ANONYMOUS

    @property
    def username(self) -> Optional[str]:
        return None

    def secret_material(self) -> Optional[str]:
        return None


class BasicCredentials(BaseModel):
    """Username and password credentials."""

    model_config = ConfigDict(frozen=True)

    secret_field: ClassVar[str] = "password"

    scheme: Literal[AuthScheme.BASIC] = AuthScheme.BASIC
    username: str = Field(..., min_length=1, description="Account username")
    password: SecretStr = Field(..., description="Account password")

    def secret_material(self) -> Optional[str]:
        return self.password.get_secret_value()


class BearerCredentials(BaseModel):
    """Token credentials, e.g. an OAuth2 access token."""

    model_config = ConfigDict(frozen=True)

    secret_field: ClassVar[str] = "token"

    scheme: Literal[AuthScheme.BEARER] = AuthScheme.BEARER
    username: str = Field(..., min_length=1, description="Account username")
    token: SecretStr = Field(..., description="Access token sent as a bearer credential")

    def secret_material(self) -> Optional[str]:
        return self.token.get_secret_value()


CredentialSet = AnonymousCredentials | BasicCredentials | BearerCredentials


CREDENTIAL_SCHEMAS: dict[AuthScheme, type[BaseModel]] = {
    AuthScheme.BASIC: BasicCredentials,
    AuthScheme.BEARER: BearerCredentials,
}

_ANONYMOUS = AnonymousCredentials()


def get_anonymous_credentials() -> AnonymousCredentials:
    """Return the shared anonymous credential set."""
    return _ANONYMOUS


def build_credentials(
    scheme: AuthScheme | str,
    username: Optional[str] = None,
    secret: Optional[str] = None,
) -> CredentialSet:
    """Build a credential set for the given scheme.

    Args:
        scheme: Authentication scheme, as an enum member or its stored value.
        username: Account username. Ignored for anonymous credentials.
        secret: Password or token, depending on the scheme.

    Returns:
        A validated, immutable credential set.

    Raises:
        InvalidArgument: If the scheme is unknown or the inputs do not
            satisfy the scheme's schema.
    """
    try:
        scheme = AuthScheme(scheme)
    except ValueError as exc:
        raise InvalidArgument(f"Unsupported authentication scheme: {scheme}") from exc

    if scheme is AuthScheme.ANONYMOUS:
        return get_anonymous_credentials()

    schema = CREDENTIAL_SCHEMAS[scheme]
    try:
        return schema(username=username, **{schema.secret_field: secret})
    except ValidationError as exc:
        raise InvalidArgument(f"Invalid credentials for {scheme}: {exc}") from exc


# =============================================================================
# Account names
# =============================================================================


def build_account_name(base_endpoint: str, username: str) -> str:
    """Build the store lookup key for an account.

    >>> build_account_name("https://cloud.example.com", "alice")
    'https://cloud.example.com_alice'
    """
    return f"{base_endpoint}{ACCOUNT_NAME_SEPARATOR}{username}"


def username_from_account_name(account_name: str, base_endpoint: str) -> Optional[str]:
    """Recover the username embedded in an account name, if any."""
    prefix = f"{base_endpoint}{ACCOUNT_NAME_SEPARATOR}"
    if account_name.startswith(prefix) and len(account_name) > len(prefix):
        return account_name[len(prefix):]
    return None
