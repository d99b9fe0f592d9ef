"""SQL-backed account store with encrypted credential material."""

from __future__ import annotations

import datetime as dt
from contextlib import contextmanager
from typing import TYPE_CHECKING, Iterator, Optional

from cryptography.exceptions import InvalidTag
from sqlalchemy import Column, DateTime, Engine, String, Text, delete, select
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from cloudlink.database import Base, get_session_factory, session_scope
from cloudlink.errors import (
    AuthenticatorUnavailable,
    IdentityNotFound,
    InvalidArgument,
    IOFailure,
)
from cloudlink.logging_config import get_logger
from cloudlink.modules.account.models import StoreHandle, StoreKey
from cloudlink.security.encryption import decrypt, encrypt

if TYPE_CHECKING:
    from cloudlink.modules.account.identity import AccountIdentity

logger = get_logger(__name__)


class AccountEntry(Base):
    """One key/value pair of a persisted account."""

    __tablename__ = "account_entries"

    account_name = Column(String(1024), primary_key=True)
    key = Column(String(64), primary_key=True)
    value = Column(Text, nullable=True)
    updated_at = Column(
        DateTime,
        default=lambda: dt.datetime.now(dt.UTC),
        onupdate=lambda: dt.datetime.now(dt.UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<AccountEntry(account_name={self.account_name}, key={self.key})>"


@contextmanager
def _backend_errors(operation: str) -> Iterator[None]:
    """Translate SQLAlchemy failures into the identity error taxonomy."""
    try:
        yield
    except OperationalError as exc:
        logger.error("account_store_unavailable", operation=operation, error=str(exc))
        raise AuthenticatorUnavailable(f"Account store unreachable: {exc}") from exc
    except SQLAlchemyError as exc:
        logger.error("account_store_failed", operation=operation, error=str(exc))
        raise IOFailure(f"Account store error during {operation}: {exc}") from exc


class SqlAccountStore:
    """Account store persisting one row per account key.

    Credential material is encrypted before it is written and decrypted
    on read; every other key is stored as plain text.
    """

    def __init__(self, engine: Optional[Engine] = None) -> None:
        """Initialize the store.

        Args:
            engine: Optional engine. If not provided, the engine configured
                by ``account_store_url`` is used.
        """
        self._factory = get_session_factory(engine)

    def get(self, handle: StoreHandle, key: StoreKey) -> Optional[str]:
        """Return the value stored under `key` for `handle`.

        Raises:
            IdentityNotFound: If no entry exists for `handle`.
            AuthenticatorUnavailable: If the database or the credential
                material cannot be unlocked.
            IOFailure: On other storage errors.
        """
        with _backend_errors("get"), session_scope(self._factory) as session:
            entry = session.get(AccountEntry, (handle.name, str(key)))
            if entry is None:
                if not self._exists(session, handle.name):
                    raise IdentityNotFound(handle.name)
                return None
            value = entry.value

        if value is not None and key == StoreKey.CREDENTIAL_MATERIAL:
            return self._decrypt(handle, value)
        return value

    def add_account(self, identity: AccountIdentity) -> StoreHandle:
        """Persist an identity, replacing any entry with the same account name.

        Returns:
            A handle that :meth:`AccountIdentity.from_store` accepts.

        Raises:
            InvalidArgument: If the identity has no account name or its
                credentials are not loaded.
        """
        if identity.account_name is None:
            raise InvalidArgument("Only accounts with a username can be stored")
        credentials = identity.credentials
        if credentials is None:
            raise InvalidArgument("Credentials must be loaded before storing an account")

        handle = StoreHandle(identity.account_name)
        secret = credentials.secret_material()
        values: dict[StoreKey, Optional[str]] = {
            StoreKey.BASE_URL: identity.base_endpoint,
            StoreKey.LOCAL_BASE_URL: identity.local_endpoint,
            StoreKey.LOCAL_NETWORK_ID: identity.local_network_id,
            StoreKey.USE_LOCAL_URL: identity.prefer_local.to_stored(),
            StoreKey.DISPLAY_NAME: identity.display_name_override,
            StoreKey.USERNAME: credentials.username,
            StoreKey.AUTH_SCHEME: credentials.scheme.value,
            StoreKey.CREDENTIAL_MATERIAL: encrypt(secret) if secret is not None else None,
        }

        with _backend_errors("add_account"), session_scope(self._factory) as session:
            session.execute(delete(AccountEntry).where(AccountEntry.account_name == handle.name))
            session.add_all(
                AccountEntry(account_name=handle.name, key=str(key), value=value)
                for key, value in values.items()
                if value is not None
            )

        logger.info(
            "account_stored",
            account_name=handle.name,
            scheme=credentials.scheme.value,
            has_local_endpoint=identity.local_endpoint is not None,
        )
        return handle

    def remove_account(self, handle: StoreHandle) -> bool:
        """Delete an account entry.

        Returns:
            True if deleted, False if not found.
        """
        with _backend_errors("remove_account"), session_scope(self._factory) as session:
            result = session.execute(
                delete(AccountEntry).where(AccountEntry.account_name == handle.name)
            )
            removed = result.rowcount > 0

        if removed:
            logger.info("account_removed", account_name=handle.name)
        return removed

    def list_handles(self) -> list[StoreHandle]:
        """Return handles for every stored account, ordered by name."""
        stmt = select(AccountEntry.account_name).distinct().order_by(AccountEntry.account_name)
        with _backend_errors("list_handles"), session_scope(self._factory) as session:
            names = session.execute(stmt).scalars().all()
        return [StoreHandle(name) for name in names]

    @staticmethod
    def _exists(session: Session, account_name: str) -> bool:
        stmt = select(AccountEntry.key).where(AccountEntry.account_name == account_name).limit(1)
        return session.execute(stmt).first() is not None

    @staticmethod
    def _decrypt(handle: StoreHandle, token: str) -> str:
        try:
            return decrypt(token)
        except (InvalidTag, ValueError) as exc:
            logger.warning("credential_material_unreadable", account_name=handle.name)
            raise AuthenticatorUnavailable(
                f"Credentials for {handle.name} cannot be decrypted with the configured key"
            ) from exc
