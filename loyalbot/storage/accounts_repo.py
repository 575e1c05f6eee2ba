"""Repository for provisioned loyalty accounts keyed by title."""

from __future__ import annotations

from typing import TYPE_CHECKING, cast

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from loyalbot.backend.models import AccountRecord, SessionCredentials

if TYPE_CHECKING:
    from collections.abc import Mapping

    from loyalbot.storage.db import SessionFactory
    from loyalbot.storage.writer_queue import WriterQueueProtocol

_ACCOUNT_COLUMNS = """
    title,
    phone_number,
    card_number,
    external_customer_id,
    auth_token,
    session_token_a,
    session_token_b,
    csrf_token
"""


class AccountStoreError(RuntimeError):
    """Base exception for account store operations."""

    @classmethod
    def for_database_failure(cls, *, details: str) -> AccountStoreError:
        """Build error wrapping an underlying database failure."""
        return cls(f"Account store operation failed: {details}")


class AccountNotFoundError(AccountStoreError):
    """Raised when no account exists for the requested title."""

    @classmethod
    def for_title(cls, title: str) -> AccountNotFoundError:
        """Build deterministic missing-title error."""
        return cls(f"No account with title '{title}'.")


class AccountAlreadyExistsError(AccountStoreError):
    """Raised when renaming onto a title that is already taken."""

    @classmethod
    def for_title(cls, title: str) -> AccountAlreadyExistsError:
        """Build deterministic duplicate-title error."""
        return cls(f"An account with title '{title}' already exists.")


class AccountDecodeError(AccountStoreError):
    """Raised when a stored account row has an unexpected shape."""

    @classmethod
    def for_field(cls, field_name: str) -> AccountDecodeError:
        """Build deterministic decode error for one column."""
        return cls(f"Stored account row has invalid `{field_name}` value.")


class AccountsRepository:
    """Raw SQL access to the `accounts` table."""

    _read_session_factory: SessionFactory
    _write_session_factory: SessionFactory

    def __init__(
        self,
        *,
        read_session_factory: SessionFactory,
        write_session_factory: SessionFactory,
    ) -> None:
        """Create repository with explicit read/write session dependencies."""
        self._read_session_factory = read_session_factory
        self._write_session_factory = write_session_factory

    async def put(self, record: AccountRecord) -> bool:
        """Insert or overwrite the account under its title in one transaction.

        Returns True when an existing account with the same title was replaced.
        """
        exists_statement = text("SELECT 1 FROM accounts WHERE title = :title")
        upsert_statement = text(
            f"""
            INSERT INTO accounts ({_ACCOUNT_COLUMNS})
            VALUES (
                :title,
                :phone_number,
                :card_number,
                :external_customer_id,
                :auth_token,
                :session_token_a,
                :session_token_b,
                :csrf_token
            )
            ON CONFLICT(title) DO UPDATE SET
                phone_number = excluded.phone_number,
                card_number = excluded.card_number,
                external_customer_id = excluded.external_customer_id,
                auth_token = excluded.auth_token,
                session_token_a = excluded.session_token_a,
                session_token_b = excluded.session_token_b,
                csrf_token = excluded.csrf_token,
                updated_at = CURRENT_TIMESTAMP
            """,  # noqa: S608
        )
        try:
            async with self._write_session_factory() as session:
                result = await session.execute(exists_statement, {"title": record.title})
                replaced = result.first() is not None
                _ = await session.execute(upsert_statement, _encode_record(record))
                await session.commit()
        except SQLAlchemyError as exc:
            raise AccountStoreError.for_database_failure(details=str(exc)) from exc
        return replaced

    async def get(self, title: str) -> AccountRecord:
        """Fetch one account or raise AccountNotFoundError."""
        statement = text(
            f"SELECT {_ACCOUNT_COLUMNS} FROM accounts WHERE title = :title",  # noqa: S608
        )
        try:
            async with self._read_session_factory() as session:
                result = await session.execute(statement, {"title": title})
                row = result.mappings().one_or_none()
        except SQLAlchemyError as exc:
            raise AccountStoreError.for_database_failure(details=str(exc)) from exc
        if row is None:
            raise AccountNotFoundError.for_title(title)
        return _decode_row(row)

    async def delete(self, title: str) -> AccountRecord:
        """Remove one account and return what was stored."""
        statement = text(
            f"DELETE FROM accounts WHERE title = :title RETURNING {_ACCOUNT_COLUMNS}",  # noqa: S608
        )
        try:
            async with self._write_session_factory() as session:
                result = await session.execute(statement, {"title": title})
                row = result.mappings().one_or_none()
                await session.commit()
        except SQLAlchemyError as exc:
            raise AccountStoreError.for_database_failure(details=str(exc)) from exc
        if row is None:
            raise AccountNotFoundError.for_title(title)
        return _decode_row(row)

    async def rename(self, old: str, new: str) -> None:
        """Move an account to a new, unused title."""
        statement = text(
            """
            UPDATE accounts
            SET title = :new, updated_at = CURRENT_TIMESTAMP
            WHERE title = :old
            RETURNING title
            """,
        )
        async with self._write_session_factory() as session:
            try:
                result = await session.execute(statement, {"old": old, "new": new})
                row = result.first()
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                raise AccountAlreadyExistsError.for_title(new) from exc
            except SQLAlchemyError as exc:
                await session.rollback()
                raise AccountStoreError.for_database_failure(details=str(exc)) from exc
        if row is None:
            raise AccountNotFoundError.for_title(old)

    async def list_all(self) -> list[AccountRecord]:
        """Return every account ordered by title."""
        statement = text(
            f"SELECT {_ACCOUNT_COLUMNS} FROM accounts ORDER BY title ASC",  # noqa: S608
        )
        try:
            async with self._read_session_factory() as session:
                result = await session.execute(statement)
                rows = result.mappings().all()
        except SQLAlchemyError as exc:
            raise AccountStoreError.for_database_failure(details=str(exc)) from exc
        return [_decode_row(row) for row in rows]


class AccountStore:
    """Account store handle whose mutations go through the single writer."""

    _repository: AccountsRepository
    _writer_queue: WriterQueueProtocol

    def __init__(
        self,
        *,
        repository: AccountsRepository,
        writer_queue: WriterQueueProtocol,
    ) -> None:
        """Bind the repository to the process-wide writer queue."""
        self._repository = repository
        self._writer_queue = writer_queue

    async def put(self, record: AccountRecord) -> bool:
        """Store `record`, replacing any account with the same title."""
        return await self._writer_queue.submit(lambda: self._repository.put(record))

    async def get(self, title: str) -> AccountRecord:
        """Fetch one account."""
        return await self._repository.get(title)

    async def delete(self, title: str) -> AccountRecord:
        """Remove one account."""
        return await self._writer_queue.submit(lambda: self._repository.delete(title))

    async def rename(self, old: str, new: str) -> None:
        """Retitle one account."""
        await self._writer_queue.submit(lambda: self._repository.rename(old, new))

    async def list_all(self) -> list[AccountRecord]:
        """List every account ordered by title."""
        return await self._repository.list_all()


def _encode_record(record: AccountRecord) -> dict[str, object]:
    return {
        "title": record.title,
        "phone_number": record.phone_number,
        "card_number": record.card_number,
        "external_customer_id": record.external_customer_id,
        "auth_token": record.auth_token,
        "session_token_a": record.credentials.session_token_a,
        "session_token_b": record.credentials.session_token_b,
        "csrf_token": record.credentials.csrf_token,
    }


def _decode_row(row: object) -> AccountRecord:
    row_map = cast("Mapping[str, object]", row)
    return AccountRecord(
        title=_coerce_str(row_map, "title"),
        phone_number=_coerce_str(row_map, "phone_number"),
        card_number=_coerce_str(row_map, "card_number"),
        external_customer_id=_coerce_str(row_map, "external_customer_id"),
        auth_token=_coerce_str(row_map, "auth_token"),
        credentials=SessionCredentials(
            session_token_a=_coerce_str(row_map, "session_token_a"),
            session_token_b=_coerce_str(row_map, "session_token_b"),
            csrf_token=_coerce_str(row_map, "csrf_token"),
        ),
    )


def _coerce_str(row_map: Mapping[str, object], field_name: str) -> str:
    value = row_map.get(field_name)
    if isinstance(value, str):
        return value
    raise AccountDecodeError.for_field(field_name)
