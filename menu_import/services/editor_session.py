"""Editor session persistence: the stored parse result plus its editor state."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import DateTime, String, delete, select
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from menu_import.config import settings
from menu_import.db import Base, get_session_factory
from menu_import.editor.state import EditorState, load_result
from menu_import.schemas import ParseResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EditorSessionRecord:
    """One user's extraction result and the edits made to it so far.

    ``result_id`` changes whenever a new extraction replaces the result, so
    callers holding an older snapshot can tell the session moved on.
    """

    token: str
    restaurant_id: str
    parse_result: ParseResult | None
    state: EditorState
    created_at: datetime
    expires_at: datetime
    result_id: str | None = None
    file_type: str | None = None

    @property
    def ttl_seconds(self) -> int:
        """Return remaining lifetime in seconds."""

        remaining = (self.expires_at - datetime.now(tz=timezone.utc)).total_seconds()
        return int(remaining) if remaining > 0 else 0


class EditorSession(Base):
    """SQLAlchemy mapping for persisted editor sessions."""

    __tablename__ = "menu_editor_sessions"

    token: Mapped[str] = mapped_column(String(96), primary_key=True)
    restaurant_id: Mapped[str] = mapped_column(String(64), nullable=False)
    result_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    file_type: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    parse_result_json: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONB, nullable=True)
    state_json: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


def _record_from_row(row: EditorSession) -> EditorSessionRecord:
    parse_result = (
        ParseResult.model_validate(row.parse_result_json)
        if row.parse_result_json is not None
        else None
    )
    return EditorSessionRecord(
        token=row.token,
        restaurant_id=row.restaurant_id,
        parse_result=parse_result,
        state=EditorState.from_payload(row.state_json),
        created_at=row.created_at,
        expires_at=row.expires_at,
        result_id=row.result_id,
        file_type=row.file_type,
    )


class InMemoryEditorSessionRepository:
    """Ephemeral backing store used for local development and tests."""

    def __init__(self) -> None:
        self._store: Dict[str, EditorSessionRecord] = {}

    async def store(self, record: EditorSessionRecord) -> None:
        self._store[record.token] = record

    async def fetch(self, token: str) -> EditorSessionRecord | None:
        record = self._store.get(token)
        if record is None:
            return None
        if record.expires_at <= datetime.now(tz=timezone.utc):
            self._store.pop(token, None)
            return None
        return record

    async def delete(self, token: str) -> None:
        self._store.pop(token, None)

    async def purge(self) -> List[EditorSessionRecord]:
        now = datetime.now(tz=timezone.utc)
        expired_tokens = [
            token for token, record in self._store.items() if record.expires_at <= now
        ]
        return [self._store.pop(token) for token in expired_tokens]

    def reset(self) -> None:
        self._store.clear()


class DatabaseEditorSessionRepository:
    """Persist editor sessions in Postgres."""

    def __init__(self, session_factory) -> None:
        self._session_factory = session_factory

    async def store(self, record: EditorSessionRecord) -> None:
        async with self._session_factory() as session:
            await session.merge(
                EditorSession(
                    token=record.token,
                    restaurant_id=record.restaurant_id,
                    result_id=record.result_id,
                    file_type=record.file_type,
                    parse_result_json=(
                        record.parse_result.model_dump(mode="json", by_alias=True)
                        if record.parse_result is not None
                        else None
                    ),
                    state_json=record.state.to_payload(),
                    created_at=record.created_at,
                    expires_at=record.expires_at,
                )
            )
            await session.commit()

    async def fetch(self, token: str) -> EditorSessionRecord | None:
        async with self._session_factory() as session:
            result = await session.execute(
                select(EditorSession).where(EditorSession.token == token)
            )
            row: Optional[EditorSession] = result.scalar_one_or_none()
            if row is None:
                return None
            if row.expires_at <= datetime.now(tz=timezone.utc):
                await session.delete(row)
                await session.commit()
                return None
            return _record_from_row(row)

    async def delete(self, token: str) -> None:
        async with self._session_factory() as session:
            await session.execute(
                delete(EditorSession).where(EditorSession.token == token)
            )
            await session.commit()

    async def purge(self) -> List[EditorSessionRecord]:
        async with self._session_factory() as session:
            now = datetime.now(tz=timezone.utc)
            result = await session.execute(
                select(EditorSession).where(EditorSession.expires_at <= now)
            )
            rows = result.scalars().all()
            if not rows:
                return []
            await session.execute(
                delete(EditorSession).where(EditorSession.expires_at <= now)
            )
            await session.commit()
            return [_record_from_row(row) for row in rows]

    def reset(self) -> None:  # pragma: no cover - tests rely on memory store
        pass


class EditorSessionService:
    """High-level coordinator for editor session persistence."""

    def __init__(self) -> None:
        self._ttl = timedelta(minutes=max(1, settings.editor_session_ttl_minutes))
        session_factory = get_session_factory()
        if session_factory is not None:
            self._repository: (
                InMemoryEditorSessionRepository | DatabaseEditorSessionRepository
            ) = DatabaseEditorSessionRepository(session_factory)
        else:
            self._repository = InMemoryEditorSessionRepository()

    async def create_session(
        self,
        restaurant_id: str,
        parse_result: ParseResult,
        *,
        file_type: str | None = None,
    ) -> EditorSessionRecord:
        created_at = datetime.now(tz=timezone.utc)
        record = EditorSessionRecord(
            token=_generate_token(),
            restaurant_id=restaurant_id,
            parse_result=parse_result,
            state=load_result(parse_result),
            created_at=created_at,
            expires_at=created_at + self._ttl,
            result_id=_generate_token(),
            file_type=file_type,
        )
        await self._repository.store(record)
        return record

    async def replace_result(
        self,
        token: str,
        parse_result: ParseResult,
        *,
        file_type: str | None = None,
    ) -> EditorSessionRecord:
        """Swap in a new extraction result, discarding any edits to the old one."""

        record = await self._repository.fetch(token)
        if record is None:
            raise KeyError(token)
        updated = replace(
            record,
            parse_result=parse_result,
            state=load_result(parse_result),
            result_id=_generate_token(),
            file_type=file_type,
        )
        await self._repository.store(updated)
        return updated

    async def describe(self, token: str) -> EditorSessionRecord | None:
        return await self._repository.fetch(token)

    async def save(self, record: EditorSessionRecord) -> EditorSessionRecord:
        await self._repository.store(record)
        return record

    async def clear(self, token: str) -> EditorSessionRecord | None:
        """Return the session to its pre-upload state."""

        record = await self._repository.fetch(token)
        if record is None:
            return None
        cleared = replace(
            record,
            parse_result=None,
            state=EditorState(),
            result_id=None,
            file_type=None,
        )
        await self._repository.store(cleared)
        return cleared

    async def delete(self, token: str) -> None:
        await self._repository.delete(token)

    async def purge_expired(self) -> List[EditorSessionRecord]:
        expired = await self._repository.purge()
        if expired:
            logger.info("Purged %d expired editor sessions", len(expired))
        return expired

    def reset(self) -> None:  # pragma: no cover - tests only
        reset_fn = getattr(self._repository, "reset", None)
        if callable(reset_fn):
            reset_fn()


def _generate_token() -> str:
    from secrets import token_urlsafe

    return token_urlsafe(16)
