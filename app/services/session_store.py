from __future__ import annotations

import abc
import threading
from dataclasses import dataclass, replace
from datetime import datetime

from sqlalchemy import delete, select, update
from sqlalchemy.orm import sessionmaker

from app.models._mixins import ensure_utc
from app.models.admin_session import AdminSession


@dataclass(frozen=True)
class SessionRecord:
    token_hash: str
    created_at: datetime
    last_seen_at: datetime
    expires_at: datetime


class SessionStore(abc.ABC):
    """Server-side table of admin sessions, keyed by token hash."""

    @abc.abstractmethod
    def save(self, record: SessionRecord) -> None: ...

    @abc.abstractmethod
    def get(self, token_hash: str) -> SessionRecord | None: ...

    @abc.abstractmethod
    def touch(self, token_hash: str, when: datetime) -> None: ...

    @abc.abstractmethod
    def delete(self, token_hash: str) -> None: ...

    @abc.abstractmethod
    def purge_expired(self, now: datetime) -> int: ...


class InMemorySessionStore(SessionStore):
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._records: dict[str, SessionRecord] = {}

    def save(self, record: SessionRecord) -> None:
        with self._lock:
            self._records[record.token_hash] = record

    def get(self, token_hash: str) -> SessionRecord | None:
        with self._lock:
            return self._records.get(token_hash)

    def touch(self, token_hash: str, when: datetime) -> None:
        with self._lock:
            rec = self._records.get(token_hash)
            if rec is not None and when > rec.last_seen_at:
                self._records[token_hash] = replace(rec, last_seen_at=when)

    def delete(self, token_hash: str) -> None:
        with self._lock:
            self._records.pop(token_hash, None)

    def purge_expired(self, now: datetime) -> int:
        with self._lock:
            stale = [k for k, r in self._records.items() if r.expires_at <= now]
            for k in stale:
                del self._records[k]
            return len(stale)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)


class DatabaseSessionStore(SessionStore):
    """Sessions in the ``admin_sessions`` table, shared by every worker process."""

    def __init__(self, session_factory: sessionmaker) -> None:
        self.session_factory = session_factory

    def save(self, record: SessionRecord) -> None:
        with self.session_factory() as db:
            db.add(
                AdminSession(
                    token_hash=record.token_hash,
                    created_at=record.created_at,
                    last_seen_at=record.last_seen_at,
                    expires_at=record.expires_at,
                )
            )
            db.commit()

    def get(self, token_hash: str) -> SessionRecord | None:
        with self.session_factory() as db:
            row = db.execute(select(AdminSession).where(AdminSession.token_hash == token_hash)).scalar_one_or_none()
            if row is None:
                return None
            return SessionRecord(
                token_hash=row.token_hash,
                created_at=ensure_utc(row.created_at),
                last_seen_at=ensure_utc(row.last_seen_at),
                expires_at=ensure_utc(row.expires_at),
            )

    def touch(self, token_hash: str, when: datetime) -> None:
        # Single statement so concurrent checks of one token cannot interleave.
        with self.session_factory() as db:
            db.execute(
                update(AdminSession)
                .where(AdminSession.token_hash == token_hash, AdminSession.last_seen_at < when)
                .values(last_seen_at=when)
            )
            db.commit()

    def delete(self, token_hash: str) -> None:
        with self.session_factory() as db:
            db.execute(delete(AdminSession).where(AdminSession.token_hash == token_hash))
            db.commit()

    def purge_expired(self, now: datetime) -> int:
        with self.session_factory() as db:
            result = db.execute(delete(AdminSession).where(AdminSession.expires_at <= now))
            db.commit()
            return result.rowcount or 0
