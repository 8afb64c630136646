from __future__ import annotations

import logging
import threading
from collections import deque
from datetime import datetime, timedelta
from typing import Callable

from sqlalchemy.exc import SQLAlchemyError

from app.core.config import Settings
from app.core.security import generate_session_token, hash_token, verify_admin_password
from app.models._mixins import utcnow
from app.services.errors import InvalidCredentials, StoreUnavailable
from app.services.session_store import SessionRecord, SessionStore

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


class LoginThrottle:
    """Counts failed logins per client inside a sliding window.

    Clients whose failures have all aged out are dropped, at most once per
    window for the whole table.
    """

    def __init__(self, max_failures: int, window: timedelta, clock: Clock = utcnow) -> None:
        self.max_failures = max_failures
        self.window = window
        self.clock = clock
        self._lock = threading.Lock()
        self._failures: dict[str, deque[datetime]] = {}
        self._last_sweep = clock()

    def _sweep(self, now: datetime) -> None:
        if now - self._last_sweep < self.window:
            return
        stale = [k for k, q in self._failures.items() if not q or now - q[-1] >= self.window]
        for k in stale:
            del self._failures[k]
        self._last_sweep = now

    def _prune(self, key: str, now: datetime) -> deque[datetime]:
        self._sweep(now)
        q = self._failures.get(key)
        if q is None:
            return deque()
        while q and now - q[0] >= self.window:
            q.popleft()
        if not q:
            del self._failures[key]
        return q

    def is_blocked(self, key: str) -> bool:
        with self._lock:
            return len(self._prune(key, self.clock())) >= self.max_failures

    def record_failure(self, key: str) -> None:
        with self._lock:
            now = self.clock()
            q = self._prune(key, now)
            q.append(now)
            self._failures[key] = q

    def reset(self, key: str) -> None:
        with self._lock:
            self._failures.pop(key, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._failures)


class AdminSessionGuard:
    """Password gate for the admin dashboard with server-side sessions.

    A session is valid until its absolute expiry and only while it keeps
    being used within the idle timeout. ``check`` never raises.
    """

    def __init__(self, store: SessionStore, settings: Settings, clock: Clock = utcnow) -> None:
        self.store = store
        self.settings = settings
        self.clock = clock
        self.idle_timeout = timedelta(minutes=settings.session_idle_minutes)
        self.max_age = timedelta(minutes=settings.session_max_age_minutes)
        self.throttle: LoginThrottle | None = None
        if settings.rate_limit_enabled:
            self.throttle = LoginThrottle(
                settings.login_max_failures,
                timedelta(minutes=settings.login_lockout_minutes),
                clock=clock,
            )

    def _hash(self, token: str) -> str:
        return hash_token(token, self.settings.secret_key)

    def is_throttled(self, client_ip: str = "") -> bool:
        return self.throttle is not None and self.throttle.is_blocked(client_ip)

    def login(self, password: str, client_ip: str = "") -> str:
        if self.is_throttled(client_ip):
            logger.warning("Admin login rejected for throttled client %s", client_ip or "<unknown>")
            raise InvalidCredentials()

        if not verify_admin_password(password or "", self.settings):
            if self.throttle is not None:
                self.throttle.record_failure(client_ip)
            logger.warning("Admin login failed from %s", client_ip or "<unknown>")
            raise InvalidCredentials()

        if self.throttle is not None:
            self.throttle.reset(client_ip)

        token = generate_session_token()
        now = self.clock()
        record = SessionRecord(
            token_hash=self._hash(token),
            created_at=now,
            last_seen_at=now,
            expires_at=now + self.max_age,
        )
        try:
            self.store.purge_expired(now)
            self.store.save(record)
        except SQLAlchemyError as e:
            logger.error("Could not persist admin session", exc_info=True)
            raise StoreUnavailable() from e

        logger.info("Admin session started from %s", client_ip or "<unknown>")
        return token

    def check(self, token: str | None) -> bool:
        if not token:
            return False

        token_hash = self._hash(token)
        now = self.clock()
        try:
            record = self.store.get(token_hash)
            if record is None:
                return False
            if now >= record.expires_at or now - record.last_seen_at >= self.idle_timeout:
                self.store.delete(token_hash)
                logger.info("Admin session expired")
                return False
            self.store.touch(token_hash, now)
        except SQLAlchemyError:
            logger.error("Admin session lookup failed", exc_info=True)
            return False
        return True

    def logout(self, token: str | None) -> None:
        if not token:
            return
        try:
            self.store.delete(self._hash(token))
        except SQLAlchemyError as e:
            logger.error("Could not revoke admin session", exc_info=True)
            raise StoreUnavailable() from e
        logger.info("Admin session ended")
