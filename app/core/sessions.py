"""
Server-side sessions.

The browser only ever holds "<sid>.<signature>" in an http-only cookie; the
payload ({"userId": ...}) lives in a store. Production uses the user_sessions
table so sessions survive restarts. Development without a DATABASE_URL may use
the in-memory store.

Expiry is a fixed TTL from the last write. Every successful get() touches the
record, so an active user's session keeps sliding forward one week at a time,
and the auth dependencies re-send the cookie so the browser keeps it as long.
"""

import asyncio
import hashlib
import hmac
import logging
import secrets
import threading
from datetime import timedelta
from typing import Callable, Dict, Optional, Tuple
from fastapi import Request, Response
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.security import as_utc, utcnow
from app.models.user_session import UserSession

logger = logging.getLogger(__name__)


class SessionStore:
    """Storage contract shared by the memory and database backends."""

    def load(self, sid: str) -> Optional[Tuple[dict, object]]:
        raise NotImplementedError

    def save(self, sid: str, data: dict, expire) -> None:
        raise NotImplementedError

    def touch(self, sid: str, expire) -> None:
        raise NotImplementedError

    def delete(self, sid: str) -> None:
        raise NotImplementedError

    def prune(self) -> int:
        raise NotImplementedError


class MemorySessionStore(SessionStore):
    """Development only. Sessions vanish on restart."""

    def __init__(self):
        self._sessions: Dict[str, Tuple[dict, object]] = {}
        self._lock = threading.Lock()

    def load(self, sid):
        with self._lock:
            return self._sessions.get(sid)

    def save(self, sid, data, expire):
        with self._lock:
            self._sessions[sid] = (dict(data), expire)

    def touch(self, sid, expire):
        with self._lock:
            if sid in self._sessions:
                data, _ = self._sessions[sid]
                self._sessions[sid] = (data, expire)

    def delete(self, sid):
        with self._lock:
            self._sessions.pop(sid, None)

    def prune(self):
        now = utcnow()
        with self._lock:
            expired = [sid for sid, (_, expire) in self._sessions.items() if as_utc(expire) <= now]
            for sid in expired:
                del self._sessions[sid]
        return len(expired)


class DatabaseSessionStore(SessionStore):
    """
    Durable store backed by the user_sessions table.

    Each operation opens its own short-lived SQLAlchemy session so the store can
    be shared across requests and the background pruner.
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def load(self, sid):
        db = self.session_factory()
        try:
            row = db.get(UserSession, sid)
            if row is None:
                return None
            return dict(row.sess), row.expire
        finally:
            db.close()

    def save(self, sid, data, expire):
        db = self.session_factory()
        try:
            row = db.get(UserSession, sid)
            if row is None:
                db.add(UserSession(sid=sid, sess=dict(data), expire=expire))
            else:
                row.sess = dict(data)
                row.expire = expire
            db.commit()
        finally:
            db.close()

    def touch(self, sid, expire):
        db = self.session_factory()
        try:
            db.query(UserSession).filter(UserSession.sid == sid).update(
                {UserSession.expire: expire}, synchronize_session=False
            )
            db.commit()
        finally:
            db.close()

    def delete(self, sid):
        db = self.session_factory()
        try:
            db.query(UserSession).filter(UserSession.sid == sid).delete(synchronize_session=False)
            db.commit()
        finally:
            db.close()

    def prune(self):
        db = self.session_factory()
        try:
            removed = db.query(UserSession).filter(UserSession.expire <= utcnow()).delete(
                synchronize_session=False
            )
            db.commit()
            return removed
        finally:
            db.close()


class SessionManager:
    """
    Issues, resolves and destroys sessions and manages the session cookie.

    Usage:
        sid = manager.create(user.id)
        manager.attach_cookie(response, sid)
        ...
        payload = manager.get(manager.sid_from_request(request))
    """

    def __init__(
        self,
        store: SessionStore,
        secret: str,
        ttl_seconds: int = settings.SESSION_TTL_SECONDS,
        cookie_name: str = settings.SESSION_COOKIE_NAME,
        secure_cookie: bool = False,
    ):
        self.store = store
        self._secret = secret.encode("utf-8")
        self.ttl = timedelta(seconds=ttl_seconds)
        self.cookie_name = cookie_name
        self.secure_cookie = secure_cookie

    def _expiry(self):
        return utcnow() + self.ttl

    # --- contract ---

    def create(self, user_id: str, **extra) -> str:
        sid = secrets.token_urlsafe(32)
        payload = {"userId": user_id}
        payload.update(extra)
        self.store.save(sid, payload, self._expiry())
        return sid

    def get(self, sid: Optional[str]) -> Optional[dict]:
        """Return the payload of a live session and slide its expiry, else None."""
        if not sid:
            return None
        record = self.store.load(sid)
        if record is None:
            return None
        data, expire = record
        if as_utc(expire) <= utcnow():
            self.store.delete(sid)
            return None
        self.store.touch(sid, self._expiry())
        return data

    def destroy(self, sid: Optional[str]) -> None:
        if sid:
            self.store.delete(sid)

    def regenerate(self, old_sid: Optional[str], user_id: str) -> str:
        """Drop any pre-login session and issue a fresh id (prevents fixation)."""
        self.destroy(old_sid)
        return self.create(user_id)

    def prune(self) -> int:
        return self.store.prune()

    # --- cookie ---

    def _signature(self, sid: str) -> str:
        return hmac.new(self._secret, sid.encode("utf-8"), hashlib.sha256).hexdigest()

    def sign(self, sid: str) -> str:
        return f"{sid}.{self._signature(sid)}"

    def unsign(self, cookie_value: Optional[str]) -> Optional[str]:
        if not cookie_value or "." not in cookie_value:
            return None
        sid, signature = cookie_value.rsplit(".", 1)
        if not hmac.compare_digest(signature, self._signature(sid)):
            return None
        return sid

    def sid_from_request(self, request: Request) -> Optional[str]:
        return self.unsign(request.cookies.get(self.cookie_name))

    def attach_cookie(self, response: Response, sid: str) -> None:
        response.set_cookie(
            key=self.cookie_name,
            value=self.sign(sid),
            max_age=int(self.ttl.total_seconds()),
            httponly=True,
            samesite="lax",
            secure=self.secure_cookie,
            path="/",
        )

    def clear_cookie(self, response: Response) -> None:
        response.delete_cookie(
            key=self.cookie_name,
            httponly=True,
            samesite="lax",
            secure=self.secure_cookie,
            path="/",
        )


def build_session_manager(session_factory: Optional[Callable[[], Session]] = None) -> SessionManager:
    """
    Pick the session backend for the current environment.

    Production always gets the database store and refuses to start if the
    database cannot be reached. Development uses the database when DATABASE_URL
    is set and memory otherwise.

    Raises:
        RuntimeError: production and the session store is unreachable
    """
    from app.core.database import SessionLocal, check_database_connection

    factory = session_factory or SessionLocal

    if settings.is_production:
        try:
            check_database_connection()
        except Exception as e:
            logger.critical(f"Session store unreachable: {e}")
            raise RuntimeError("Session store is unreachable; refusing to start in production") from e
        store = DatabaseSessionStore(factory)
        logger.info("Using database session store")
    elif settings.DATABASE_URL:
        store = DatabaseSessionStore(factory)
        logger.info("Using database session store")
    else:
        store = MemorySessionStore()
        logger.warning("Using in-memory session store (development only, sessions are lost on restart)")

    return SessionManager(
        store,
        secret=settings.session_signing_key,
        ttl_seconds=settings.SESSION_TTL_SECONDS,
        cookie_name=settings.SESSION_COOKIE_NAME,
        secure_cookie=settings.is_production,
    )


async def prune_sessions_periodically(manager: SessionManager, interval_seconds: int) -> None:
    """Background loop started from the application lifespan."""
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            removed = await asyncio.to_thread(manager.prune)
            if removed:
                logger.info(f"Pruned {removed} expired sessions")
        except Exception as e:
            logger.error(f"Session pruning failed: {e}", exc_info=True)
