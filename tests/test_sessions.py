"""
Tests for the session manager and its stores.
"""

from datetime import timedelta
import pytest

from app.core.config import settings
from app.core.security import as_utc, utcnow
from app.core.sessions import (
    DatabaseSessionStore,
    MemorySessionStore,
    SessionManager,
    build_session_manager,
)
from app.models.user_session import UserSession


@pytest.fixture(params=["memory", "database"])
def store(request, session_factory):
    if request.param == "memory":
        return MemorySessionStore()
    return DatabaseSessionStore(session_factory)


def manager_for(store, ttl_seconds=3600):
    return SessionManager(store, secret="test-secret", ttl_seconds=ttl_seconds)


class TestSessionManager:
    def test_create_and_get(self, store):
        manager = manager_for(store)

        sid = manager.create("user-1")

        assert manager.get(sid) == {"userId": "user-1"}

    def test_unknown_or_missing_sid(self, store):
        manager = manager_for(store)
        assert manager.get("does-not-exist") is None
        assert manager.get(None) is None

    def test_destroy(self, store):
        manager = manager_for(store)
        sid = manager.create("user-1")

        manager.destroy(sid)

        assert manager.get(sid) is None

    def test_expired_session_is_gone(self, store):
        manager = manager_for(store, ttl_seconds=-1)
        sid = manager.create("user-1")

        assert manager.get(sid) is None
        assert store.load(sid) is None

    def test_get_slides_expiry(self, store):
        manager = manager_for(store)
        sid = manager.create("user-1")
        store.touch(sid, utcnow() + timedelta(seconds=5))

        manager.get(sid)

        _, expire = store.load(sid)
        assert as_utc(expire) > utcnow() + timedelta(minutes=30)

    def test_regenerate_drops_old_session(self, store):
        manager = manager_for(store)
        old = manager.create("user-1")

        new = manager.regenerate(old, "user-1")

        assert new != old
        assert manager.get(old) is None
        assert manager.get(new) == {"userId": "user-1"}

    def test_prune_removes_only_expired(self, store):
        live = manager_for(store).create("user-1")
        manager_for(store, ttl_seconds=-10).create("user-2")

        removed = manager_for(store).prune()

        assert removed == 1
        assert store.load(live) is not None


class TestCookieSigning:
    def test_round_trip(self):
        manager = manager_for(MemorySessionStore())
        assert manager.unsign(manager.sign("abc")) == "abc"

    @pytest.mark.parametrize("value", [None, "", "abc", "abc.deadbeef"])
    def test_bad_signatures(self, value):
        manager = manager_for(MemorySessionStore())
        assert manager.unsign(value) is None

    def test_other_secret_rejected(self):
        signed = manager_for(MemorySessionStore()).sign("abc")
        other = SessionManager(MemorySessionStore(), secret="another-secret")
        assert other.unsign(signed) is None


def test_database_store_persists_rows(session_factory, db_session):
    manager = manager_for(DatabaseSessionStore(session_factory))

    sid = manager.create("user-1")

    row = db_session.get(UserSession, sid)
    assert row is not None
    assert row.sess == {"userId": "user-1"}


class TestBuildSessionManager:
    def test_development_without_database_url_uses_memory(self, monkeypatch):
        monkeypatch.setattr(settings, "ENVIRONMENT", "development")
        monkeypatch.setattr(settings, "DATABASE_URL", "")

        manager = build_session_manager()

        assert isinstance(manager.store, MemorySessionStore)
        assert manager.secure_cookie is False

    def test_production_uses_database_store(self, monkeypatch, session_factory):
        monkeypatch.setattr(settings, "ENVIRONMENT", "production")
        monkeypatch.setattr("app.core.database.check_database_connection", lambda: None)

        manager = build_session_manager(session_factory)

        assert isinstance(manager.store, DatabaseSessionStore)
        assert manager.secure_cookie is True

    def test_production_refuses_unreachable_store(self, monkeypatch):
        monkeypatch.setattr(settings, "ENVIRONMENT", "production")

        def unreachable():
            raise ConnectionError("connection refused")

        monkeypatch.setattr("app.core.database.check_database_connection", unreachable)

        with pytest.raises(RuntimeError, match="Session store is unreachable"):
            build_session_manager()
