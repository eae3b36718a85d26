# tests/services/test_session_resolver.py
"""Tests for session/role resolution and its cache."""

from __future__ import annotations

from uuid import UUID, uuid4

import pytest

from topbreja.core.security import create_access_token
from topbreja.models.user import ROLE_ADMIN
from topbreja.services.auth_cache import MemoryAuthCache, build_auth_cache
from topbreja.services.session_resolver import (
    AuthSession,
    JWTAuthProvider,
    SessionRoleResolver,
)


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class CountingProvider:
    """Provider double that records how often it is asked."""

    def __init__(self, user_id: UUID | None, *, fail: bool = False) -> None:
        self.user_id = user_id
        self.fail = fail
        self.calls = 0

    def get_session(self, token: str) -> AuthSession | None:
        self.calls += 1
        if self.fail:
            raise ConnectionError("auth provider unreachable")
        if self.user_id is None:
            return None
        return AuthSession(user_id=self.user_id)

    def get_user(self, token: str) -> AuthSession | None:
        return self.get_session(token)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


def test_resolves_member(db_session, test_user) -> None:
    resolver = SessionRoleResolver(CountingProvider(test_user.uuid), MemoryAuthCache())
    state = resolver.resolve(db_session, "token")
    assert state.user is not None
    assert state.user.uuid == test_user.uuid
    assert state.is_admin is False


def test_resolves_admin(db_session, admin_user) -> None:
    resolver = SessionRoleResolver(CountingProvider(admin_user.uuid), MemoryAuthCache())
    state = resolver.resolve(db_session, "token")
    assert state.is_admin is True
    assert state.user.role == ROLE_ADMIN


def test_missing_token_is_anonymous(db_session) -> None:
    provider = CountingProvider(uuid4())
    resolver = SessionRoleResolver(provider, MemoryAuthCache())
    state = resolver.resolve(db_session, None)
    assert state.user is None
    assert state.is_admin is False
    assert provider.calls == 0


def test_second_call_within_ttl_uses_cache(db_session, test_user, clock) -> None:
    provider = CountingProvider(test_user.uuid)
    resolver = SessionRoleResolver(provider, MemoryAuthCache(clock=clock), ttl_seconds=30)

    first = resolver.resolve(db_session, "token")
    clock.advance(29)
    second = resolver.resolve(db_session, "token")

    assert provider.calls == 1
    assert first == second


def test_cache_entry_expires_after_ttl(db_session, test_user, clock) -> None:
    provider = CountingProvider(test_user.uuid)
    resolver = SessionRoleResolver(provider, MemoryAuthCache(clock=clock), ttl_seconds=30)

    resolver.resolve(db_session, "token")
    clock.advance(30)
    resolver.resolve(db_session, "token")

    assert provider.calls == 2


def test_refresh_bypasses_cache(db_session, test_user, clock) -> None:
    provider = CountingProvider(test_user.uuid)
    resolver = SessionRoleResolver(provider, MemoryAuthCache(clock=clock))

    resolver.resolve(db_session, "token")
    test_user.role = ROLE_ADMIN
    db_session.commit()

    assert resolver.resolve(db_session, "token").is_admin is False
    assert resolver.refresh_auth(db_session, "token").is_admin is True
    assert provider.calls == 2


def test_sign_out_drops_cached_state(db_session, test_user) -> None:
    provider = CountingProvider(test_user.uuid)
    resolver = SessionRoleResolver(provider, MemoryAuthCache())
    resolver.resolve(db_session, "token")
    resolver.sign_out("token")
    resolver.resolve(db_session, "token")
    assert provider.calls == 2


def test_provider_error_fails_closed(db_session) -> None:
    resolver = SessionRoleResolver(CountingProvider(uuid4(), fail=True), MemoryAuthCache())
    state = resolver.resolve(db_session, "token")
    assert state.user is None
    assert state.is_admin is False


def test_unknown_profile_is_anonymous(db_session) -> None:
    resolver = SessionRoleResolver(CountingProvider(uuid4()), MemoryAuthCache())
    assert resolver.resolve(db_session, "token").authenticated is False


def test_different_tokens_never_share_an_entry(db_session, test_user, admin_user) -> None:
    cache = MemoryAuthCache()
    resolver = SessionRoleResolver(JWTAuthProvider(), cache)
    member_token = create_access_token(test_user.uuid)
    admin_token = create_access_token(admin_user.uuid)

    assert resolver.resolve(db_session, member_token).is_admin is False
    assert resolver.resolve(db_session, admin_token).is_admin is True
    assert resolver.resolve(db_session, member_token).user.uuid == test_user.uuid


def test_unreadable_cache_entry_is_discarded(db_session, test_user) -> None:
    provider = CountingProvider(test_user.uuid)
    cache = MemoryAuthCache()
    resolver = SessionRoleResolver(provider, cache)
    resolver.resolve(db_session, "token")
    key = resolver._entry_key("token")
    cache.set(key, "not json", 30)

    state = resolver.resolve(db_session, "token")
    assert state.user.uuid == test_user.uuid
    assert provider.calls == 2


class TestJWTAuthProvider:
    def test_valid_token(self) -> None:
        user_id = uuid4()
        session = JWTAuthProvider().get_session(create_access_token(user_id, email="a@b.c"))
        assert session is not None
        assert session.user_id == user_id
        assert session.email == "a@b.c"
        assert session.expires_at is not None

    def test_expired_token(self) -> None:
        token = create_access_token(uuid4(), expires_minutes=-1)
        assert JWTAuthProvider().get_session(token) is None

    def test_garbage_token(self) -> None:
        assert JWTAuthProvider().get_user("not-a-jwt") is None

    def test_non_uuid_subject(self) -> None:
        assert JWTAuthProvider().get_session(create_access_token("someone")) is None


class TestMemoryAuthCache:
    def test_set_get_delete(self, clock) -> None:
        cache = MemoryAuthCache(clock=clock)
        cache.set("k", "v", 5)
        assert cache.get("k") == "v"
        cache.delete("k")
        assert cache.get("k") is None

    def test_non_positive_ttl_is_not_stored(self, clock) -> None:
        cache = MemoryAuthCache(clock=clock)
        cache.set("k", "v", 0)
        assert cache.get("k") is None

    def test_clear(self, clock) -> None:
        cache = MemoryAuthCache(clock=clock)
        cache.set("a", "1", 5)
        cache.set("b", "2", 5)
        cache.clear()
        assert cache.get("a") is None
        assert cache.get("b") is None


def test_build_auth_cache_rejects_unknown_backend() -> None:
    with pytest.raises(ValueError):
        build_auth_cache("memcached")


def test_build_auth_cache_memory() -> None:
    assert isinstance(build_auth_cache("memory"), MemoryAuthCache)
