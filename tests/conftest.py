# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from itertools import count
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("AUTH_JWT_SECRET", "test-secret-key-for-topbreja")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("AUTH_CACHE_BACKEND", "memory")

from topbreja.core.security import create_access_token
from topbreja.db.session import Base
from topbreja.db.session import get_db as app_get_session
from topbreja.main import app as fastapi_app
from topbreja.models import Cerveja, Usuario
from topbreja.models.user import ROLE_ADMIN, ROLE_MEMBER
from topbreja.services.auth_cache import MemoryAuthCache
from topbreja.services.ranking import recompute_counters
from topbreja.services.session_resolver import (
    JWTAuthProvider,
    SessionRoleResolver,
    get_session_resolver,
)

TEST_DB_URL = "sqlite://"

_USER_COUNTER = count(1)


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    connection = engine.connect()
    transaction = connection.begin()
    # Service commits and rollbacks only touch a savepoint.
    SessionLocal = sessionmaker(
        bind=connection,
        autoflush=False,
        expire_on_commit=False,
        join_transaction_mode="create_savepoint",
    )
    session = SessionLocal()

    try:
        yield session
    finally:
        session.close()

        if transaction.is_active:
            transaction.rollback()
        connection.close()

        # Ensure each test sees a clean database even if commits occurred.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture()
def auth_cache() -> MemoryAuthCache:
    return MemoryAuthCache()


@pytest.fixture()
def resolver(auth_cache: MemoryAuthCache) -> SessionRoleResolver:
    return SessionRoleResolver(JWTAuthProvider(), auth_cache)


@pytest.fixture(autouse=True)
def override_dependencies(
    app: FastAPI, db_session: Session, resolver: SessionRoleResolver
) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    app.dependency_overrides[get_session_resolver] = lambda: resolver
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)
        app.dependency_overrides.pop(get_session_resolver, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def make_user(db_session: Session) -> Callable[..., Usuario]:
    """Return a factory that persists users."""

    def _make_user(nome: str | None = None, role: str = ROLE_MEMBER) -> Usuario:
        n = next(_USER_COUNTER)
        user = Usuario(
            nome=nome or f"Usuario {n}",
            email=f"user{n}@example.com",
            role=role,
        )
        db_session.add(user)
        db_session.flush()
        user.auth_id = str(user.uuid)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture()
def make_beer(db_session: Session) -> Callable[..., Cerveja]:
    """Return a factory that persists beers with a ranking row."""

    def _make_beer(nome: str = "Pilsen", **fields: Any) -> Cerveja:
        values: dict[str, Any] = {"marca": f"Marca {nome}", "estilo": "Lager", "ativo": True}
        values.update(fields)
        beer = Cerveja(nome=nome, **values)
        db_session.add(beer)
        db_session.flush()
        recompute_counters(db_session, beer.uuid)
        db_session.commit()
        db_session.refresh(beer)
        return beer

    return _make_beer


@pytest.fixture()
def test_user(make_user: Callable[..., Usuario]) -> Usuario:
    """Create and return a persisted member."""
    return make_user("Test User")


@pytest.fixture()
def other_user(make_user: Callable[..., Usuario]) -> Usuario:
    """Create and return a second persisted member."""
    return make_user("Other User")


@pytest.fixture()
def admin_user(make_user: Callable[..., Usuario]) -> Usuario:
    """Create and return a persisted administrator."""
    return make_user("Admin User", role=ROLE_ADMIN)


@pytest.fixture()
def beer(make_beer: Callable[..., Cerveja]) -> Cerveja:
    """Create a default active beer."""
    return make_beer("Pilsen Test")


def bearer(user: Usuario) -> dict[str, str]:
    token = create_access_token(user.uuid, email=user.email)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def auth_token(test_user: Usuario) -> dict[str, str]:
    """Return authorization headers for the primary test user."""
    return bearer(test_user)


@pytest.fixture()
def other_auth_token(other_user: Usuario) -> dict[str, str]:
    """Return authorization headers for the secondary test user."""
    return bearer(other_user)


@pytest.fixture()
def admin_auth_token(admin_user: Usuario) -> dict[str, str]:
    """Return authorization headers for the administrator."""
    return bearer(admin_user)


@pytest.fixture()
def headers_for() -> Callable[[Usuario], dict[str, str]]:
    """Return a helper building authorization headers for any user."""
    return bearer
