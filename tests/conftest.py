"""Pytest configuration and shared fixtures."""

from collections.abc import Generator

import pytest
from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from rolegate.core.cache import MemoryCacheStore
from rolegate.core.database import Base, Scope, enable_sqlite_foreign_keys
from rolegate.gatekeeper import Gatekeeper
from rolegate.modules.identity import ModelRegistry

# Import test models so they're registered with Base.metadata
from tests.factories.models import (
    AccountFactory,
    MemberFactory,
    OrganizationFactory,
    PostFactory,
    UserFactory,
)
from tests.models import Account, Member, Organization, Post, User


TEST_DATABASE_URL = "sqlite://"


@pytest.fixture
def engine() -> Generator[Engine, None, None]:
    """Create an in-memory SQLite engine with every table."""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )
    enable_sqlite_foreign_keys(engine)
    Base.metadata.create_all(engine)

    yield engine

    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db(engine: Engine) -> Generator[Session, None, None]:
    """Provide a transactional database session for tests.

    Each test runs in its own transaction that is rolled back
    after the test completes, ensuring test isolation.
    """
    session_factory = sessionmaker(
        class_=Session,
        expire_on_commit=False,
        autoflush=False,
    )

    with engine.connect() as conn:
        conn.begin()

        with session_factory(bind=conn) as session:
            yield session

        conn.rollback()


@pytest.fixture
def registry() -> Generator[ModelRegistry, None, None]:
    """Provide a fresh registry and detach its listeners afterwards."""
    registry = ModelRegistry()
    registry.register_actor(User)
    registry.register_actor(Member)

    yield registry

    registry.detach()


@pytest.fixture
def scope() -> Scope:
    return Scope()


@pytest.fixture
def store() -> MemoryCacheStore:
    return MemoryCacheStore()


@pytest.fixture(params=["uncached", "cached"])
def gate(
    request: pytest.FixtureRequest,
    db: Session,
    registry: ModelRegistry,
    scope: Scope,
    store: MemoryCacheStore,
) -> Gatekeeper:
    """Gatekeeper on each clipboard.

    Every test using this fixture runs twice: once checking through SQL and
    once through a CachedClipboard on a memory store, so both clipboards are
    held to the same answers.
    """
    if request.param == "cached":
        return Gatekeeper(db, registry, scope, store=store)
    return Gatekeeper(db, registry, scope)


@pytest.fixture
def uncached_gate(db: Session, registry: ModelRegistry, scope: Scope) -> Gatekeeper:
    """Gatekeeper using the uncached clipboard."""
    return Gatekeeper(db, registry, scope)


@pytest.fixture
def cached_gate(db: Session, registry: ModelRegistry, scope: Scope, store: MemoryCacheStore) -> Gatekeeper:
    """Gatekeeper checking through a CachedClipboard on a memory store."""
    return Gatekeeper(db, registry, scope, store=store)


# ============================================================
# Model Fixtures
# ============================================================


@pytest.fixture
def user(db: Session) -> User:
    """Create a persisted user.

    Returns:
        A flushed User instance
    """
    user = UserFactory.build()
    db.add(user)
    db.flush()
    return user


@pytest.fixture
def other_user(db: Session) -> User:
    user = UserFactory.build()
    db.add(user)
    db.flush()
    return user


@pytest.fixture
def post(db: Session) -> Post:
    post = PostFactory.build()
    db.add(post)
    db.flush()
    return post


@pytest.fixture
def other_post(db: Session) -> Post:
    post = PostFactory.build()
    db.add(post)
    db.flush()
    return post


@pytest.fixture
def account(db: Session) -> Account:
    account = AccountFactory.build()
    db.add(account)
    db.flush()
    return account


@pytest.fixture
def organization(db: Session) -> Organization:
    organization = OrganizationFactory.build()
    db.add(organization)
    db.flush()
    return organization


@pytest.fixture
def member(db: Session) -> Member:
    member = MemberFactory.build()
    db.add(member)
    db.flush()
    return member
