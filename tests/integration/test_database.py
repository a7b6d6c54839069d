"""Integration tests for engine and session helpers."""

import pytest
from sqlalchemy import func, select, text

from rolegate import Base, Gatekeeper, ModelRegistry
from rolegate.config import Settings
from rolegate.core.database import create_db_engine, create_session_factory, session_scope
from rolegate.modules.identity import Permission
from tests.models import User


pytestmark = pytest.mark.integration


@pytest.fixture
def file_engine(tmp_path):
    engine = create_db_engine(Settings(_env_file=None, database_url=f"sqlite:///{tmp_path / 'gate.db'}"))
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


def test_sqlite_foreign_keys_enabled(file_engine):
    with file_engine.connect() as conn:
        assert conn.execute(text("PRAGMA foreign_keys")).scalar() == 1


def test_session_scope_commits(file_engine, registry: ModelRegistry):
    factory = create_session_factory(file_engine)

    with session_scope(factory) as session:
        user = User(name="Ada")
        session.add(user)
        session.flush()
        Gatekeeper(session, registry).allow(user).to("edit")

    with factory() as session:
        assert session.scalar(select(func.count()).select_from(Permission)) == 1


def test_session_scope_rolls_back(file_engine, registry: ModelRegistry):
    factory = create_session_factory(file_engine)

    with pytest.raises(RuntimeError):
        with session_scope(factory) as session:
            user = User(name="Ada")
            session.add(user)
            session.flush()
            Gatekeeper(session, registry).allow(user).to("edit")
            raise RuntimeError("boom")

    with factory() as session:
        assert session.scalar(select(func.count()).select_from(Permission)) == 0
