"""Pytest fixtures — a per-test SQLite database for fast, isolated tests."""
import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

from group_reminders.database import Base, get_db
from group_reminders.dependencies import get_registry, get_store
from group_reminders.main import app
from group_reminders.schemas.profile import AccountProfile
from group_reminders.services.group_session import GroupSession
from group_reminders.services.session_registry import SessionRegistry
from group_reminders.store import RemoteStore, StoreError

# Import all models so they register with Base.metadata
from group_reminders.models.profile import Profile                            # noqa: F401
from group_reminders.models.group import Group, GroupReminder, Membership    # noqa: F401


@pytest.fixture(scope="function")
def db_engine(tmp_path):
    """Create a fresh SQLite engine for each test."""
    engine = create_engine(f"sqlite:///{tmp_path / 'test.db'}", connect_args={"check_same_thread": False})

    # Enable WAL mode for better concurrency
    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(db_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture(scope="function")
def db(session_factory):
    """Yield a database session, closed after the test."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def store(session_factory):
    return RemoteStore(session_factory)


@pytest.fixture(scope="function")
def client(session_factory, store):
    """FastAPI TestClient with the database, store and registry overridden to use SQLite."""
    registry = SessionRegistry(store)

    def _override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_registry] = lambda: registry
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


class FlakyStore(RemoteStore):
    """RemoteStore that records inserts and fails the ones ``fail_when`` picks."""

    def __init__(self, session_factory, fail_when=None):
        super().__init__(session_factory)
        self.fail_when = fail_when or (lambda table, values: False)
        self.inserts: list[tuple[str, dict]] = []
        self.fail_reads = False

    def insert(self, table, values):
        self.inserts.append((table, dict(values)))
        if self.fail_when(table, values):
            raise StoreError(f"simulated failure inserting into {table}")
        return super().insert(table, values)

    def select(self, table, **kwargs):
        if self.fail_reads:
            raise StoreError("simulated read failure")
        return super().select(table, **kwargs)


@pytest.fixture(scope="function")
def flaky_store(session_factory):
    return FlakyStore(session_factory)


# ---------------------------------------------------------------------------
# Helpers: accounts and groups
# ---------------------------------------------------------------------------
def make_account(store: RemoteStore, email: str, full_name: str = None) -> AccountProfile:
    """Helper — insert a profile row directly and return it as an account."""
    row = store.insert("profiles", {"email": email, "full_name": full_name})
    return AccountProfile.model_validate(row)


def make_session(store: RemoteStore, actor: AccountProfile, **kwargs) -> GroupSession:
    """Helper — a session that confirms every prompt unless told otherwise."""
    kwargs.setdefault("confirm", lambda prompt: True)
    return GroupSession(store, actor, **kwargs)


def create_group_in_session(session: GroupSession, name: str = "Test Group", description: str = None) -> str:
    """Helper — run phase 1 and skip phase 2; returns the group id."""
    session.creation.open()
    group_id = session.creation.submit_details(name, description)
    assert group_id is not None, session.alerts
    session.creation.skip()
    return group_id


def create_test_profile(client: TestClient, email: str = "test@example.com", name: str = "Test User",
                        tz: str = "UTC") -> dict:
    """Helper — POST /api/profiles and return response JSON."""
    resp = client.post("/api/profiles/", json={
        "email": email,
        "full_name": name,
        "timezone": tz,
    })
    assert resp.status_code == 201, resp.text
    return resp.json()


def create_test_group(client: TestClient, account_id: str, name: str = "Test Group",
                      description: str = None) -> dict:
    """Helper — run the creation workflow over the API, return the selected group JSON."""
    params = {"account_id": account_id}
    assert client.post("/api/group-creation/open", params=params).status_code == 200
    resp = client.post("/api/group-creation/details", params=params, json={
        "name": name,
        "description": description,
    })
    assert resp.status_code == 201, resp.text
    resp = client.post("/api/group-creation/skip", params=params)
    assert resp.status_code == 200, resp.text
    return resp.json()["selected_group"]
