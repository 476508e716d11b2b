import sys
import uuid
from datetime import datetime, timedelta
from pathlib import Path

import pytest
import sqlalchemy as sa
from alembic import command
from alembic.config import Config as AlembicConfig
from flask_jwt_extended import create_access_token
from sqlalchemy.orm import scoped_session, sessionmaker

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from gestaomei import create_app
from gestaomei.core.users.models import User
from gestaomei.core.utils.clock import FixedClock
from gestaomei.extensions import db


# ==================== Pytest Markers ====================
def pytest_configure(config):
    """Register custom pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests (no external dependencies)")
    config.addinivalue_line("markers", "integration: Integration tests (database, API)")


def _alembic_config() -> AlembicConfig:
    cfg = AlembicConfig()
    cfg.set_main_option("script_location", str(ROOT / "gestaomei" / "migrations"))
    cfg.set_main_option("gestaomei_env", "testing")
    return cfg


@pytest.fixture(scope="session", autouse=True)
def migrated_db():
    """Apply migrations once per session to mirror production schema."""
    cfg = _alembic_config()
    command.upgrade(cfg, "head")
    yield
    command.downgrade(cfg, "base")


def _enable_sqlite_savepoints(engine) -> None:
    """Let SQLAlchemy emit BEGIN itself so SAVEPOINTs nest inside the test transaction."""

    @sa.event.listens_for(engine, "connect")
    def _no_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @sa.event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")


@pytest.fixture()
def app(migrated_db):
    """
    Create a per-test app with an isolated database transaction.

    Each test runs inside a transaction + savepoint so data committed by the
    services rolls back afterwards.
    """
    app = create_app("testing")
    ctx = app.app_context()
    ctx.push()

    engine = db.engine
    if engine.dialect.name == "sqlite":
        _enable_sqlite_savepoints(engine)

    connection = engine.connect()
    transaction = connection.begin()

    # Service-level commit() and rollback() only touch a savepoint.
    session_factory = scoped_session(
        sessionmaker(
            bind=connection,
            expire_on_commit=False,
            join_transaction_mode="create_savepoint",
        )
    )
    db.session = session_factory

    try:
        yield app
    finally:
        session_factory.remove()
        transaction.rollback()
        connection.close()
        ctx.pop()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def freeze(app):
    """Pin the app clock: ``freeze(date(2024, 5, 20))``."""

    def _freeze(at):
        app.extensions["clock"] = FixedClock(at)
        return app.extensions["clock"]

    return _freeze


@pytest.fixture()
def make_user(app):
    counter = {"n": 0}

    def _make(status: str = "active", **fields) -> User:
        counter["n"] += 1
        fields.setdefault("email", f"mei{counter['n']}-{uuid.uuid4().hex[:8]}@example.com")
        fields.setdefault("name", f"MEI {counter['n']}")
        fields.setdefault("password_hash", "not-a-real-hash")
        if status == "trial":
            fields.setdefault("trial_start", datetime(2024, 5, 1, 12, 0))
            fields.setdefault("trial_expires_at", datetime(2024, 5, 1, 12, 0) + timedelta(days=2))
        user = User(subscription_status=status, **fields)
        db.session.add(user)
        db.session.commit()
        return user

    return _make


@pytest.fixture()
def auth_headers(app):
    def _headers(user: User) -> dict:
        token = create_access_token(identity=str(user.id))
        return {"Authorization": f"Bearer {token}", "X-CSRF-Token": "test"}

    return _headers
