import os
import tempfile
from datetime import datetime
from decimal import Decimal

# Set environment variables BEFORE any imports that might use settings
# Use a temporary directory for test database to avoid permission issues
_test_db_dir = tempfile.mkdtemp()
_test_db_path = os.path.join(_test_db_dir, "test_catalog.db")
os.environ["DATABASE_URL"] = f"sqlite:///{_test_db_path}"
os.environ["DEFAULT_ACTOR"] = "SYSTEM"
os.environ["LOG_LEVEL"] = "INFO"

import pytest
from alembic import command
from alembic.config import Config
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from catalog.core.config import settings
from catalog.db.models.product import Product as ProductModel
from catalog.events.dispatcher import EventDispatcher, ProductObserver
from catalog.main import app
from catalog.pricing.coordinator import build_default_coordinator


class RecordingObserver(ProductObserver):
    """Inline observer that keeps every event it receives."""

    priority = 0
    asynchronous = False

    def __init__(self):
        self.events = []

    def on_event(self, event):
        self.events.append(event)

    @property
    def types(self):
        return [e.type for e in self.events]


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh database for each test and run migrations."""
    temp_db_dir = tempfile.mkdtemp()
    test_db_path = os.path.join(temp_db_dir, "test.db")
    test_db_url = f"sqlite:///{test_db_path}"

    test_engine = create_engine(
        test_db_url,
        connect_args={"check_same_thread": False},
        poolclass=None,  # Don't use connection pooling for SQLite
    )

    # Enable WAL mode to reduce locking issues
    @event.listens_for(test_engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    TestingSessionLocal = sessionmaker(
        autocommit=False, autoflush=False, bind=test_engine
    )

    # Run Alembic migrations to set up the database schema
    alembic_cfg = Config("alembic.ini")
    alembic_cfg.set_main_option("sqlalchemy.url", test_db_url)
    command.upgrade(alembic_cfg, "head")

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        test_engine.dispose()

        try:
            if os.path.exists(test_db_path):
                os.remove(test_db_path)
            for suffix in ["-wal", "-shm"]:
                wal_path = f"{test_db_path}{suffix}"
                if os.path.exists(wal_path):
                    os.remove(wal_path)
            if os.path.exists(temp_db_dir):
                os.rmdir(temp_db_dir)
        except OSError as e:
            print(f"Cleanup failed: {e}")


@pytest.fixture(scope="function")
def db(db_session):
    """Alias for db_session to match test naming conventions."""
    return db_session


@pytest.fixture(scope="function")
def recorder() -> RecordingObserver:
    return RecordingObserver()


@pytest.fixture(scope="function")
def dispatcher(recorder) -> EventDispatcher:
    """Dispatcher without a worker pool, so every observer runs inline."""
    dispatcher = EventDispatcher()
    dispatcher.register(recorder)
    return dispatcher


@pytest.fixture(scope="function")
def coordinator():
    return build_default_coordinator(settings)


@pytest.fixture(scope="function")
def client(db_session, dispatcher, coordinator):
    """Create a test client with database, dispatcher and coordinator overrides."""

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    from catalog.api.deps import get_coordinator, get_db, get_dispatcher

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_dispatcher] = lambda: dispatcher
    app.dependency_overrides[get_coordinator] = lambda: coordinator

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def make_product(db):
    """Insert an active product directly, bypassing commands and events."""

    def _make(
        name="Air Zoom",
        brand="Nike",
        price="100.00",
        category="Zapatos",
        stock=10,
        active=True,
        description=None,
    ) -> ProductModel:
        product = ProductModel(
            name=name,
            brand=brand,
            price=Decimal(price),
            category=category,
            stock=stock,
            active=active,
            description=description,
            created_at=datetime(2024, 1, 15, 10, 30),
        )
        db.add(product)
        db.commit()
        db.refresh(product)
        return product

    return _make
