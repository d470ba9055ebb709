import os
import tempfile

# Must be set before almoxtrack.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="almoxtrack-uploads-"))

from datetime import datetime, timedelta  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from almoxtrack.database import get_db, init_db  # noqa: E402
from almoxtrack.main import app  # noqa: E402
from almoxtrack.models.product import MaterialType  # noqa: E402
from almoxtrack.schemas.product import ProductCreate  # noqa: E402
from almoxtrack.services import auth_service, product_service  # noqa: E402

RESPONSIBLE = "Maria Oliveira"


def make_session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    return engine, sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def session_factory():
    engine, factory = make_session_factory()
    yield factory
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(session_factory):
    with session_factory() as session:
        user = auth_service.create_user(session, "moliveira", "secret", display_name=RESPONSIBLE)
        token = auth_service.create_access_token(user)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(session_factory):
    with session_factory() as session:
        user = auth_service.create_user(session, "chefe", "secret", display_name="Chefe", role="admin")
        token = auth_service.create_access_token(user)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def make_product(db):
    def _make(name="Caneta Azul", code="", quantity=0, type=MaterialType.CONSUMABLE, **kwargs):
        data = ProductCreate(name=name, code=code, initial_quantity=quantity, type=type, **kwargs)
        return product_service.create_product(db, data, responsible=RESPONSIBLE)

    return _make


@pytest.fixture
def day():
    """Returns a datetime `n` days after a fixed base date, at the given hour."""
    base = datetime(2024, 5, 20)

    def _day(n=0, hour=10):
        return base + timedelta(days=n, hours=hour)

    return _day
