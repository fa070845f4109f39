import os
import tempfile

_DB_DIR = tempfile.mkdtemp(prefix="marketplace-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_DB_DIR, 'test.db')}"
os.environ["CELERY_BROKER_URL"] = "memory://"
os.environ["CELERY_RESULT_BACKEND"] = "cache+memory://"
os.environ["CELERY_TASK_ALWAYS_EAGER"] = "true"
os.environ["PLATFORM_FEE"] = "1.00"

import pytest
from fastapi.testclient import TestClient

from marketplace.api.deps import get_catalog
from marketplace.data.database import Base, SessionLocal, engine
from marketplace.main import app
from tests.support import FakeCatalog, SELLER_A, SELLER_B, SELLER_C, create_shopper


@pytest.fixture(autouse=True)
def fresh_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def catalog():
    c = FakeCatalog()
    c.add(1, SELLER_A, {11: 40, 12: 75})
    c.add(2, SELLER_B, {21: 70})
    c.add(3, SELLER_C, {31: 500})
    return c


@pytest.fixture
def client(catalog):
    app.dependency_overrides[get_catalog] = lambda: catalog
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def shopper(client):
    return create_shopper(client)
