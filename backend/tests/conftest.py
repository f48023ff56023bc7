import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from pedident.db.session import build_engine, get_db
from pedident.main import app
from pedident.models import Base


@pytest.fixture()
def db_session_factory():
    engine = build_engine("sqlite+pysqlite:///:memory:")
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    try:
        yield factory
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(db_session_factory):
    session = db_session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def api_client(db_session_factory):
    def _get_db():
        db = db_session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _get_db
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.pop(get_db, None)


@pytest.fixture()
def patient(api_client):
    response = api_client.post(
        "/patients",
        json={"name": "Aina Binti Rahman", "ic_number": "150101-10-1234", "dentist": "Dr Lim"},
    )
    assert response.status_code == 201, response.text
    return response.json()
