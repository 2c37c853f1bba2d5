import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from backend.auth import jwt_handler
from backend.database import Base, get_db
from backend.main import app
from backend.models.course import Course  # noqa: F401
from backend.models.lesson import Lesson  # noqa: F401
from backend.models.user import User  # noqa: F401


@pytest.fixture
def db_engine():
    engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
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
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def admin_headers():
    token = jwt_handler.create_access_token(user_id=1, email='admin@example.com', role='admin')
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
def student_headers():
    token = jwt_handler.create_access_token(user_id=2, email='student@example.com', role='student')
    return {'Authorization': f'Bearer {token}'}
