import pytest
from fastapi.testclient import TestClient

from backend.auth.passwords import hash_password
from backend.core.config import Settings
from backend.database import Base, build_engine, build_session_factory, init_schema
from backend.main import create_app
from backend.models.user import Role, User

PASSWORD = 'p1-secret'


@pytest.fixture
def settings() -> Settings:
    return Settings(
        app_env='test',
        database_url='sqlite://',
        access_token_secret='test-access-secret',
        refresh_token_secret='test-refresh-secret',
        token_store='database',
    )


@pytest.fixture
def app(settings: Settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def db_session():
    engine = build_engine('sqlite://')
    init_schema(engine)
    db = build_session_factory(engine)()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


def add_user(db, *, name: str, email: str, role: Role = Role.student, password: str = PASSWORD) -> User:
    user = User(name=name, email=email, hashed_password=hash_password(password), role=role.value)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def add_app_user(app):
    def _add(name: str, email: str, role: Role = Role.student) -> User:
        db = app.state.session_factory()
        try:
            return add_user(db, name=name, email=email, role=role)
        finally:
            db.close()

    return _add


@pytest.fixture
def login_as(client, add_app_user):
    """Create a user through the database and return bearer headers for it."""

    def _login(name: str, email: str, role: Role = Role.student) -> dict[str, str]:
        add_app_user(name, email, role)
        response = client.post('/auth/login', json={'email': email, 'password': PASSWORD})
        assert response.status_code == 200
        client.cookies.clear()
        return {'Authorization': f"Bearer {response.json()['accessToken']}"}

    return _login
