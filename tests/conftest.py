"""
Pytest configuration and shared fixtures.

Every test gets its own in-memory SQLite database; API tests run the full
application (lifespan included, so tables and the super-admin exist).
"""

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

import workbench.models  # noqa: F401
from workbench.api.routes import RESOURCE_ROUTES
from workbench.core.config import Settings
from workbench.db.base import Base
from workbench.db.session import create_db_engine, create_session_factory
from workbench.main import create_app
from workbench.models.role import Role
from workbench.models.user import User, UserStatus
from workbench.services.auth_service import AuthService
from workbench.services.resource_service import ResourceRegistry
from workbench.services.role_service import role_service
from workbench.services.token_service import TokenService
from workbench.services.user_service import user_service

API = "/v1"
ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "adminpass123"
DEFAULT_PASSWORD = "password123"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        ENV="test",
        DEBUG=False,
        DATABASE_URL="sqlite://",
        JWT_SECRET="test-secret",
        SUPER_ADMIN_EMAIL=ADMIN_EMAIL,
        SUPER_ADMIN_PASSWORD=ADMIN_PASSWORD,
        SEED_ON_STARTUP=True,
        SMTP_HOST=None,
    )


@pytest.fixture
def db(settings: Settings) -> Generator[Session, None, None]:
    engine = create_db_engine(settings.DATABASE_URL)
    Base.metadata.create_all(bind=engine)
    session = create_session_factory(engine)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def registry(settings: Settings) -> ResourceRegistry:
    registry = ResourceRegistry(settings.HTTP_METHOD_ACTIONS)
    for mount_path, resource, _router, methods in RESOURCE_ROUTES:
        registry.register(mount_path, resource, methods)
    return registry


@pytest.fixture
def token_service(settings: Settings) -> TokenService:
    return TokenService(settings)


@pytest.fixture
def auth_service(token_service: TokenService) -> AuthService:
    return AuthService(token_service)


@pytest.fixture
def make_role(db: Session):
    def _make(name: str = "Editor", description: str = None) -> Role:
        return role_service.create(db, name, description)
    return _make


@pytest.fixture
def make_user(db: Session, make_role):
    def _make(email: str = "jane@example.com", role: Role = None, password: str = DEFAULT_PASSWORD) -> User:
        role = role or role_service.get_by_name(db, "Member") or make_role("Member")
        return user_service.create(
            db, "Jane Doe", email, password, role.id, status=UserStatus.Active
        )
    return _make


@pytest.fixture
def client(settings: Settings) -> Generator[TestClient, None, None]:
    app = create_app(settings)
    with TestClient(app) as test_client:
        yield test_client


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def login(client: TestClient, email: str, password: str) -> dict:
    response = client.post(f"{API}/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return response.json()["data"]


@pytest.fixture
def admin_headers(client: TestClient) -> dict:
    return bearer(login(client, ADMIN_EMAIL, ADMIN_PASSWORD)["tokens"]["access"]["token"])
