import os
from datetime import datetime, timedelta, timezone

TEST_DB_FILE = "test_childcare.db"
TEST_DB_URL = f"sqlite:///./{TEST_DB_FILE}"

# must be set before childcare.core.config is imported
os.environ.setdefault("DATABASE_URL", TEST_DB_URL)

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from childcare.core.config import settings  # noqa: E402
from childcare.core.deps import get_db  # noqa: E402
from childcare.core.security import hash_password  # noqa: E402
from childcare.db.base import Base  # noqa: E402
from childcare.main import app  # noqa: E402
from childcare.models.assignment import Assignment  # noqa: E402
from childcare.models.submission import Submission  # noqa: E402
from childcare.models.user import User  # noqa: E402

PASSWORD = "password123"
# hashing is slow on purpose; do it once for all seeded users
PASSWORD_HASH = hash_password(PASSWORD)

API = settings.API_PREFIX

engine = create_engine(
    TEST_DB_URL,
    connect_args={"check_same_thread": False},
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(scope="session", autouse=True)
def setup_test_db():
    """Create a fresh schema once for the whole test session."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)
    engine.dispose()
    if os.path.exists(TEST_DB_FILE):
        os.remove(TEST_DB_FILE)


@pytest.fixture(autouse=True)
def seed():
    """Seed a clean minimal dataset for each test and expose the ids."""
    db = TestingSessionLocal()
    try:
        # Clear tables (child -> parent)
        db.query(Submission).delete()
        db.query(Assignment).delete()
        db.query(User).delete()
        db.commit()

        parent = User(
            email="parent1@example.com",
            full_name="Parent One",
            child_name="Ada",
            role="parent",
            hashed_password=PASSWORD_HASH,
        )
        other_parent = User(
            email="parent2@example.com",
            full_name="Parent Two",
            role="parent",
            hashed_password=PASSWORD_HASH,
        )
        teacher = User(
            email="teacher1@example.com",
            full_name="Teacher One",
            role="teacher",
            hashed_password=PASSWORD_HASH,
        )
        admin = User(
            email="admin1@example.com",
            full_name="Admin One",
            role="admin",
            hashed_password=PASSWORD_HASH,
        )
        db.add_all([parent, other_parent, teacher, admin])
        db.commit()

        assignment = Assignment(
            skill_id="skill-art",
            title="Finger painting",
            description="Paint your favourite animal",
            instructions="Use at least three colours",
            type="homework",
            due_date=datetime.now(timezone.utc) + timedelta(days=1),
            attachments=[],
            created_by=teacher.id,
        )
        db.add(assignment)
        db.commit()

        yield {
            "parent": parent.id,
            "other_parent": other_parent.id,
            "teacher": teacher.id,
            "admin": admin.id,
            "assignment": assignment.id,
        }
    finally:
        db.close()


@pytest.fixture()
def client():
    """Test client that uses the test DB session via dependency override."""
    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def asgi_app():
    """The app with the test DB wired in, for httpx.ASGITransport."""
    app.dependency_overrides[get_db] = override_get_db
    yield app
    app.dependency_overrides.clear()


@pytest.fixture()
def anyio_backend():
    return "asyncio"


def login(client, email: str, password: str = PASSWORD) -> str:
    r = client.post(f"{API}/auth/login", json={"email": email, "password": password})
    assert r.status_code == 200, r.text
    return r.json()["data"]["access_token"]


def auth_header(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}
