import os

TEST_DB_FILE = "test_classroom.db"
TEST_DB_URL = f"sqlite:///./{TEST_DB_FILE}"

# must be set before the app (and its settings) are imported
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", TEST_DB_URL)

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from classroom.db.session import get_db  # noqa: E402
from classroom.db.base import Base  # noqa: E402
from classroom.main import app  # noqa: E402
from classroom.models.assignment import Assignment  # noqa: E402
from classroom.models.assignment_student import AssignmentStudent  # noqa: E402
from classroom.models.enums import Role  # noqa: E402
from classroom.models.submission import Submission  # noqa: E402
from classroom.models.user import User  # noqa: E402

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
def seed_data():
    """Seed two tutors and two students for each test."""
    db = TestingSessionLocal()
    try:
        # Clear tables (child -> parent)
        db.query(Submission).delete()
        db.query(AssignmentStudent).delete()
        db.query(Assignment).delete()
        db.query(User).delete()
        db.commit()

        db.add_all(
            [
                User(username="alice", email="alice@example.com", role=Role.TUTOR),
                User(username="carol", role=Role.TUTOR),
                User(username="bob", email="bob@example.com", role=Role.STUDENT),
                User(username="dave", role=Role.STUDENT),
            ]
        )
        db.commit()
        yield
    finally:
        db.close()


@pytest.fixture()
def db():
    """Session on the test database for calling services directly."""
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def users(db):
    """Seeded users keyed by username."""
    return {u.username: u for u in db.query(User).all()}


@pytest.fixture()
def client():
    """Test client that uses the test DB session via dependency override."""
    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def other_session():
    """A second, independent session standing in for a concurrent request."""
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
