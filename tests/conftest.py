"""
Pytest configuration

Every test gets its own in-memory SQLite database, shared by the API client
and by the direct ``db`` session used for seeding.
"""

import os

# Settings are read at import time, so they must be in place before the app loads
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["REDIS_URL"] = ""
os.environ["DB_LOG_SLOW_QUERIES"] = "false"

from types import SimpleNamespace  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from backoffice import auth  # noqa: E402
from backoffice.config import USER_ID_HEADER  # noqa: E402
from backoffice.database import Base, get_db  # noqa: E402
from backoffice.main import app  # noqa: E402
from backoffice.models import Area, Branch, SubArea, User, UserAssignment, UserPermission  # noqa: E402

ALL_PERMISSIONS = sorted(
    value for name, value in vars(auth).items() if name.isupper() and isinstance(value, str) and "." in value
)


# ============================================================
# Database
# ============================================================


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.drop_all(bind=engine)
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


# ============================================================
# Users
# ============================================================


@pytest.fixture
def make_user(db):
    """Factory: make_user("alice", ["area.view"]) -> User"""

    def _make(username: str, permissions=(), active: bool = True) -> User:
        user = User(username=username, full_name=username.title(), active=active)
        db.add(user)
        db.flush()
        for code in permissions:
            db.add(UserPermission(user_id=user.id, code=code))
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture
def root(make_user):
    return make_user("root")


@pytest.fixture
def clerk(make_user):
    """Regular user holding every permission but no branch assignment"""
    return make_user("clerk", ALL_PERMISSIONS)


def headers_for(user: User) -> dict:
    return {USER_ID_HEADER: str(user.id)}


@pytest.fixture
def root_headers(root):
    return headers_for(root)


@pytest.fixture
def clerk_headers(clerk):
    return headers_for(clerk)


@pytest.fixture
def assign(db):
    """Factory: assign(user, branch_id=...) scopes a user to one hierarchy node"""

    def _assign(user: User, area_id=None, sub_area_id=None, branch_id=None) -> UserAssignment:
        assignment = UserAssignment(
            user_id=user.id, area_id=area_id, sub_area_id=sub_area_id, branch_id=branch_id, active=True
        )
        db.add(assignment)
        db.commit()
        return assignment

    return _assign


# ============================================================
# Hierarchy
# ============================================================


@pytest.fixture
def hierarchy(db):
    """
    North
      North One
        Harbour
      Hillside            (directly under the area)
    South
      South One
        Riverside
    """
    north, south = Area(name="North"), Area(name="South")
    db.add_all([north, south])
    db.flush()

    north_one = SubArea(name="North One", area_id=north.id)
    south_one = SubArea(name="South One", area_id=south.id)
    db.add_all([north_one, south_one])
    db.flush()

    harbour = Branch(name="Harbour", area_id=north.id, sub_area_id=north_one.id)
    hillside = Branch(name="Hillside", area_id=north.id)
    riverside = Branch(name="Riverside", area_id=south.id, sub_area_id=south_one.id)
    db.add_all([harbour, hillside, riverside])
    db.commit()

    return SimpleNamespace(
        north=north.id,
        south=south.id,
        north_one=north_one.id,
        south_one=south_one.id,
        harbour=harbour.id,
        hillside=hillside.id,
        riverside=riverside.id,
    )
