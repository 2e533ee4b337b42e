"""
Pytest configuration and fixtures for backend tests.
"""

import uuid

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from donations.models import Base, User
from donations.repositories import DonationRepository


# SQLite in-memory database for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """
    Create a fresh database session for each test.
    Uses SQLite in-memory for isolation.
    """
    Base.metadata.create_all(bind=engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def repo(db_session):
    """DonationRepository bound to the test session."""
    return DonationRepository(db_session)


@pytest.fixture
def actor_id():
    """Principal performing writes in tests."""
    return uuid.uuid4()


def make_user(db_session, email: str, first_name: str = "Test", last_name: str = "Donor") -> User:
    user = User(
        id=uuid.uuid4(),
        email=email,
        first_name=first_name,
        last_name=last_name,
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def seed_donor(db_session):
    """Create a donor user."""
    return make_user(db_session, "donor@test.com", "Dana", "Donor")


@pytest.fixture
def seed_other_donor(db_session):
    """Create a second donor user."""
    return make_user(db_session, "other@test.com", "Omar", "Other")


@pytest.fixture
def seed_donations(repo, seed_donor, seed_other_donor, actor_id):
    """
    A small mixed catalogue:

    rice   qty 10  pantry A   active    donor
    rim    qty 5   pantry B   inactive  other donor
    bread  qty 2   Bakery     active    no donor
    beans  (none)  (none)     active    donor
    """
    rice = repo.create(
        {"item": "rice", "quantity": 10, "location": "Pantry A", "user": seed_donor.id},
        actor_id=actor_id,
    )
    rim = repo.create(
        {"item": "rim", "quantity": 5, "location": "Pantry B", "active": False, "user": seed_other_donor.id},
        actor_id=actor_id,
    )
    bread = repo.create(
        {"item": "bread", "quantity": 2, "location": "Bakery"},
        actor_id=actor_id,
    )
    beans = repo.create(
        {"item": "beans", "user": str(seed_donor.id)},
        actor_id=actor_id,
    )
    return {"rice": rice, "rim": rim, "bread": bread, "beans": beans}
