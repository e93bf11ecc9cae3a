"""Pytest bootstrap: environment, in-memory database and model factories."""

import os
import sys
from datetime import timedelta
from pathlib import Path

# Settings are read at import time, so the environment must be seeded first.
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("EMAIL_NOTIFICATIONS_ENABLED", "false")
os.environ.setdefault("TELEGRAM_ENABLED", "false")

# Ensure project root is on sys.path so `import opportunity_board` works
PROJECT_ROOT = Path(__file__).resolve().parents[1]
project_root_str = str(PROJECT_ROOT)
if project_root_str not in sys.path:
    sys.path.insert(0, project_root_str)

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from opportunity_board import models
from opportunity_board.database import Base
from opportunity_board.models import Friendship, PrivacyLevel
from opportunity_board.utils.clock import utcnow


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def db_session(engine):
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def make_user(db_session):
    counter = {"n": 0}

    def _make(
        first_name: str = "User",
        *,
        email: str = None,
        role: str = "user",
        privacy_level: PrivacyLevel = PrivacyLevel.PUBLIC,
        password_hash: str = "hash",
        **fields,
    ) -> models.User:
        counter["n"] += 1
        fields.setdefault("is_active", True)
        user = models.User(
            first_name=first_name,
            last_name="Tester",
            email=email or f"user{counter['n']}@example.com",
            password_hash=password_hash,
            role=role,
            privacy_level=privacy_level,
            **fields,
        )
        db_session.add(user)
        db_session.flush()
        db_session.add(models.UserProfile(
            user_id=user.id,
            education=[],
            experience=[],
            skills=[],
            contact_urls=[],
        ))
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make


@pytest.fixture
def make_organization(db_session):
    counter = {"n": 0}

    def _make(name: str = None) -> models.Organization:
        counter["n"] += 1
        organization = models.Organization(name=name or f"Organization {counter['n']}")
        db_session.add(organization)
        db_session.commit()
        db_session.refresh(organization)
        return organization

    return _make


@pytest.fixture
def make_category(db_session):
    counter = {"n": 0}

    def _make(name: str = None) -> models.Category:
        counter["n"] += 1
        category = models.Category(name=name or f"Category {counter['n']}")
        db_session.add(category)
        db_session.commit()
        db_session.refresh(category)
        return category

    return _make


@pytest.fixture
def make_opportunity(db_session, make_organization, make_category):
    counter = {"n": 0}

    def _make(
        title: str = None,
        *,
        organization: models.Organization = None,
        category: models.Category = None,
        **fields,
    ) -> models.Opportunity:
        counter["n"] += 1
        fields.setdefault("deadline", utcnow() + timedelta(days=30))
        opportunity = models.Opportunity(
            title=title or f"Opportunity {counter['n']}",
            description="Details",
            organization_id=(organization or make_organization()).id,
            category_id=(category or make_category()).id,
            **fields,
        )
        db_session.add(opportunity)
        db_session.commit()
        db_session.refresh(opportunity)
        return opportunity

    return _make


@pytest.fixture
def befriend(db_session):
    def _befriend(a: models.User, b: models.User) -> Friendship:
        friendship = Friendship(user_id=a.id, friend_id=b.id)
        db_session.add(friendship)
        db_session.commit()
        return friendship

    return _befriend
