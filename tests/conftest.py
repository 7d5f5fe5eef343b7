# tests/conftest.py
"""Shared fixtures: an in-memory SQLite database behind the real SessionLocal."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

# Must be set before parkpay.config is imported anywhere
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.pop("API_KEY", None)
os.environ.pop("IMAGE_UPLOAD_URL", None)

import pytest
from parkpay.database import Base, engine, SessionLocal
from parkpay.schemas.company_settings import CompanySettingsIn, TariffsIn
import parkpay.models  # noqa


@pytest.fixture
def tables():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db(tables):
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def flat_tariffs():
    """Same rate day and night, so fees do not depend on the wall clock."""
    return CompanySettingsIn(tariffs=TariffsIn(
        day_rate=2, night_rate=2, exchange_rate=40, night_start="18:00", night_end="06:00",
    ))
