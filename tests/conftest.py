# tests/conftest.py
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from propertymap import models  # noqa: F401
from propertymap.db import Base
from propertymap.errors import GeocodingError
from propertymap.main import create_app
from propertymap.schemas import Coordinates, PropertyOut, ReverseGeocodeResult
from propertymap.services import SqlPropertyStore


class FakeGeocoder:
    """Answers every point with the same address unless told otherwise."""

    def __init__(self, reverse=None, forward=None, fail=False, no_results=False):
        self.reverse = reverse or ReverseGeocodeResult(
            formatted_address="MG Road, Bengaluru, Karnataka, India",
            place_id="place-1",
            state="Karnataka",
            city="Bengaluru",
            street="MG Road",
        )
        self.forward = forward
        self.fail = fail
        self.no_results = no_results
        self.reverse_calls = []
        self.forward_calls = []

    def reverse_geocode(self, lat, lng):
        self.reverse_calls.append((lat, lng))
        if self.fail:
            raise GeocodingError("Geocoding service unavailable")
        return None if self.no_results else self.reverse

    def forward_geocode(self, address):
        self.forward_calls.append(address)
        if self.fail:
            raise GeocodingError("Geocoding service unavailable")
        return self.forward


class FakeStore:
    def __init__(self, records=None, ok=True, broken=False):
        self.records = list(records or [])
        self.ok = ok
        self.broken = broken
        self.created = []
        self.list_calls = 0

    def create_record(self, fields):
        self.created.append(fields)
        return self.ok

    def list_records(self):
        from propertymap.errors import PersistenceError
        self.list_calls += 1
        if self.broken:
            raise PersistenceError("Failed to load properties data")
        return list(self.records)


def record(id, lat=None, lng=None, broker=None, city=None, price=None, acres=None):
    return PropertyOut(id=id, latitude=lat, longitude=lng, broker=broker, city=city, price=price, acres=acres)


@pytest.fixture
def engine():
    # StaticPool keeps every connection on the same in-memory database
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def store(session_factory):
    return SqlPropertyStore(session_factory)


@pytest.fixture
def geocoder():
    return FakeGeocoder(forward=Coordinates(lat=12.9716, lng=77.5946))


@pytest.fixture
def client(store, geocoder, engine, monkeypatch):
    monkeypatch.setenv("GOOGLE_MAPS_API_KEY", "test-key")
    app = create_app(store=store, geocoder=geocoder, bind=engine)
    return TestClient(app)
