import os
import tempfile
from datetime import date, time
from typing import Optional

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("API_LOG_PATH", os.path.join(tempfile.gettempdir(), "travelcompanion-tests", "api.log"))

import pytest
from fastapi import Header, HTTPException
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import models  # noqa: F401
from database import Base, get_db
from main import app
from models.Trip import Trip
from models.User import User
from services.auth_service import get_current_user_id
from services.exceptions import LocationNotFound, RouteUnavailable
from services.routing_service import RouteProvider, RouteResult, get_route_provider

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


@event.listens_for(engine, "connect")
def _sqlite_on_connect(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()
    dbapi_connection.isolation_level = None


@event.listens_for(engine, "begin")
def _sqlite_begin(conn):
    conn.exec_driver_sql("BEGIN")


TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)

# Places along the 52nd parallel; 0.1 degree of longitude there is ~6.9 km
PLACES = {
    "leiden": (52.0, 4.0),
    "alphen": (52.0, 4.5),
    "utrecht": (52.0, 4.9),
    "amersfoort": (52.0, 5.0),
    "groningen": (53.2, 6.6),
}


def straight_line(start, end, steps=50):
    return [
        (start[0] + (end[0] - start[0]) * i / steps, start[1] + (end[1] - start[1]) * i / steps)
        for i in range(steps + 1)
    ]


class FakeRouteProvider(RouteProvider):
    """Looks places up in PLACES and draws straight-line routes."""

    def __init__(self, places=None, route_fails=False):
        super().__init__()
        self.places = dict(places or PLACES)
        self.route_fails = route_fails

    async def geocode(self, location):
        key = (location or "").strip().lower()
        if key not in self.places:
            raise LocationNotFound(f"Unable to geocode '{location}'")
        return self.places[key]

    async def route(self, start, end, mode):
        if self.route_fails:
            raise RouteUnavailable()
        polyline = straight_line(start, end)
        return RouteResult(polyline=polyline, distance_m=10000.0, duration_s=600.0, instructions=[])


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def route_provider():
    return FakeRouteProvider()


def _header_user(authorization: Optional[str] = Header(None)) -> str:
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Authentication required")
    return authorization[len("Bearer "):]


@pytest.fixture
def client(db, route_provider):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_route_provider] = lambda: route_provider
    app.dependency_overrides[get_current_user_id] = _header_user
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def auth(uid: str) -> dict:
    """Request headers for user `uid`; the test auth override trusts the token as the uid."""
    return {"Authorization": f"Bearer {uid}"}


def make_user(db, uid: str) -> User:
    user = User(firebase_uid=uid, username=uid, email=f"{uid}@example.com")
    db.add(user)
    db.commit()
    return user


def make_trip(db, owner_id: str, source: str, destination: str, travel_date=date(2026, 11, 1),
              transport_mode="car", status="active", with_route=True) -> Trip:
    start = PLACES.get(source.lower())
    end = PLACES.get(destination.lower())
    trip = Trip(
        owner_id=owner_id,
        source=source,
        destination=destination,
        source_lat=start[0] if start else None,
        source_lng=start[1] if start else None,
        destination_lat=end[0] if end else None,
        destination_lng=end[1] if end else None,
        travel_date=travel_date,
        travel_time=time(9, 0),
        transport_mode=transport_mode,
        optimization_mode="shortest",
        status=status,
        route_geometry=[list(p) for p in straight_line(start, end)] if (with_route and start and end) else None,
    )
    db.add(trip)
    db.commit()
    db.refresh(trip)
    return trip
