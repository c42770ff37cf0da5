import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"

from datetime import date
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from stockbook.core import Base, get_db
from stockbook.core.rbac import Role
from stockbook.core.security import create_access_token, get_password_hash
from stockbook.models import AppUser, FinishedGood, Location, RawMaterial
from stockbook.schemas.stock import StockMovementCreate
from stockbook.services import StockService
from main import app

PASSWORD = "Password1"

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


@event.listens_for(engine, "connect")
def _enable_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


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
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def _make_user(db, username, role):
    user = AppUser(
        username=username,
        email=f"{username}@example.com",
        name=username.title(),
        hashed_password=get_password_hash(PASSWORD),
        role=role,
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def users(db):
    return {
        "admin": _make_user(db, "admin", Role.ADMIN.value),
        "warehouse": _make_user(db, "warehouse", Role.OFFICE_WAREHOUSE.value),
        "purchasing": _make_user(db, "purchasing", Role.OFFICE_PURCHASING.value),
        "legacy": _make_user(db, "legacy", "FACTORY"),
    }


@pytest.fixture
def headers(users):
    return {
        name: {"Authorization": f"Bearer {create_access_token({'sub': str(user.id)})}"}
        for name, user in users.items()
    }


@pytest.fixture
def location(db):
    loc = Location(name="Main Warehouse", is_default=True)
    db.add(loc)
    db.commit()
    db.refresh(loc)
    return loc


@pytest.fixture
def material(db):
    item = RawMaterial(kode="RM-001", name="Sugar", moq=Decimal("10"), current_stock=Decimal("0"))
    db.add(item)
    db.commit()
    db.refresh(item)
    return item


@pytest.fixture
def product(db):
    item = FinishedGood(name="Syrup 1L", current_stock=Decimal("0"))
    db.add(item)
    db.commit()
    db.refresh(item)
    return item


@pytest.fixture
def move(db):
    """Record a movement through the service: move(item, "IN", "10", date(...))"""

    def _move(item, movement_type, quantity, on_date, location_id=None):
        if isinstance(item, RawMaterial):
            ref = {"raw_material_id": item.id}
        else:
            ref = {"finished_good_id": item.id, "location_id": location_id}
        data = StockMovementCreate(
            movement_type=movement_type,
            quantity=Decimal(quantity),
            movement_date=on_date,
            **ref,
        )
        return StockService.create_movement(db, data)

    return _move


@pytest.fixture
def today():
    return date.today()
