import os
import tempfile
from decimal import Decimal

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_FILE", os.path.join(tempfile.gettempdir(), "cyberbill-tests.log"))

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from cyberbill.config.database import Base, build_engine, get_db
from cyberbill import models  # noqa: F401
from cyberbill.core.security import get_password_hash
from cyberbill.main import app
from cyberbill.models import Customer, Product, Supplier, User
from cyberbill.services.id_generator import id_generator


@pytest.fixture
def engine():
    engine = build_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def file_session_factory(tmp_path):
    """Sessions on a SQLite file, so each thread gets its own connection"""
    engine = build_engine(f"sqlite:///{tmp_path / 'cyberbill.db'}")
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


def make_owner(db, email="owner@example.com") -> User:
    user = User(email=email, full_name="Shop Owner", hashed_password=get_password_hash("secret123"))
    db.add(user)
    db.flush()
    id_generator.seed(db, user.id)
    db.commit()
    return user


@pytest.fixture
def owner(db):
    return make_owner(db)


@pytest.fixture
def other_owner(db):
    return make_owner(db, email="other@example.com")


@pytest.fixture
def make_product(db, owner):
    counter = {"value": 0}

    def _make(name=None, price="50.00", stock=10, reorder_level=10, owner_id=None, **extra):
        counter["value"] += 1
        product = Product(
            user_id=owner_id or owner.id,
            product_id=f"TP{counter['value']:04d}",
            name=name or f"Product {counter['value']}",
            category="General",
            price=Decimal(price),
            stock=stock,
            reorder_level=reorder_level,
            **extra
        )
        db.add(product)
        db.commit()
        return product

    return _make


@pytest.fixture
def make_customer(db, owner):
    counter = {"value": 0}

    def _make(name=None, total_due="0", owner_id=None):
        counter["value"] += 1
        customer = Customer(
            user_id=owner_id or owner.id,
            customer_id=f"TC{counter['value']:04d}",
            name=name or f"Customer {counter['value']}",
            phone="9876543210",
            total_due=Decimal(total_due),
        )
        db.add(customer)
        db.commit()
        return customer

    return _make


@pytest.fixture
def supplier(db, owner):
    supplier = Supplier(user_id=owner.id, supplier_id="TS0001", name="Acme Wholesale", phone="0112223334")
    db.add(supplier)
    db.commit()
    return supplier


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


def register_and_login(client, email="admin@example.com", password="secret123"):
    response = client.post("/api/v1/auth/register", json={
        "email": email, "password": password, "full_name": "Admin"
    })
    assert response.status_code == 201, response.text
    response = client.post("/api/v1/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
def auth_headers(client):
    return register_and_login(client)


@pytest.fixture
def register_admin(client):
    def _register(email="admin@example.com", password="secret123"):
        return register_and_login(client, email=email, password=password)

    return _register
