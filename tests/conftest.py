from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from flask_jwt_extended import create_access_token

from optica import create_app
from optica.config import TestConfig
from optica.extensions import db
from optica.models.catalog import User, Product, Laboratory, LegacyClient


@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    with app.test_client() as c:
        yield c


def _user(name, role, email):
    user = User(name=name, role=role, email=email, debts=Decimal("0"))
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def admin(app):
    return _user("Admin", "admin", "admin@otica.com")


@pytest.fixture
def employee(app):
    return _user("Vendedora", "employee", "vendas@otica.com")


@pytest.fixture
def customer(app):
    return _user("Maria Cliente", "customer", "maria@example.com")


def auth(user):
    token = create_access_token(identity=str(user.id))
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(admin):
    return auth(admin)


@pytest.fixture
def employee_headers(employee):
    return auth(employee)


@pytest.fixture
def products(app):
    lens = Product(name="Lente multifocal", product_type="lenses", sell_price=Decimal("300.00"))
    frame = Product(name="Armação Ray-Ban", product_type="prescription_frame",
                    sell_price=Decimal("200.00"), stock=2)
    cleaner = Product(name="Limpa lentes", product_type="clean_lens", sell_price=Decimal("20.00"))
    db.session.add_all([lens, frame, cleaner])
    db.session.commit()
    return {"lens": lens, "frame": frame, "cleaner": cleaner}


@pytest.fixture
def laboratory(app):
    lab = Laboratory(
        name="Lab Visão", phone="11999998888", email="lab@visao.com", contact_name="Carlos",
        street="Rua A", number="10", neighborhood="Centro", city="São Paulo", state="SP",
        zip_code="01001000",
    )
    db.session.add(lab)
    db.session.commit()
    return lab


@pytest.fixture
def legacy_client(app):
    client = LegacyClient(name="João Antigo", document_id="12345678901", phone="11988887777",
                          total_debt=Decimal("500.00"))
    db.session.add(client)
    db.session.commit()
    return client


@pytest.fixture
def open_register(client, admin_headers):
    r = client.post("/api/cash-registers/open", json={"opening_balance": 100}, headers=admin_headers)
    assert r.status_code == 201
    return r.get_json()


def future(days=7):
    return (datetime.now() + timedelta(days=days)).date().isoformat()


def order_payload(customer, catalog, **overrides):
    data = {
        "client_id": customer.id,
        "products": [catalog["frame"].id, catalog["cleaner"].id],
        "payment_method": "dinheiro",
        "total_price": 220,
        "discount": 0,
        "installments": 1,
    }
    data.update(overrides)
    return data


def refresh(obj):
    db.session.expire_all()
    return db.session.get(type(obj), obj.id)
