"""Pytest fixtures: in-memory database, API client, catalogue and promo codes."""

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlmodel import SQLModel, Session, create_engine
from sqlmodel.pool import StaticPool

import app.models  # noqa: F401  (registers tables)
from app.api.deps import access_security, get_db
from app.core.security import hash_password
from app.main import app as fastapi_app
from app.models import AdminUser, Product, ProductVariant, PromoCode, DiscountType


@pytest.fixture
def session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session


@pytest.fixture
def client(session):
    def get_db_override():
        return session

    fastapi_app.dependency_overrides[get_db] = get_db_override
    yield TestClient(fastapi_app)
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def admin(session) -> AdminUser:
    admin = AdminUser(username="admin", password_hash=hash_password("s3cret-pass", iterations=1000))
    session.add(admin)
    session.commit()
    session.refresh(admin)
    return admin


@pytest.fixture
def admin_headers(admin) -> dict:
    token = access_security.create_access_token(subject={"id": admin.id})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def catalogue(session) -> dict:
    """
    cube:    300৳, variant 200g, 10 in stock
    teddy:   500৳, variant overrides price to 550৳, 800g, 5 in stock
    puzzle:  200৳, no variants (weightless for shipping)
    """
    cube = Product(name="Rubik Cube", handle="rubik-cube", price=Decimal("300.00"))
    teddy = Product(name="Teddy Bear", handle="teddy-bear", price=Decimal("500.00"))
    puzzle = Product(name="Jigsaw Puzzle", handle="jigsaw-puzzle", price=Decimal("200.00"))
    session.add_all([cube, teddy, puzzle])
    session.commit()

    cube_variant = ProductVariant(
        product_id=cube.id, title="3x3", sku="CUBE-3", weight=Decimal("0.200"), inventory_quantity=10
    )
    teddy_variant = ProductVariant(
        product_id=teddy.id, title="Large", sku="TEDDY-L", price=Decimal("550.00"),
        weight=Decimal("0.800"), inventory_quantity=5
    )
    session.add_all([cube_variant, teddy_variant])
    session.commit()

    return {
        "cube": cube,
        "teddy": teddy,
        "puzzle": puzzle,
        "cube_variant": cube_variant,
        "teddy_variant": teddy_variant,
    }


@pytest.fixture
def make_promo(session):
    """Persist a promo code; defaults to an active, store-wide 10% code."""

    def _make(**overrides) -> PromoCode:
        fields = {
            "name": "Test promo",
            "code": "SAVE10",
            "discount_type": DiscountType.PERCENTAGE,
            "discount_value": Decimal("10"),
        }
        fields.update(overrides)
        promo = PromoCode(**fields)
        session.add(promo)
        session.commit()
        session.refresh(promo)
        return promo

    return _make
