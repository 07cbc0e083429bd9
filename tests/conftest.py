import pytest
from fastapi.testclient import TestClient

from storefront import app
from storefront.core.dependencies import get_cart_service, get_coupon_service
from storefront.db.database import Database
from storefront.services import CartService, CouponService

from .fakes import seeded_store

MAX_ITEMS = 3


@pytest.fixture
def store():
    """Fresh in-memory catalog/cart/coupon store for each test"""
    return seeded_store()


@pytest.fixture
def cart_service(store):
    return CartService(cart_store=store, catalog=store, coupon_store=store, max_items=MAX_ITEMS)


@pytest.fixture
def coupon_service(store):
    return CouponService(coupon_store=store, cart_store=store, catalog=store)


@pytest.fixture
def test_client(store):
    """
    TestClient with the services wired to the in-memory store.
    The lifespan is not run, so no database is touched.
    """
    app.dependency_overrides[get_cart_service] = lambda: CartService(store, store, store, max_items=MAX_ITEMS)
    app.dependency_overrides[get_coupon_service] = lambda: CouponService(store, store, store)

    client = TestClient(app)
    yield client

    app.dependency_overrides.clear()


@pytest.fixture
async def database(tmp_path):
    """File-backed SQLite database with all tables created"""
    database = Database(f"sqlite+aiosqlite:///{tmp_path / 'storefront.db'}")
    await database.connect()
    await database.init_db()

    yield database

    await database.disconnect()


@pytest.fixture
async def session(database):
    async with database.session() as db:
        yield db
