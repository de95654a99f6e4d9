"""
Test fixtures: an app bound to a fresh in-memory SQLite database per test.

ASGITransport does not run the lifespan, so tables are created here.
Helpers open their own short-lived sessions so no transaction stays open
while the app handles a request.
"""
from datetime import datetime, timedelta

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from storeapi.auth.models import ROLE_ADMIN, ROLE_USER, User
from storeapi.base_microservice import Settings, create_engine_for, init_models
from storeapi.main import create_app
from storeapi.products.models import Product

TEST_SECRET = "test-signing-secret-0123456789abcdef"
BASE_TIME = datetime(2024, 1, 1, 12, 0, 0)


@pytest.fixture
def settings():
    return Settings(database_url="sqlite+aiosqlite:///:memory:", jwt_secret=TEST_SECRET)


@pytest_asyncio.fixture
async def app(settings):
    engine = create_engine_for(settings.database_url)
    await init_models(engine)
    application = create_app(settings, engine=engine)
    yield application
    await engine.dispose()


@pytest_asyncio.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def create_user(app):
    """Factory: insert a user directly and return it."""
    async def _create(email="user@example.com", role=ROLE_USER, password="secret123", name="Test User", is_active=True):
        async with app.state.session_factory() as session:
            user = User(
                name=name,
                email=email.lower(),
                hashed_password=User.get_password_hash(password),
                role=role,
                is_active=is_active,
            )
            session.add(user)
            await session.commit()
            await session.refresh(user)
            return user
    return _create


@pytest_asyncio.fixture
async def admin(create_user):
    return await create_user(email="admin@example.com", role=ROLE_ADMIN, name="Admin User")


@pytest_asyncio.fixture
async def regular_user(create_user):
    return await create_user(email="shopper@example.com", role=ROLE_USER, name="Shopper")


@pytest.fixture
def auth_headers(app):
    """Build an Authorization header carrying a token for the given user."""
    def _headers(user):
        token = app.state.token_service.issue(user.id)
        return {"Authorization": f"Bearer {token}"}
    return _headers


@pytest.fixture
def create_product(app):
    """Factory: insert a product directly and return it."""
    async def _create(minutes=0, **fields):
        values = {
            "name": "Plain Product",
            "description": "A plain product",
            "price": 10.0,
            "stock": 5,
            "category": "Unisex",
            "created_at": BASE_TIME + timedelta(minutes=minutes),
        }
        values.update(fields)
        async with app.state.session_factory() as session:
            product = Product(**values)
            session.add(product)
            await session.commit()
            await session.refresh(product)
            return product
    return _create


@pytest_asyncio.fixture
async def catalog(create_product):
    """A small catalog with a mix of categories, brands and an inactive item."""
    products = [
        await create_product(minutes=1, name="Classic White Tee", description="Premium cotton tee",
                             price=25.0, category="Men", brand="Generic"),
        await create_product(minutes=2, name="Denim Jacket", description="Sturdy denim jacket",
                             price=80.0, category="Men", brand="Levi's"),
        await create_product(minutes=3, name="Graphic Tee", description="Printed front",
                             price=30.0, category="Men", brand="StreetWear"),
        await create_product(minutes=4, name="Vintage Tee", description="Old stock",
                             price=15.0, category="Men", brand="Generic", is_active=False),
        await create_product(minutes=5, name="Summer Dress", description="Light tee dress",
                             price=45.0, category="Women", brand="Generic Co"),
        await create_product(minutes=6, name="Kids Hoodie", description="Warm hoodie",
                             price=20.0, category="Kids", brand="Tiny"),
    ]
    return {p.name: p for p in products}
