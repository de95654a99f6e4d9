#!/usr/bin/env python3
"""
End-to-end check of the product admin flow against a running server.

Creates (or resets) an admin account directly in the database, issues it a
token with the configured secret, then creates, lists and updates a product
through the HTTP API and cleans up afterwards.

This script is meant to be run directly, not through pytest.
"""
import asyncio
import os
import logging

import httpx
from dotenv import load_dotenv
from sqlalchemy import delete

# Setup logging and environment variables before importing storeapi
logging.basicConfig(level=logging.INFO)
load_dotenv()

from storeapi.auth.jwt import TokenService
from storeapi.auth.models import ROLE_ADMIN, User
from storeapi.base_microservice import create_engine_for, create_session_factory, init_models, load_settings
from storeapi.products.models import Product

TEST_ADMIN = {
    "name": "Admin User",
    "email": "admin@example.com",
    "password": "password123",
}

TEST_PRODUCT = {
    "name": "Test T-Shirt",
    "description": "A comfortable cotton t-shirt",
    "price": 29.99,
    "stock": 100,
    "category": "Men",
    "brand": "Generic",
    "sizes": ["M", "L"],
    "colors": ["Blue", "Black"],
}


async def reset_admin(session_factory) -> str:
    """Delete and recreate the test admin. Returns the admin id."""
    print("\n--- Setting up Admin User ---")
    async with session_factory() as session:
        await session.execute(delete(User).where(User.email == TEST_ADMIN["email"]))
        admin = User(
            name=TEST_ADMIN["name"],
            email=TEST_ADMIN["email"],
            hashed_password=User.get_password_hash(TEST_ADMIN["password"]),
            role=ROLE_ADMIN,
        )
        session.add(admin)
        await session.commit()
        await session.refresh(admin)
    print(f"Admin user created/reset: {admin.email}")
    return admin.id


async def check_api(api_url: str, token: str) -> bool:
    """Create, list and update a product. Returns True if every step passed."""
    headers = {"Authorization": f"Bearer {token}"}
    ok = True
    product_id = None
    async with httpx.AsyncClient(base_url=api_url, timeout=10.0) as client:
        print("Creating Product...")
        resp = await client.post("/products", json=TEST_PRODUCT, headers=headers)
        print(f"Status: {resp.status_code}")
        if resp.status_code == 201:
            print("SUCCESS: Product created")
        else:
            print(f"FAILURE: {resp.json()}")
            ok = False

        print("\nFetching Products...")
        resp = await client.get("/products", params={"search": "t-shirt", "limit": 50})
        print(f"Status: {resp.status_code}")
        found = next(
            (p for p in resp.json().get("data", []) if p["name"] == TEST_PRODUCT["name"]),
            None,
        )
        if found:
            product_id = found["id"]
            print("SUCCESS: Product found in list")
            print(f"Attributes - Sizes: {found['sizes']}, Colors: {found['colors']}")
        else:
            print("FAILURE: Product not found")
            ok = False

        if product_id:
            print("\nUpdating Product...")
            resp = await client.put(
                f"/products/{product_id}",
                json={"price": 35.99, "stock": 90},
                headers=headers,
            )
            print(f"Status: {resp.status_code}")
            if resp.status_code == 200 and resp.json()["data"]["price"] == 35.99:
                print("SUCCESS: Product updated")
            else:
                print(f"FAILURE: {resp.json()}")
                ok = False
    return ok


async def main():
    settings = load_settings()
    engine = create_engine_for(settings.database_url)
    session_factory = create_session_factory(engine)
    api_url = f"http://localhost:{os.getenv('PORT', settings.port)}/api"

    try:
        print("Connecting to database...")
        await init_models(engine)

        admin_id = await reset_admin(session_factory)
        token = TokenService(settings.jwt_secret).issue(admin_id)
        print("Generated Admin Token")

        print(f"\n--- Testing API at {api_url} ---")
        success = await check_api(api_url, token)

        print("\n--- Cleanup ---")
        async with session_factory() as session:
            await session.execute(delete(Product).where(Product.name == TEST_PRODUCT["name"]))
            await session.execute(delete(User).where(User.email == TEST_ADMIN["email"]))
            await session.commit()
        print("Cleanup Done")

        print(f"\nVerification {'PASSED' if success else 'FAILED'}")
    except (httpx.HTTPError, OSError) as e:
        print(f"Verification Failed: {e}")
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
