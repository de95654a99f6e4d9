"""
Products router.

Public listing/detail endpoints and admin-only create, update and delete.
"""
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from storeapi.auth.middleware import require_admin
from storeapi.auth.models import User
from storeapi.auth.users import get_db_session
from storeapi.base_microservice import ApiResponse, BaseMicroservice
from storeapi.errors import NotFound, ValidationFailed
from storeapi.products.query import ProductQueryEngine, parse_listing_params
from storeapi.products.repository import ProductRepository
from storeapi.products.schemas import ProductCreate, ProductUpdate, serialize_product

# Initialize router
router = APIRouter(tags=["products"])
products_service = BaseMicroservice("products")


def get_product_repository(db: AsyncSession = Depends(get_db_session)) -> ProductRepository:
    return ProductRepository(db)


async def _get_or_404(products: ProductRepository, product_id: str):
    product = await products.get(product_id)
    if product is None:
        raise NotFound("Product not found")
    return product


@router.get("")
async def list_products(
    request: Request,
    products: ProductRepository = Depends(get_product_repository),
):
    """
    List active products.

    Query parameters: page, limit, category, brand, search, sort
    (price_asc, price_desc, name_asc, name_desc; default newest first),
    minPrice, maxPrice.
    """
    params = parse_listing_params(request.query_params)
    page = await ProductQueryEngine(products).list(params)
    return ApiResponse(**page.to_dict(serialize_product))


@router.get("/{product_id}")
async def get_product(
    product_id: str,
    products: ProductRepository = Depends(get_product_repository),
):
    """Get a single product by id."""
    product = await _get_or_404(products, product_id)
    return products_service.response(data=serialize_product(product))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_product(
    product_data: ProductCreate,
    admin: User = Depends(require_admin),
    products: ProductRepository = Depends(get_product_repository),
):
    """Create a product. Admin only."""
    try:
        product = await products.create(product_data.to_fields())
    except IntegrityError as e:
        await products.db.rollback()
        raise ValidationFailed("SKU already exists") from e

    products_service.log_event("product.created", {"id": product.id, "by": admin.id})
    return products_service.response(
        data=serialize_product(product),
        status_code=status.HTTP_201_CREATED,
    )


@router.put("/{product_id}")
async def update_product(
    product_id: str,
    update_data: ProductUpdate,
    admin: User = Depends(require_admin),
    products: ProductRepository = Depends(get_product_repository),
):
    """Update a product. Admin only."""
    product = await _get_or_404(products, product_id)
    try:
        product = await products.update(product, update_data.to_fields())
    except IntegrityError as e:
        await products.db.rollback()
        raise ValidationFailed("SKU already exists") from e

    products_service.log_event("product.updated", {"id": product.id, "by": admin.id})
    return products_service.response(data=serialize_product(product))


@router.delete("/{product_id}")
async def delete_product(
    product_id: str,
    admin: User = Depends(require_admin),
    products: ProductRepository = Depends(get_product_repository),
):
    """Permanently delete a product. Admin only."""
    product = await _get_or_404(products, product_id)
    await products.delete(product)

    products_service.log_event("product.deleted", {"id": product_id, "by": admin.id})
    return products_service.response(message="Product removed")
