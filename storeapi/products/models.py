"""
Catalog models for storeapi.

This module defines the SQLAlchemy model for products and the text-search
index over name, description and brand.
"""
from datetime import datetime

from sqlalchemy import JSON, Boolean, Column, DateTime, Float, Integer, String, Text, event, func, literal_column
from sqlalchemy.schema import DDL

from storeapi.auth.models import new_id
from storeapi.base_microservice import Base

CATEGORIES = ("Men", "Women", "Kids", "Accessories", "Unisex")
SIZES = ("XS", "S", "M", "L", "XL", "XXL", "ONESIZE")
DEFAULT_IMAGE_URL = "https://via.placeholder.com/150"

SEARCH_CONFIG = "english"


class Product(Base):
    """Product model for the catalog."""
    __tablename__ = "products"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=False)
    price = Column(Float, nullable=False, index=True)
    stock = Column(Integer, nullable=False, default=0)
    category = Column(String(20), nullable=False, index=True)
    brand = Column(String(100), nullable=True)
    sizes = Column(JSON, nullable=False, default=list)
    colors = Column(JSON, nullable=False, default=list)
    # NULLs do not collide, so products without a SKU are allowed
    sku = Column(String(64), unique=True, nullable=True)
    image_url = Column(String(500), nullable=False, default=DEFAULT_IMAGE_URL)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r}>"


def _config():
    # Must stay a literal: ix_products_search only serves an identical expression
    return literal_column(f"'{SEARCH_CONFIG}'::regconfig")


def search_document():
    """The text searched by listing queries: name, description and brand."""
    blank, space = literal_column("''"), literal_column("' '")
    return func.to_tsvector(
        _config(),
        func.coalesce(Product.name, blank)
        + space
        + func.coalesce(Product.description, blank)
        + space
        + func.coalesce(Product.brand, blank),
    )


def search_query(words):
    """Match any of the given words."""
    return func.to_tsquery(_config(), " | ".join(words))


SEARCH_INDEX_EXPRESSION = (
    f"to_tsvector('{SEARCH_CONFIG}'::regconfig, coalesce(name, '') || ' ' || "
    "coalesce(description, '') || ' ' || coalesce(brand, ''))"
)

# PostgreSQL only: GIN index over search_document()
event.listen(
    Product.__table__,
    "after_create",
    DDL(
        "CREATE INDEX IF NOT EXISTS ix_products_search ON products "
        f"USING gin ({SEARCH_INDEX_EXPRESSION})"
    ).execute_if(dialect="postgresql"),
)
