"""
Catalog store backed by the products table.

Translates ProductFilter/SortKey into SQLAlchemy statements. Text search
uses PostgreSQL full-text matching; other dialects fall back to
case-insensitive substring matching over the same three fields.
"""
import re
from typing import Any, Dict, List, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from storeapi.products.models import Product, search_document, search_query
from storeapi.products.query import ProductFilter, SortKey

SORT_COLUMNS = {
    "price": Product.price,
    "name": Product.name,
    "created_at": Product.created_at,
}

_WORD = re.compile(r"\w+", re.UNICODE)


def _search_clause(predicate: ProductFilter, dialect: str):
    terms = predicate.search_terms()
    if not terms:
        return None

    if dialect == "postgresql":
        words = [w for term in terms for w in _WORD.findall(term)]
        if not words:
            return None
        # Any word may match, as with a document text index
        return search_document().op("@@")(search_query(words))

    matches = []
    for term in terms:
        matches.extend([
            Product.name.icontains(term, autoescape=True),
            Product.description.icontains(term, autoescape=True),
            Product.brand.icontains(term, autoescape=True),
        ])
    return or_(*matches)


def build_conditions(predicate: ProductFilter, dialect: str = "postgresql") -> List[Any]:
    """SQL conditions for a ProductFilter, combined with AND by the caller."""
    conditions = []
    if predicate.active_only:
        conditions.append(Product.is_active.is_(True))
    if predicate.category:
        conditions.append(Product.category == predicate.category)
    if predicate.brand:
        conditions.append(Product.brand.icontains(predicate.brand, autoescape=True))
    if predicate.min_price is not None:
        conditions.append(Product.price >= predicate.min_price)
    if predicate.max_price is not None:
        conditions.append(Product.price <= predicate.max_price)
    search = _search_clause(predicate, dialect)
    if search is not None:
        conditions.append(search)
    return conditions


class ProductRepository:
    """
    Catalog store: listing reads plus the CRUD used by the admin routes.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    @property
    def dialect(self) -> str:
        return self.db.get_bind().dialect.name

    async def find(self, predicate: ProductFilter, sort: SortKey, skip: int, limit: int) -> List[Product]:
        column = SORT_COLUMNS.get(sort.field, Product.created_at)
        order = column.desc() if sort.descending else column.asc()
        stmt = (
            select(Product)
            .where(*build_conditions(predicate, self.dialect))
            # id keeps the order stable between identical queries
            .order_by(order, Product.id.asc())
            .offset(skip)
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def count(self, predicate: ProductFilter) -> int:
        stmt = (
            select(func.count())
            .select_from(Product)
            .where(*build_conditions(predicate, self.dialect))
        )
        result = await self.db.execute(stmt)
        return result.scalar_one()

    async def get(self, product_id: str) -> Optional[Product]:
        return await self.db.get(Product, product_id)

    async def create(self, fields: Dict[str, Any]) -> Product:
        product = Product(**fields)
        self.db.add(product)
        await self.db.commit()
        await self.db.refresh(product)
        return product

    async def update(self, product: Product, fields: Dict[str, Any]) -> Product:
        for key, value in fields.items():
            setattr(product, key, value)
        await self.db.commit()
        await self.db.refresh(product)
        return product

    async def delete(self, product: Product) -> None:
        await self.db.delete(product)
        await self.db.commit()
