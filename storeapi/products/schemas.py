"""
Pydantic models for product requests and responses.
"""
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import AnyHttpUrl, BaseModel, ConfigDict, Field, ValidationInfo, field_validator

Category = Literal["Men", "Women", "Kids", "Accessories", "Unisex"]
Size = Literal["XS", "S", "M", "L", "XL", "XXL", "ONESIZE"]


class ProductCreate(BaseModel):
    """Model for creating a product."""
    name: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1, max_length=2000)
    price: float = Field(..., ge=0)
    stock: int = Field(..., ge=0)
    category: Category
    brand: Optional[str] = Field(None, max_length=100)
    sizes: List[Size] = []
    colors: List[str] = []
    sku: Optional[str] = Field(None, min_length=1, max_length=64)
    image_url: Optional[AnyHttpUrl] = None

    @field_validator('name', 'brand', 'sku')
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    def to_fields(self) -> dict:
        fields = self.model_dump(exclude_none=True)
        if "image_url" in fields:
            fields["image_url"] = str(fields["image_url"])
        return fields


class ProductUpdate(BaseModel):
    """Model for a partial product update."""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, min_length=1, max_length=2000)
    price: Optional[float] = Field(None, ge=0)
    stock: Optional[int] = Field(None, ge=0)
    category: Optional[Category] = None
    brand: Optional[str] = Field(None, max_length=100)
    sizes: Optional[List[Size]] = None
    colors: Optional[List[str]] = None
    sku: Optional[str] = Field(None, min_length=1, max_length=64)
    image_url: Optional[AnyHttpUrl] = None
    is_active: Optional[bool] = None

    @field_validator('name', 'brand', 'sku')
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator(
        'name', 'description', 'price', 'stock', 'category',
        'sizes', 'colors', 'image_url', 'is_active',
    )
    @classmethod
    def required_not_null(cls, v, info: ValidationInfo):
        # Only brand and sku may be cleared with null
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v

    def to_fields(self) -> dict:
        fields = self.model_dump(exclude_unset=True)
        if "image_url" in fields:
            fields["image_url"] = str(fields["image_url"])
        return fields


class ProductOut(BaseModel):
    """Model for product information returned to clients."""
    id: str
    name: str
    description: str
    price: float
    stock: int
    category: str
    brand: Optional[str] = None
    sizes: List[str] = []
    colors: List[str] = []
    sku: Optional[str] = None
    image_url: str
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


def serialize_product(product) -> dict:
    return ProductOut.model_validate(product).model_dump(mode="json")
