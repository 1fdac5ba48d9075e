from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from decimal import Decimal


class ProductBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    category: str = Field(..., min_length=1, max_length=100)
    product_code: Optional[str] = Field(None, max_length=50)
    price: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)
    stock: int = Field(0, ge=0)
    reorder_level: int = Field(10, ge=0)
    unit: Optional[str] = Field("pcs", max_length=20)
    supplier_id: Optional[int] = None


class ProductCreate(ProductBase):
    pass


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    product_code: Optional[str] = Field(None, max_length=50)
    price: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
    stock: Optional[int] = Field(None, ge=0)
    reorder_level: Optional[int] = Field(None, ge=0)
    unit: Optional[str] = Field(None, max_length=20)
    supplier_id: Optional[int] = None


class Product(ProductBase):
    id: int
    product_id: str
    is_low_stock: bool
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class LowStockProduct(BaseModel):
    id: int
    product_id: str
    name: str
    category: str
    stock: int
    reorder_level: int
    unit: Optional[str] = None
    shortfall: int

    class Config:
        from_attributes = True
