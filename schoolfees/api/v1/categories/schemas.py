from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    amount: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    description: Optional[str] = Field(None, max_length=255)


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    amount: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    description: Optional[str] = Field(None, max_length=255)


class CategoryResponse(BaseModel):
    id: int
    name: str
    amount: Decimal
    description: Optional[str] = None
    is_active: bool
    students_count: int = 0
    total_collected: Decimal = Decimal("0")
    collection_rate: int = 0
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
