from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from schoolfees.core.enums import PaymentMethod


def _parse_method(value):
    if value is None or isinstance(value, PaymentMethod):
        return value
    return PaymentMethod.parse(str(value))


class PaymentCreate(BaseModel):
    student_id: int = Field(..., description="Internal student id")
    category_id: int = Field(..., description="Internal category id")
    amount: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    payment_date: date
    payment_method: PaymentMethod
    reference: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None

    @field_validator("payment_method", mode="before")
    @classmethod
    def normalize_method(cls, v):
        return _parse_method(v)


class PaymentUpdate(BaseModel):
    amount: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)
    payment_date: Optional[date] = None
    payment_method: Optional[PaymentMethod] = None
    reference: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None

    @field_validator("payment_method", mode="before")
    @classmethod
    def normalize_method(cls, v):
        return _parse_method(v)


class PaymentStudentInfo(BaseModel):
    id: int
    first_name: str
    last_name: str
    student_id: str
    class_name: str


class PaymentCategoryInfo(BaseModel):
    id: int
    name: str
    amount: Decimal


class PaymentResponse(BaseModel):
    id: int
    student_id: int
    category_id: int
    amount: Decimal
    payment_date: date
    payment_method: str
    reference: Optional[str] = None
    notes: Optional[str] = None
    first_name: str
    last_name: str
    category_name: str
    student: PaymentStudentInfo
    category: PaymentCategoryInfo
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
