from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from schoolfees.core.enums import PaymentStatus


class StudentCreate(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    student_id: str = Field(..., min_length=1, max_length=50, description="External identifier, e.g. STU-0042")
    class_name: str = Field(..., min_length=1, max_length=50)
    email: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=30)
    categories: List[int] = Field(default_factory=list, description="Category ids the student is billed for")


class StudentUpdate(BaseModel):
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    student_id: Optional[str] = Field(None, min_length=1, max_length=50)
    class_name: Optional[str] = Field(None, min_length=1, max_length=50)
    email: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=30)
    # None leaves assignments alone; [] clears them
    categories: Optional[List[int]] = None


class AssignedCategory(BaseModel):
    id: int
    name: str
    amount: Decimal
    is_active: bool


class StudentResponse(BaseModel):
    id: int
    first_name: str
    last_name: str
    student_id: str
    class_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    categories: List[AssignedCategory] = []
    category_names: List[str] = []
    total_expected: Decimal
    total_paid: Decimal
    balance: Decimal
    payment_status: PaymentStatus
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
