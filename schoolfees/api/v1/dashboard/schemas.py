from datetime import date
from decimal import Decimal
from typing import List

from pydantic import BaseModel


class StatusPercentages(BaseModel):
    """Each value rounded on its own; the three need not add up to 100."""

    fully_paid: int
    partially_paid: int
    not_paid: int


class CategoryTotal(BaseModel):
    name: str
    amount: Decimal


class MonthlyTotal(BaseModel):
    month: str
    amount: Decimal


class RecentPayment(BaseModel):
    id: int
    student_name: str
    category_name: str
    amount: Decimal
    payment_date: date


class DashboardStatsResponse(BaseModel):
    total_students: int
    total_expected: Decimal
    total_collected: Decimal
    outstanding: Decimal
    payment_status: StatusPercentages
    top_categories: List[CategoryTotal]
    monthly_collected: List[MonthlyTotal]
    recent_payments: List[RecentPayment]
