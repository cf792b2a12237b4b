"""Server-side narrowing of the payment set before listing, aggregation or export."""

from datetime import date
from typing import Optional, Sequence, Tuple

from pydantic import BaseModel
from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import contains_eager

from schoolfees.core.models import Category, Payment, Student

# Lower bound used when only date_to is given
DEFAULT_DATE_FROM = date(1900, 1, 1)


class PaymentFilters(BaseModel):
    """All supplied filters are ANDed. student_id and category_id are internal keys."""

    date_from: Optional[date] = None
    date_to: Optional[date] = None
    student_id: Optional[int] = None
    category_id: Optional[int] = None
    class_name: Optional[str] = None

    def date_range(self, today: Optional[date] = None) -> Optional[Tuple[date, date]]:
        """Inclusive (from, to), or None when neither bound was supplied.

        An open start falls back to 1900-01-01, an open end to today.
        """
        if self.date_from is None and self.date_to is None:
            return None
        return (
            self.date_from or DEFAULT_DATE_FROM,
            self.date_to or today or date.today(),
        )


def apply_payment_filters(stmt: Select, filters: PaymentFilters, today: Optional[date] = None) -> Select:
    """Add WHERE clauses to a statement that already joins Payment with Student and Category."""
    bounds = filters.date_range(today)
    if bounds is not None:
        stmt = stmt.where(Payment.payment_date.between(*bounds))
    if filters.student_id is not None:
        stmt = stmt.where(Payment.student_id == filters.student_id)
    if filters.category_id is not None:
        stmt = stmt.where(Payment.category_id == filters.category_id)
    if filters.class_name:
        stmt = stmt.where(Student.class_name == filters.class_name)
    return stmt


async def find_payments(db: AsyncSession, filters: PaymentFilters) -> Sequence[Payment]:
    """Matching payments with student and category loaded, newest payment date first.

    Soft-deleted students and categories do not hide their payments.
    """
    stmt = (
        select(Payment)
        .join(Payment.student)
        .join(Payment.category)
        .options(contains_eager(Payment.student), contains_eager(Payment.category))
    )
    stmt = apply_payment_filters(stmt, filters)
    stmt = stmt.order_by(Payment.payment_date.desc(), Payment.id.desc())
    result = await db.execute(stmt)
    return result.scalars().all()
