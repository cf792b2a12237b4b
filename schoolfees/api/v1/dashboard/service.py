from sqlalchemy.ext.asyncio import AsyncSession

from schoolfees.core.aggregation import dashboard_stats, summarize_student, to_decimal
from schoolfees.core.enums import PaymentStatus
from schoolfees.api.v1.payments.filters import PaymentFilters, find_payments
from schoolfees.api.v1.students.service import load_students

from .schemas import (
    CategoryTotal,
    DashboardStatsResponse,
    MonthlyTotal,
    RecentPayment,
    StatusPercentages,
)

RECENT_PAYMENT_LIMIT = 5


async def get_dashboard_stats(db: AsyncSession) -> DashboardStatsResponse:
    """Totals over non-deleted students; collected figures count every recorded payment."""
    students = await load_students(db)
    summaries = [
        summarize_student([c.amount for c in s.categories], [p.amount for p in s.payments])
        for s in students
    ]
    payments = await find_payments(db, PaymentFilters())
    stats = dashboard_stats(
        summaries,
        [(p.category.name, p.amount, p.payment_date) for p in payments],
    )
    return DashboardStatsResponse(
        total_students=stats.total_students,
        total_expected=stats.total_expected,
        total_collected=stats.total_collected,
        outstanding=stats.outstanding,
        payment_status=StatusPercentages(
            fully_paid=stats.status_percentages[PaymentStatus.FULLY_PAID],
            partially_paid=stats.status_percentages[PaymentStatus.PARTIALLY_PAID],
            not_paid=stats.status_percentages[PaymentStatus.NOT_PAID],
        ),
        top_categories=[CategoryTotal(name=n, amount=a) for n, a in stats.top_categories],
        monthly_collected=[MonthlyTotal(month=m, amount=a) for m, a in stats.monthly_collected],
        # find_payments returns newest first
        recent_payments=[
            RecentPayment(
                id=p.id,
                student_name=p.student.full_name,
                category_name=p.category.name,
                amount=to_decimal(p.amount),
                payment_date=p.payment_date,
            )
            for p in payments[:RECENT_PAYMENT_LIMIT]
        ],
    )
