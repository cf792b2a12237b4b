"""Fee reconciliation: expected vs. collected amounts, payment status, collection rates.

Pure functions over already-loaded data. Callers load students with their categories
and payments, then pass amounts in here; nothing in this module touches the database.
"""

from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from schoolfees.core.enums import PaymentStatus

MONTH_LABELS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
TOP_CATEGORY_LIMIT = 4


def to_decimal(val) -> Decimal:
    if val is None:
        return Decimal("0")
    return val if isinstance(val, Decimal) else Decimal(str(val))


def round_half_up(val: Decimal) -> int:
    """Nearest integer, .5 rounds up. Python's round() would round half to even."""
    return int(val.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class FeeSummary:
    expected: Decimal
    paid: Decimal
    balance: Decimal  # signed; negative when overpaid
    status: PaymentStatus


def payment_status(expected: Decimal, paid: Decimal) -> PaymentStatus:
    # paid >= expected is checked first, so a student with nothing to pay is FullyPaid.
    if paid >= expected:
        return PaymentStatus.FULLY_PAID
    if paid > 0:
        return PaymentStatus.PARTIALLY_PAID
    return PaymentStatus.NOT_PAID


def summarize_student(category_amounts: Iterable, payment_amounts: Iterable) -> FeeSummary:
    """Totals for one student: assigned category amounts vs. all of the student's payments."""
    expected = sum((to_decimal(a) for a in category_amounts), Decimal("0"))
    paid = sum((to_decimal(a) for a in payment_amounts), Decimal("0"))
    return FeeSummary(
        expected=expected,
        paid=paid,
        balance=expected - paid,
        status=payment_status(expected, paid),
    )


def status_breakdown(statuses: Sequence[PaymentStatus]) -> Dict[PaymentStatus, int]:
    """Percentage of students per status bucket.

    Each bucket is rounded on its own, so the three values may add up to 99 or 101.
    """
    total = len(statuses)
    counts = {s: 0 for s in PaymentStatus}
    for s in statuses:
        counts[s] += 1
    if total == 0:
        return {s: 0 for s in PaymentStatus}
    return {s: round_half_up(Decimal(counts[s]) / Decimal(total) * 100) for s in PaymentStatus}


def collection_rate(amount, students_count: int, total_collected) -> int:
    """Collected as a percentage of category amount x assigned students; 0 when nothing is owed."""
    owed = to_decimal(amount) * students_count
    if owed == 0:
        return 0
    return round_half_up(to_decimal(total_collected) / owed * 100)


@dataclass(frozen=True)
class DashboardStats:
    total_students: int
    total_expected: Decimal
    total_collected: Decimal
    outstanding: Decimal
    status_percentages: Dict[PaymentStatus, int]
    top_categories: List[Tuple[str, Decimal]]
    monthly_collected: List[Tuple[str, Decimal]]


def dashboard_stats(
    student_summaries: Sequence[FeeSummary],
    payments: Iterable[Tuple[Optional[str], object, date]],
) -> DashboardStats:
    """School-wide totals.

    payments: (category_name, amount, payment_date) for every payment counted as collected.
    """
    total_expected = sum((s.expected for s in student_summaries), Decimal("0"))

    total_collected = Decimal("0")
    by_category: Dict[str, Decimal] = defaultdict(Decimal)
    by_month: Dict[int, Decimal] = defaultdict(Decimal)
    for category_name, amount, paid_on in payments:
        value = to_decimal(amount)
        total_collected += value
        by_category[category_name or "Unknown"] += value
        by_month[paid_on.month] += value

    top = sorted(by_category.items(), key=lambda kv: kv[1], reverse=True)[:TOP_CATEGORY_LIMIT]
    monthly = [(MONTH_LABELS[m - 1], by_month[m]) for m in sorted(by_month)]

    return DashboardStats(
        total_students=len(student_summaries),
        total_expected=total_expected,
        total_collected=total_collected,
        outstanding=total_expected - total_collected,
        status_percentages=status_breakdown([s.status for s in student_summaries]),
        top_categories=top,
        monthly_collected=monthly,
    )
