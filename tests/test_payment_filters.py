from datetime import date

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from schoolfees.api.v1.payments.filters import DEFAULT_DATE_FROM, PaymentFilters, find_payments
from conftest import add_category, add_payment, add_student


def test_no_bounds_means_no_date_filter() -> None:
    assert PaymentFilters().date_range() is None


def test_open_bounds_fall_back_to_defaults() -> None:
    today = date(2024, 6, 30)
    assert PaymentFilters(date_to=date(2024, 1, 31)).date_range(today) == (DEFAULT_DATE_FROM, date(2024, 1, 31))
    assert PaymentFilters(date_from=date(2024, 1, 1)).date_range(today) == (date(2024, 1, 1), today)


@pytest.fixture()
async def seeded(db_session: AsyncSession) -> dict:
    tuition = await add_category(db_session, "Tuition", "5000")
    bus = await add_category(db_session, "Bus", "300")
    ada = await add_student(db_session, "STU-1", class_name="JSS1", categories=[tuition, bus])
    bola = await add_student(db_session, "STU-2", first_name="Bola", class_name="JSS2", categories=[tuition])
    payments = [
        await add_payment(db_session, ada, tuition, "1000", date(2024, 1, 1)),
        await add_payment(db_session, ada, bus, "300", date(2024, 1, 31)),
        await add_payment(db_session, bola, tuition, "2000", date(2024, 2, 1)),
        await add_payment(db_session, bola, tuition, "500", date(2023, 12, 31)),
    ]
    return {
        "tuition": tuition.id,
        "bus": bus.id,
        "ada": ada.id,
        "bola": bola.id,
        "payments": [p.id for p in payments],
    }


@pytest.mark.asyncio
async def test_date_range_is_inclusive(db_session: AsyncSession, seeded: dict) -> None:
    rows = await find_payments(
        db_session,
        PaymentFilters(date_from=date(2024, 1, 1), date_to=date(2024, 1, 31)),
    )
    assert sorted(r.payment_date for r in rows) == [date(2024, 1, 1), date(2024, 1, 31)]


@pytest.mark.asyncio
async def test_results_ordered_newest_first(db_session: AsyncSession, seeded: dict) -> None:
    rows = await find_payments(db_session, PaymentFilters())
    dates = [r.payment_date for r in rows]
    assert dates == sorted(dates, reverse=True)
    assert len(rows) == 4


@pytest.mark.asyncio
async def test_filters_are_combined(db_session: AsyncSession, seeded: dict) -> None:
    rows = await find_payments(
        db_session,
        PaymentFilters(student_id=seeded["bola"], category_id=seeded["tuition"], date_from=date(2024, 1, 1)),
    )
    assert [r.payment_date for r in rows] == [date(2024, 2, 1)]


@pytest.mark.asyncio
async def test_class_filter_matches_student_class(db_session: AsyncSession, seeded: dict) -> None:
    rows = await find_payments(db_session, PaymentFilters(class_name="JSS1"))
    assert {r.student.student_id for r in rows} == {"STU-1"}
    assert len(rows) == 2


@pytest.mark.asyncio
async def test_unknown_key_yields_empty(db_session: AsyncSession, seeded: dict) -> None:
    assert await find_payments(db_session, PaymentFilters(category_id=999)) == []
