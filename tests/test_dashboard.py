from datetime import date
from decimal import Decimal

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from conftest import add_category, add_payment, add_student


@pytest.mark.asyncio
async def test_dashboard_stats(auth_client: AsyncClient, db_session: AsyncSession) -> None:
    tuition = await add_category(db_session, "Tuition", "5000")
    bus = await add_category(db_session, "Bus", "1000")
    ada = await add_student(db_session, "STU-1", first_name="Ada", categories=[tuition])
    bola = await add_student(db_session, "STU-2", first_name="Bola", categories=[tuition, bus])
    await add_student(db_session, "STU-3", first_name="Chi", categories=[bus])
    await add_payment(db_session, ada, tuition, "5000", date(2024, 2, 1))
    await add_payment(db_session, bola, tuition, "1000", date(2024, 1, 15))
    await add_payment(db_session, bola, bus, "500", date(2024, 1, 20))

    response = await auth_client.get("/api/dashboard/stats")
    assert response.status_code == 200
    data = response.json()["data"]

    assert data["total_students"] == 3
    assert Decimal(data["total_expected"]) == Decimal("12000")
    assert Decimal(data["total_collected"]) == Decimal("6500")
    assert Decimal(data["outstanding"]) == Decimal("5500")
    assert data["payment_status"] == {"fully_paid": 33, "partially_paid": 33, "not_paid": 33}
    assert [c["name"] for c in data["top_categories"]] == ["Tuition", "Bus"]
    assert [(m["month"], Decimal(m["amount"])) for m in data["monthly_collected"]] == [
        ("Jan", Decimal("1500")),
        ("Feb", Decimal("5000")),
    ]
    assert [(p["student_name"], p["category_name"], p["payment_date"]) for p in data["recent_payments"]] == [
        ("Ada Obi", "Tuition", "2024-02-01"),
        ("Bola Obi", "Bus", "2024-01-20"),
        ("Bola Obi", "Tuition", "2024-01-15"),
    ]


@pytest.mark.asyncio
async def test_dashboard_on_empty_school(auth_client: AsyncClient) -> None:
    data = (await auth_client.get("/api/dashboard/stats")).json()["data"]
    assert data["total_students"] == 0
    assert data["payment_status"] == {"fully_paid": 0, "partially_paid": 0, "not_paid": 0}
    assert data["top_categories"] == []
    assert data["monthly_collected"] == []
    assert data["recent_payments"] == []


@pytest.mark.asyncio
async def test_recent_payments_keeps_latest_five(
    auth_client: AsyncClient,
    db_session: AsyncSession,
) -> None:
    tuition = await add_category(db_session, "Tuition", "5000")
    student = await add_student(db_session, "STU-1", first_name="Ada", last_name="Obi", categories=[tuition])
    for day in range(1, 8):
        await add_payment(db_session, student, tuition, str(100 * day), date(2024, 3, day))

    recent = (await auth_client.get("/api/dashboard/stats")).json()["data"]["recent_payments"]
    assert [p["payment_date"] for p in recent] == [
        "2024-03-07",
        "2024-03-06",
        "2024-03-05",
        "2024-03-04",
        "2024-03-03",
    ]
    assert Decimal(recent[0]["amount"]) == Decimal("700")
    assert recent[0]["student_name"] == "Ada Obi"
