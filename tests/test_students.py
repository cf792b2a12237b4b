from datetime import date
from decimal import Decimal

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from conftest import add_category, add_payment, add_student


@pytest.mark.asyncio
async def test_create_student_with_categories(
    auth_client: AsyncClient,
    db_session: AsyncSession,
) -> None:
    tuition = await add_category(db_session, "Tuition", "5000")
    bus = await add_category(db_session, "Bus", "2500")

    response = await auth_client.post(
        "/api/students",
        json={
            "first_name": "Ada",
            "last_name": "Obi",
            "student_id": "STU-0001",
            "class_name": "JSS1",
            "email": "ada@example.com",
            "categories": [tuition.id, bus.id],
        },
    )
    assert response.status_code == 201
    data = response.json()["data"]
    assert data["student_id"] == "STU-0001"
    assert sorted(data["category_names"]) == ["Bus", "Tuition"]
    assert Decimal(data["total_expected"]) == Decimal("7500")
    assert Decimal(data["total_paid"]) == 0
    assert data["payment_status"] == "NotPaid"


@pytest.mark.asyncio
async def test_create_student_unknown_category_is_not_found(auth_client: AsyncClient) -> None:
    response = await auth_client.post(
        "/api/students",
        json={
            "first_name": "Ada",
            "last_name": "Obi",
            "student_id": "STU-0001",
            "class_name": "JSS1",
            "categories": [42],
        },
    )
    assert response.status_code == 404
    assert response.json()["message"] == "Category with ID 42 not found"


@pytest.mark.asyncio
async def test_create_student_duplicate_identifier_is_conflict(
    auth_client: AsyncClient,
    db_session: AsyncSession,
) -> None:
    await add_student(db_session, "STU-0001")

    response = await auth_client.post(
        "/api/students",
        json={"first_name": "Bola", "last_name": "Ade", "student_id": "STU-0001", "class_name": "JSS2"},
    )
    assert response.status_code == 409
    assert response.json()["message"] == "Student with this ID already exists"


@pytest.mark.asyncio
async def test_create_student_missing_field_is_bad_request(auth_client: AsyncClient) -> None:
    response = await auth_client.post(
        "/api/students",
        json={"first_name": "Ada", "last_name": "Obi", "student_id": "STU-0001"},
    )
    assert response.status_code == 400
    assert "class_name" in response.json()["message"]


@pytest.mark.asyncio
async def test_list_students_aggregates_fees(
    auth_client: AsyncClient,
    db_session: AsyncSession,
) -> None:
    tuition = await add_category(db_session, "Tuition", "5000")
    bus = await add_category(db_session, "Bus", "2500")
    ada = await add_student(db_session, "STU-1", first_name="Ada", categories=[tuition, bus])
    bola = await add_student(db_session, "STU-2", first_name="Bola", categories=[tuition])
    await add_student(db_session, "STU-3", first_name="Chi")
    await add_payment(db_session, ada, tuition, "5000", date(2024, 1, 5))
    await add_payment(db_session, ada, bus, "3000", date(2024, 1, 6))
    await add_payment(db_session, bola, tuition, "1000", date(2024, 1, 7))

    response = await auth_client.get("/api/students")
    assert response.status_code == 200
    rows = {s["student_id"]: s for s in response.json()["data"]}

    assert Decimal(rows["STU-1"]["total_expected"]) == Decimal("7500")
    assert Decimal(rows["STU-1"]["total_paid"]) == Decimal("8000")
    assert Decimal(rows["STU-1"]["balance"]) == Decimal("-500")
    assert rows["STU-1"]["payment_status"] == "FullyPaid"

    assert Decimal(rows["STU-2"]["balance"]) == Decimal("4000")
    assert rows["STU-2"]["payment_status"] == "PartiallyPaid"

    # nothing assigned, nothing paid
    assert Decimal(rows["STU-3"]["total_expected"]) == 0
    assert rows["STU-3"]["payment_status"] == "FullyPaid"


@pytest.mark.asyncio
async def test_inactive_category_still_counts_towards_expected(
    auth_client: AsyncClient,
    db_session: AsyncSession,
) -> None:
    tuition = await add_category(db_session, "Tuition", "5000")
    levy = await add_category(db_session, "Levy", "500", is_active=False)
    student = await add_student(db_session, "STU-1", categories=[tuition, levy])

    data = (await auth_client.get(f"/api/students/{student.id}")).json()["data"]
    assert Decimal(data["total_expected"]) == Decimal("5500")


@pytest.mark.asyncio
async def test_update_replaces_category_assignments(
    auth_client: AsyncClient,
    db_session: AsyncSession,
) -> None:
    tuition = await add_category(db_session, "Tuition", "5000")
    bus = await add_category(db_session, "Bus", "2500")
    student = await add_student(db_session, "STU-1", categories=[tuition])

    response = await auth_client.put(
        f"/api/students/{student.id}",
        json={"class_name": "JSS2", "categories": [bus.id]},
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["class_name"] == "JSS2"
    assert data["category_names"] == ["Bus"]
    assert Decimal(data["total_expected"]) == Decimal("2500")


@pytest.mark.asyncio
async def test_update_with_empty_categories_clears_assignments(
    auth_client: AsyncClient,
    db_session: AsyncSession,
) -> None:
    tuition = await add_category(db_session, "Tuition", "5000")
    student = await add_student(db_session, "STU-1", categories=[tuition])

    data = (await auth_client.put(f"/api/students/{student.id}", json={"categories": []})).json()["data"]
    assert data["category_names"] == []
    assert Decimal(data["total_expected"]) == 0


@pytest.mark.asyncio
async def test_update_requires_a_field(auth_client: AsyncClient, db_session: AsyncSession) -> None:
    student = await add_student(db_session, "STU-1")

    response = await auth_client.put(f"/api/students/{student.id}", json={})
    assert response.status_code == 400
    assert response.json()["message"] == "At least one field to update is required"


@pytest.mark.asyncio
async def test_soft_delete_keeps_payment_history(
    auth_client: AsyncClient,
    db_session: AsyncSession,
) -> None:
    tuition = await add_category(db_session, "Tuition", "5000")
    student = await add_student(db_session, "STU-1", categories=[tuition])
    await add_payment(db_session, student, tuition, "2000", date(2024, 3, 1))
    student_pk = student.id

    response = await auth_client.delete(f"/api/students/{student_pk}")
    assert response.status_code == 200

    assert (await auth_client.get(f"/api/students/{student_pk}")).status_code == 404
    assert (await auth_client.get("/api/students")).json()["data"] == []
    assert (await auth_client.delete(f"/api/students/{student_pk}")).status_code == 404

    payments = (await auth_client.get("/api/payments", params={"studentId": student_pk})).json()["data"]
    assert len(payments) == 1
    assert payments[0]["student"]["student_id"] == "STU-1"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "field, message",
    [
        ("first_name", "First name cannot be blank"),
        ("last_name", "Last name cannot be blank"),
        ("student_id", "Student ID cannot be blank"),
        ("class_name", "Class cannot be blank"),
    ],
)
async def test_update_rejects_blank_text_fields(
    auth_client: AsyncClient,
    db_session: AsyncSession,
    field: str,
    message: str,
) -> None:
    student = await add_student(db_session, "STU-1")
    student_pk = student.id

    response = await auth_client.put(f"/api/students/{student_pk}", json={"first_name": "Bola", field: "  "})
    assert response.status_code == 400
    assert response.json()["message"] == message

    data = (await auth_client.get(f"/api/students/{student_pk}")).json()["data"]
    assert data["first_name"] == "Ada"
    assert data["student_id"] == "STU-1"
    assert data["class_name"] == "JSS1"
