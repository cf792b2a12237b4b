"""Students: CRUD, category assignment and per-student fee totals."""

import logging
from typing import List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from schoolfees.core.aggregation import summarize_student, to_decimal
from schoolfees.core.exceptions import ConflictError, NotFoundError, ValidationError
from schoolfees.core.models import Category, Student

from .schemas import AssignedCategory, StudentCreate, StudentResponse, StudentUpdate

logger = logging.getLogger(__name__)

_TEXT_FIELD_LABELS = {
    "student_id": "Student ID",
    "first_name": "First name",
    "last_name": "Last name",
    "class_name": "Class",
}


def _student_to_response(s: Student) -> StudentResponse:
    """Requires categories and payments to be loaded."""
    summary = summarize_student(
        [c.amount for c in s.categories],
        [p.amount for p in s.payments],
    )
    return StudentResponse(
        id=s.id,
        first_name=s.first_name,
        last_name=s.last_name,
        student_id=s.student_id,
        class_name=s.class_name,
        email=s.email,
        phone=s.phone,
        categories=[
            AssignedCategory(id=c.id, name=c.name, amount=to_decimal(c.amount), is_active=c.is_active)
            for c in s.categories
        ],
        category_names=[c.name for c in s.categories],
        total_expected=summary.expected,
        total_paid=summary.paid,
        balance=summary.balance,
        payment_status=summary.status,
        created_at=s.created_at,
        updated_at=s.updated_at,
    )


def _with_fee_relations(stmt):
    return stmt.options(
        selectinload(Student.categories),
        selectinload(Student.payments),
    ).execution_options(populate_existing=True)


async def load_students(db: AsyncSession, include_deleted: bool = False) -> Sequence[Student]:
    """Students with categories and payments eagerly loaded, ordered by name."""
    stmt = select(Student)
    if not include_deleted:
        stmt = stmt.where(Student.is_deleted.is_(False))
    stmt = _with_fee_relations(stmt.order_by(Student.first_name, Student.last_name))
    result = await db.execute(stmt)
    return result.scalars().all()


async def _get_live_student(db: AsyncSession, student_pk: int) -> Optional[Student]:
    result = await db.execute(
        _with_fee_relations(
            select(Student).where(Student.id == student_pk, Student.is_deleted.is_(False))
        )
    )
    return result.scalar_one_or_none()


async def get_student_by_external_id(db: AsyncSession, external_id: str) -> Optional[Student]:
    result = await db.execute(
        select(Student).where(Student.student_id == external_id, Student.is_deleted.is_(False))
    )
    return result.scalars().first()


async def _ensure_external_id_available(
    db: AsyncSession,
    external_id: str,
    exclude_pk: Optional[int] = None,
) -> None:
    stmt = select(Student.id).where(Student.student_id == external_id, Student.is_deleted.is_(False))
    if exclude_pk is not None:
        stmt = stmt.where(Student.id != exclude_pk)
    existing = await db.execute(stmt.limit(1))
    if existing.scalar_one_or_none() is not None:
        raise ConflictError("Student with this ID already exists")


def _non_blank(value: str, label: str) -> str:
    value = value.strip()
    if not value:
        raise ValidationError(f"{label} cannot be blank")
    return value


async def _resolve_categories(db: AsyncSession, category_ids: List[int]) -> List[Category]:
    if not category_ids:
        return []
    unique_ids = list(dict.fromkeys(category_ids))
    result = await db.execute(
        select(Category).where(Category.id.in_(unique_ids), Category.is_deleted.is_(False))
    )
    found = {c.id: c for c in result.scalars().all()}
    for cid in unique_ids:
        if cid not in found:
            raise NotFoundError(f"Category with ID {cid} not found")
    return [found[cid] for cid in unique_ids]


async def list_students(db: AsyncSession) -> List[StudentResponse]:
    return [_student_to_response(s) for s in await load_students(db)]


async def get_student(db: AsyncSession, student_pk: int) -> Optional[StudentResponse]:
    obj = await _get_live_student(db, student_pk)
    return _student_to_response(obj) if obj else None


async def create_student(db: AsyncSession, payload: StudentCreate) -> StudentResponse:
    first_name = payload.first_name.strip()
    last_name = payload.last_name.strip()
    external_id = payload.student_id.strip()
    class_name = payload.class_name.strip()
    if not first_name or not last_name or not external_id or not class_name:
        raise ValidationError("First name, last name, student ID, and class are required")
    await _ensure_external_id_available(db, external_id)
    categories = await _resolve_categories(db, payload.categories)

    obj = Student(
        first_name=first_name,
        last_name=last_name,
        student_id=external_id,
        class_name=class_name,
        email=payload.email,
        phone=payload.phone,
        is_deleted=False,
        categories=categories,
    )
    db.add(obj)
    await db.commit()
    logger.info("Created student %s (%s)", obj.id, external_id)
    return _student_to_response(await _get_live_student(db, obj.id))


async def update_student(
    db: AsyncSession,
    student_pk: int,
    payload: StudentUpdate,
) -> Optional[StudentResponse]:
    changes = payload.model_dump(exclude_unset=True)
    if not any(v is not None for v in changes.values()):
        raise ValidationError("At least one field to update is required")
    obj = await _get_live_student(db, student_pk)
    if not obj:
        return None

    # validated before obj is touched
    names = {
        field: _non_blank(getattr(payload, field), label)
        for field, label in _TEXT_FIELD_LABELS.items()
        if getattr(payload, field) is not None
    }
    if "student_id" in names:
        await _ensure_external_id_available(db, names["student_id"], exclude_pk=student_pk)
    categories = None
    if payload.categories is not None:
        categories = await _resolve_categories(db, payload.categories)

    for field, value in names.items():
        setattr(obj, field, value)
    if "email" in changes:
        obj.email = payload.email
    if "phone" in changes:
        obj.phone = payload.phone
    if categories is not None:
        obj.categories = categories

    await db.commit()
    logger.info("Updated student %s", student_pk)
    return _student_to_response(await _get_live_student(db, student_pk))


async def delete_student(db: AsyncSession, student_pk: int) -> bool:
    """Soft delete. The student's payments stay in place for reporting."""
    result = await db.execute(
        select(Student).where(Student.id == student_pk, Student.is_deleted.is_(False))
    )
    obj = result.scalar_one_or_none()
    if not obj:
        return False
    obj.is_deleted = True
    await db.commit()
    logger.info("Soft-deleted student %s", student_pk)
    return True
