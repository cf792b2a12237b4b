"""Payments: recording, listing through the filter layer, update and hard delete."""

import logging
from datetime import date
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from schoolfees.core.aggregation import to_decimal
from schoolfees.core.enums import PaymentMethod
from schoolfees.core.exceptions import NotFoundError, ValidationError
from schoolfees.core.models import Category, Payment, Student

from .filters import PaymentFilters, find_payments
from .schemas import (
    PaymentCategoryInfo,
    PaymentCreate,
    PaymentResponse,
    PaymentStudentInfo,
    PaymentUpdate,
)

logger = logging.getLogger(__name__)


def _payment_to_response(p: Payment) -> PaymentResponse:
    """Requires student and category to be loaded."""
    return PaymentResponse(
        id=p.id,
        student_id=p.student_id,
        category_id=p.category_id,
        amount=to_decimal(p.amount),
        payment_date=p.payment_date,
        payment_method=p.payment_method,
        reference=p.reference,
        notes=p.notes,
        first_name=p.student.first_name,
        last_name=p.student.last_name,
        category_name=p.category.name,
        student=PaymentStudentInfo(
            id=p.student.id,
            first_name=p.student.first_name,
            last_name=p.student.last_name,
            student_id=p.student.student_id,
            class_name=p.student.class_name,
        ),
        category=PaymentCategoryInfo(
            id=p.category.id,
            name=p.category.name,
            amount=to_decimal(p.category.amount),
        ),
        created_at=p.created_at,
        updated_at=p.updated_at,
    )


async def _get_payment(db: AsyncSession, payment_id: int) -> Optional[Payment]:
    result = await db.execute(
        select(Payment)
        .where(Payment.id == payment_id)
        .options(selectinload(Payment.student), selectinload(Payment.category))
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def record_payment(
    db: AsyncSession,
    student: Student,
    category: Category,
    amount: Decimal,
    payment_date: date,
    payment_method: PaymentMethod,
    reference: Optional[str] = None,
    notes: Optional[str] = None,
) -> Payment:
    """Persist one payment for already-resolved student and category. Commits."""
    obj = Payment(
        student_id=student.id,
        category_id=category.id,
        amount=amount,
        payment_date=payment_date,
        payment_method=payment_method.value,
        reference=reference,
        notes=notes,
    )
    db.add(obj)
    await db.commit()
    logger.info(
        "Recorded payment %s: student=%s category=%s amount=%s",
        obj.id, student.student_id, category.name, amount,
    )
    return obj


async def list_payments(db: AsyncSession, filters: PaymentFilters) -> List[PaymentResponse]:
    return [_payment_to_response(p) for p in await find_payments(db, filters)]


async def get_payment(db: AsyncSession, payment_id: int) -> Optional[PaymentResponse]:
    obj = await _get_payment(db, payment_id)
    return _payment_to_response(obj) if obj else None


async def create_payment(db: AsyncSession, payload: PaymentCreate) -> PaymentResponse:
    student = (
        await db.execute(
            select(Student).where(Student.id == payload.student_id, Student.is_deleted.is_(False))
        )
    ).scalar_one_or_none()
    if not student:
        raise NotFoundError("Student not found")
    category = (
        await db.execute(
            select(Category).where(Category.id == payload.category_id, Category.is_deleted.is_(False))
        )
    ).scalar_one_or_none()
    if not category:
        raise NotFoundError("Category not found")

    obj = await record_payment(
        db,
        student,
        category,
        amount=payload.amount,
        payment_date=payload.payment_date,
        payment_method=payload.payment_method,
        reference=payload.reference,
        notes=payload.notes,
    )
    return _payment_to_response(await _get_payment(db, obj.id))


async def update_payment(
    db: AsyncSession,
    payment_id: int,
    payload: PaymentUpdate,
) -> Optional[PaymentResponse]:
    changes = payload.model_dump(exclude_unset=True)
    if not any(v is not None for v in changes.values()):
        raise ValidationError("At least one field to update is required")
    obj = await _get_payment(db, payment_id)
    if not obj:
        return None
    if payload.amount is not None:
        obj.amount = payload.amount
    if payload.payment_date is not None:
        obj.payment_date = payload.payment_date
    if payload.payment_method is not None:
        obj.payment_method = payload.payment_method.value
    if "reference" in changes:
        obj.reference = payload.reference
    if "notes" in changes:
        obj.notes = payload.notes
    await db.commit()
    logger.info("Updated payment %s", payment_id)
    return _payment_to_response(await _get_payment(db, payment_id))


async def delete_payment(db: AsyncSession, payment_id: int) -> bool:
    obj = await db.get(Payment, payment_id)
    if not obj:
        return False
    await db.delete(obj)
    await db.commit()
    logger.info("Deleted payment %s", payment_id)
    return True
