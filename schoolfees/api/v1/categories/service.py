"""Fee categories: CRUD, active toggle, soft delete and per-category collection figures."""

import logging
from decimal import Decimal
from typing import Dict, List, Optional, Sequence, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from schoolfees.core.aggregation import collection_rate, to_decimal
from schoolfees.core.exceptions import ConflictError, ValidationError
from schoolfees.core.models import Category, Payment, Student, student_categories

from .schemas import CategoryCreate, CategoryResponse, CategoryUpdate

logger = logging.getLogger(__name__)


def _category_to_response(
    c: Category,
    students_count: int = 0,
    total_collected: Decimal = Decimal("0"),
) -> CategoryResponse:
    return CategoryResponse(
        id=c.id,
        name=c.name,
        amount=to_decimal(c.amount),
        description=c.description,
        is_active=c.is_active,
        students_count=students_count,
        total_collected=total_collected,
        collection_rate=collection_rate(c.amount, students_count, total_collected),
        created_at=c.created_at,
        updated_at=c.updated_at,
    )


async def _collection_figures(
    db: AsyncSession,
    category_ids: Sequence[int],
) -> Tuple[Dict[int, int], Dict[int, Decimal]]:
    """(assigned non-deleted student count, total paid) per category id."""
    if not category_ids:
        return {}, {}
    counts_result = await db.execute(
        select(student_categories.c.category_id, func.count(Student.id))
        .join(Student, Student.id == student_categories.c.student_id)
        .where(
            student_categories.c.category_id.in_(category_ids),
            Student.is_deleted.is_(False),
        )
        .group_by(student_categories.c.category_id)
    )
    totals_result = await db.execute(
        select(Payment.category_id, func.sum(Payment.amount))
        .where(Payment.category_id.in_(category_ids))
        .group_by(Payment.category_id)
    )
    counts = {cid: int(n) for cid, n in counts_result.all()}
    totals = {cid: to_decimal(total) for cid, total in totals_result.all()}
    return counts, totals


async def _to_responses(db: AsyncSession, rows: Sequence[Category]) -> List[CategoryResponse]:
    counts, totals = await _collection_figures(db, [c.id for c in rows])
    return [
        _category_to_response(c, counts.get(c.id, 0), totals.get(c.id, Decimal("0")))
        for c in rows
    ]


async def _get_live_category(db: AsyncSession, category_id: int) -> Optional[Category]:
    result = await db.execute(
        select(Category).where(Category.id == category_id, Category.is_deleted.is_(False))
    )
    return result.scalar_one_or_none()


async def _ensure_name_available(db: AsyncSession, name: str, exclude_id: Optional[int] = None) -> None:
    stmt = select(Category.id).where(
        func.lower(Category.name) == name.lower(),
        Category.is_deleted.is_(False),
    )
    if exclude_id is not None:
        stmt = stmt.where(Category.id != exclude_id)
    existing = await db.execute(stmt.limit(1))
    if existing.scalar_one_or_none() is not None:
        raise ConflictError("Category with this name already exists")


async def list_categories(
    db: AsyncSession,
    active_only: bool = False,
) -> List[CategoryResponse]:
    stmt = select(Category).where(Category.is_deleted.is_(False))
    if active_only:
        stmt = stmt.where(Category.is_active.is_(True))
    stmt = stmt.order_by(Category.name)
    result = await db.execute(stmt)
    return await _to_responses(db, result.scalars().all())


async def get_category(db: AsyncSession, category_id: int) -> Optional[CategoryResponse]:
    obj = await _get_live_category(db, category_id)
    if not obj:
        return None
    return (await _to_responses(db, [obj]))[0]


async def create_category(db: AsyncSession, payload: CategoryCreate) -> CategoryResponse:
    name = payload.name.strip()
    if not name:
        raise ValidationError("Name and amount are required")
    await _ensure_name_available(db, name)
    obj = Category(
        name=name,
        amount=payload.amount,
        description=payload.description,
        is_active=True,
        is_deleted=False,
    )
    db.add(obj)
    await db.commit()
    await db.refresh(obj)
    logger.info("Created category %s (%s)", obj.id, obj.name)
    return _category_to_response(obj)


async def update_category(
    db: AsyncSession,
    category_id: int,
    payload: CategoryUpdate,
) -> Optional[CategoryResponse]:
    changes = payload.model_dump(exclude_unset=True)
    if not changes:
        raise ValidationError("At least one field to update is required")
    obj = await _get_live_category(db, category_id)
    if not obj:
        return None
    if payload.name is not None:
        name = payload.name.strip()
        if not name:
            raise ValidationError("Name cannot be blank")
        await _ensure_name_available(db, name, exclude_id=category_id)
        obj.name = name
    if payload.amount is not None:
        obj.amount = payload.amount
    if "description" in changes:
        obj.description = payload.description
    await db.commit()
    await db.refresh(obj)
    logger.info("Updated category %s", category_id)
    return (await _to_responses(db, [obj]))[0]


async def toggle_category_status(db: AsyncSession, category_id: int) -> Optional[CategoryResponse]:
    """Flip is_active. Name and amount are left untouched."""
    obj = await _get_live_category(db, category_id)
    if not obj:
        return None
    obj.is_active = not obj.is_active
    await db.commit()
    await db.refresh(obj)
    logger.info("Category %s is_active=%s", category_id, obj.is_active)
    return (await _to_responses(db, [obj]))[0]


async def delete_category(db: AsyncSession, category_id: int) -> bool:
    """Soft delete. Payments referencing the category are kept."""
    obj = await _get_live_category(db, category_id)
    if not obj:
        return False
    obj.is_deleted = True
    await db.commit()
    logger.info("Soft-deleted category %s", category_id)
    return True
