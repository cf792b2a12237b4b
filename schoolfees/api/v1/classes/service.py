import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from schoolfees.core.exceptions import ConflictError, ValidationError
from schoolfees.core.models import SchoolClass

from .schemas import ClassCreate, ClassResponse, ClassUpdate

logger = logging.getLogger(__name__)


def _class_to_response(c: SchoolClass) -> ClassResponse:
    return ClassResponse(
        id=c.id,
        name=c.name,
        description=c.description,
        is_active=c.is_active,
        created_at=c.created_at,
        updated_at=c.updated_at,
    )


async def _get_class_obj(db: AsyncSession, class_id: int) -> Optional[SchoolClass]:
    result = await db.execute(select(SchoolClass).where(SchoolClass.id == class_id))
    return result.scalar_one_or_none()


async def create_class(db: AsyncSession, payload: ClassCreate) -> ClassResponse:
    name = payload.name.strip()
    if not name:
        raise ValidationError("Class name is required")
    try:
        obj = SchoolClass(
            name=name,
            description=payload.description,
            is_active=payload.is_active,
        )
        db.add(obj)
        await db.commit()
        await db.refresh(obj)
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Class name already exists")
    logger.info("Created class %s (%s)", obj.id, obj.name)
    return _class_to_response(obj)


async def list_classes(db: AsyncSession, active_only: bool = False) -> List[ClassResponse]:
    stmt = select(SchoolClass)
    if active_only:
        stmt = stmt.where(SchoolClass.is_active.is_(True))
    stmt = stmt.order_by(SchoolClass.name)
    result = await db.execute(stmt)
    return [_class_to_response(c) for c in result.scalars().all()]


async def get_class(db: AsyncSession, class_id: int) -> Optional[ClassResponse]:
    obj = await _get_class_obj(db, class_id)
    return _class_to_response(obj) if obj else None


async def update_class(
    db: AsyncSession,
    class_id: int,
    payload: ClassUpdate,
) -> Optional[ClassResponse]:
    obj = await _get_class_obj(db, class_id)
    if not obj:
        return None
    if payload.name is not None:
        name = payload.name.strip()
        if not name:
            raise ValidationError("Class name is required")
        obj.name = name
    if payload.description is not None:
        obj.description = payload.description
    if payload.is_active is not None:
        obj.is_active = payload.is_active
    try:
        await db.commit()
        await db.refresh(obj)
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Class name already exists")
    return _class_to_response(obj)


async def toggle_class_status(db: AsyncSession, class_id: int) -> Optional[ClassResponse]:
    obj = await _get_class_obj(db, class_id)
    if not obj:
        return None
    obj.is_active = not obj.is_active
    await db.commit()
    await db.refresh(obj)
    return _class_to_response(obj)


async def delete_class(db: AsyncSession, class_id: int) -> bool:
    """Hard delete. Students keep their class name text."""
    obj = await _get_class_obj(db, class_id)
    if not obj:
        return False
    await db.delete(obj)
    await db.commit()
    logger.info("Deleted class %s", class_id)
    return True
