from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from schoolfees.auth.dependencies import get_current_user
from schoolfees.core.exceptions import ServiceError
from schoolfees.core.schemas import ApiResponse, success
from schoolfees.db.session import get_db

from .schemas import ClassCreate, ClassResponse, ClassUpdate
from . import service

router = APIRouter(
    prefix="/api/classes",
    tags=["classes"],
    dependencies=[Depends(get_current_user)],
)


@router.post(
    "",
    response_model=ApiResponse[ClassResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_class(
    payload: ClassCreate,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[ClassResponse]:
    try:
        obj = await service.create_class(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return success("Class created successfully", obj)


@router.get("", response_model=ApiResponse[List[ClassResponse]])
async def list_classes(
    active_only: bool = Query(False, description="Return only is_active=true"),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[List[ClassResponse]]:
    classes = await service.list_classes(db, active_only=active_only)
    return success("Classes retrieved successfully", classes)


@router.get("/{class_id}", response_model=ApiResponse[ClassResponse])
async def get_class(
    class_id: int,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[ClassResponse]:
    obj = await service.get_class(db, class_id)
    if not obj:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Class not found")
    return success("Class retrieved successfully", obj)


@router.put("/{class_id}", response_model=ApiResponse[ClassResponse])
async def update_class(
    class_id: int,
    payload: ClassUpdate,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[ClassResponse]:
    try:
        obj = await service.update_class(db, class_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    if not obj:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Class not found")
    return success("Class updated successfully", obj)


@router.patch("/{class_id}/toggle", response_model=ApiResponse[ClassResponse])
async def toggle_class_status(
    class_id: int,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[ClassResponse]:
    obj = await service.toggle_class_status(db, class_id)
    if not obj:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Class not found")
    state = "activated" if obj.is_active else "deactivated"
    return success(f"Class {state} successfully", obj)


@router.delete("/{class_id}", response_model=ApiResponse[None])
async def delete_class(
    class_id: int,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[None]:
    deleted = await service.delete_class(db, class_id)
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Class not found")
    return success("Class deleted successfully")
