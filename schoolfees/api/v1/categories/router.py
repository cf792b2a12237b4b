from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from schoolfees.auth.dependencies import get_current_user
from schoolfees.core.exceptions import ServiceError
from schoolfees.core.schemas import ApiResponse, success
from schoolfees.db.session import get_db

from .schemas import CategoryCreate, CategoryResponse, CategoryUpdate
from . import service

router = APIRouter(
    prefix="/api/categories",
    tags=["categories"],
    dependencies=[Depends(get_current_user)],
)


@router.get("", response_model=ApiResponse[List[CategoryResponse]])
async def list_categories(db: AsyncSession = Depends(get_db)) -> ApiResponse[List[CategoryResponse]]:
    categories = await service.list_categories(db)
    return success("Categories retrieved successfully", categories)


@router.get("/active", response_model=ApiResponse[List[CategoryResponse]])
async def list_active_categories(db: AsyncSession = Depends(get_db)) -> ApiResponse[List[CategoryResponse]]:
    categories = await service.list_categories(db, active_only=True)
    return success("Active categories retrieved successfully", categories)


@router.get("/{category_id}", response_model=ApiResponse[CategoryResponse])
async def get_category(
    category_id: int,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[CategoryResponse]:
    obj = await service.get_category(db, category_id)
    if not obj:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")
    return success("Category retrieved successfully", obj)


@router.post(
    "",
    response_model=ApiResponse[CategoryResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_category(
    payload: CategoryCreate,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[CategoryResponse]:
    try:
        obj = await service.create_category(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return success("Category created successfully", obj)


@router.put("/{category_id}", response_model=ApiResponse[CategoryResponse])
async def update_category(
    category_id: int,
    payload: CategoryUpdate,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[CategoryResponse]:
    try:
        obj = await service.update_category(db, category_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    if not obj:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")
    return success("Category updated successfully", obj)


@router.patch("/{category_id}/toggle-status", response_model=ApiResponse[CategoryResponse])
async def toggle_category_status(
    category_id: int,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[CategoryResponse]:
    obj = await service.toggle_category_status(db, category_id)
    if not obj:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")
    return success("Category toggled successfully", obj)


@router.delete("/{category_id}", response_model=ApiResponse[None])
async def delete_category(
    category_id: int,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[None]:
    deleted = await service.delete_category(db, category_id)
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")
    return success("Category deleted successfully")
