from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from schoolfees.auth.dependencies import get_current_user
from schoolfees.core.exceptions import ServiceError
from schoolfees.core.schemas import ApiResponse, success
from schoolfees.db.session import get_db

from .schemas import StudentCreate, StudentResponse, StudentUpdate
from . import service

router = APIRouter(
    prefix="/api/students",
    tags=["students"],
    dependencies=[Depends(get_current_user)],
)


@router.get("", response_model=ApiResponse[List[StudentResponse]])
async def list_students(db: AsyncSession = Depends(get_db)) -> ApiResponse[List[StudentResponse]]:
    """Students with expected/paid totals, balance and payment status."""
    students = await service.list_students(db)
    return success("Students retrieved successfully", students)


@router.get("/{student_id}", response_model=ApiResponse[StudentResponse])
async def get_student(
    student_id: int,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[StudentResponse]:
    obj = await service.get_student(db, student_id)
    if not obj:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Student not found")
    return success("Student retrieved successfully", obj)


@router.post(
    "",
    response_model=ApiResponse[StudentResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_student(
    payload: StudentCreate,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[StudentResponse]:
    try:
        obj = await service.create_student(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return success("Student created successfully", obj)


@router.put("/{student_id}", response_model=ApiResponse[StudentResponse])
async def update_student(
    student_id: int,
    payload: StudentUpdate,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[StudentResponse]:
    try:
        obj = await service.update_student(db, student_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    if not obj:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Student not found")
    return success("Student updated successfully", obj)


@router.delete("/{student_id}", response_model=ApiResponse[None])
async def delete_student(
    student_id: int,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[None]:
    deleted = await service.delete_student(db, student_id)
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Student not found")
    return success("Student deleted successfully")
