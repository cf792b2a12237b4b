from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from schoolfees.auth.dependencies import get_current_user
from schoolfees.core.exceptions import ServiceError
from schoolfees.core.schemas import ApiResponse, success
from schoolfees.db.session import get_db

from .filters import PaymentFilters
from .schemas import PaymentCreate, PaymentResponse, PaymentUpdate
from . import service

router = APIRouter(
    prefix="/api/payments",
    tags=["payments"],
    dependencies=[Depends(get_current_user)],
)


@router.get("", response_model=ApiResponse[List[PaymentResponse]])
async def list_payments(
    date_from: Optional[date] = Query(None, alias="dateFrom", description="Inclusive lower bound (YYYY-MM-DD)"),
    date_to: Optional[date] = Query(None, alias="dateTo", description="Inclusive upper bound (YYYY-MM-DD)"),
    student_id: Optional[int] = Query(None, alias="studentId"),
    category_id: Optional[int] = Query(None, alias="categoryId"),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[List[PaymentResponse]]:
    filters = PaymentFilters(
        date_from=date_from,
        date_to=date_to,
        student_id=student_id,
        category_id=category_id,
    )
    payments = await service.list_payments(db, filters)
    return success("Payments retrieved successfully", payments)


@router.get("/{payment_id}", response_model=ApiResponse[PaymentResponse])
async def get_payment(
    payment_id: int,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[PaymentResponse]:
    obj = await service.get_payment(db, payment_id)
    if not obj:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Payment not found")
    return success("Payment retrieved successfully", obj)


@router.post(
    "",
    response_model=ApiResponse[PaymentResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_payment(
    payload: PaymentCreate,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[PaymentResponse]:
    try:
        obj = await service.create_payment(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return success("Payment recorded successfully", obj)


@router.put("/{payment_id}", response_model=ApiResponse[PaymentResponse])
async def update_payment(
    payment_id: int,
    payload: PaymentUpdate,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[PaymentResponse]:
    try:
        obj = await service.update_payment(db, payment_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    if not obj:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Payment not found")
    return success("Payment updated successfully", obj)


@router.delete("/{payment_id}", response_model=ApiResponse[None])
async def delete_payment(
    payment_id: int,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[None]:
    deleted = await service.delete_payment(db, payment_id)
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Payment not found")
    return success("Payment deleted successfully")
