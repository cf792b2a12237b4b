from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from schoolfees.auth.dependencies import get_current_user
from schoolfees.core.exceptions import ServiceError
from schoolfees.core.schemas import ApiResponse, success
from schoolfees.db.session import get_db
from schoolfees.api.v1.payments.filters import PaymentFilters

from .schemas import PaymentUploadSummary
from . import service

router = APIRouter(
    prefix="/api/reports",
    tags=["reports"],
    dependencies=[Depends(get_current_user)],
)


def _xlsx_response(content: bytes, filename: str) -> Response:
    return Response(
        content=content,
        media_type=service.XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@router.get("/generate")
async def generate_report(
    date_from: Optional[date] = Query(None, alias="dateFrom"),
    date_to: Optional[date] = Query(None, alias="dateTo"),
    category_id: Optional[int] = Query(None, alias="categoryId"),
    class_name: Optional[str] = Query(None, alias="class", description="Exact class name of the student"),
    db: AsyncSession = Depends(get_db),
) -> Response:
    """Excel workbook with one row per matching payment, newest first."""
    filters = PaymentFilters(
        date_from=date_from,
        date_to=date_to,
        category_id=category_id,
        class_name=class_name,
    )
    try:
        content = await service.generate_payment_report(db, filters)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return _xlsx_response(content, "payments_report.xlsx")


@router.post("/upload", response_model=ApiResponse[PaymentUploadSummary])
async def upload_payments(
    file: UploadFile = File(
        ...,
        description="Excel from GET /template with columns: studentId, categoryName, amount, paymentDate, paymentMethod, reference",
    ),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[PaymentUploadSummary]:
    """
    Import payments from the first sheet of an Excel file.
    Valid rows are saved even when other rows fail; failures are listed in `errors`.
    """
    try:
        summary = await service.upload_payments(db, file)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return success(
        f"Upload completed. {summary.success_count} payments imported, {summary.error_count} errors.",
        summary,
    )


@router.get("/template")
async def download_template() -> Response:
    """Blank import sheet. Fill it in and upload via POST /upload."""
    return _xlsx_response(service.build_upload_template(), "payment_upload_template.xlsx")
