"""Payment reports: Excel export of filtered payments, bulk import from Excel, upload template.

Import applies rows one by one with a commit per row. A failing row is rolled back and
recorded in the summary; the rest of the batch still runs.
"""

import io
import logging
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Dict, List, Optional, Sequence

from fastapi import UploadFile
from openpyxl import Workbook, load_workbook
from openpyxl.utils.datetime import from_excel
from openpyxl.worksheet.datavalidation import DataValidation
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from schoolfees.core.enums import PaymentMethod
from schoolfees.core.exceptions import RowError, ServiceError, ValidationError
from schoolfees.core.models import Category, Payment
from schoolfees.api.v1.payments.filters import PaymentFilters, find_payments
from schoolfees.api.v1.payments.service import record_payment
from schoolfees.api.v1.students.service import get_student_by_external_id

from .schemas import PaymentUploadSummary

logger = logging.getLogger(__name__)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
SHEET_NAME = "Payments"

# Column order is part of the export contract; downstream sheets read by position.
REPORT_HEADERS = (
    "id",
    "payment_date",
    "student_id",
    "first_name",
    "last_name",
    "class",
    "category_name",
    "amount",
    "payment_method",
    "reference",
    "notes",
)

TEMPLATE_HEADERS = ("studentId", "categoryName", "amount", "paymentDate", "paymentMethod", "reference")
REQUIRED_IMPORT_HEADERS = ("studentId", "categoryName", "amount", "paymentDate")
DEFAULT_IMPORT_METHOD = "Cash"
TEMPLATE_MAX_ROWS = 1000

# Slash, dash and dot dates are month-first: "12/01/2024" is 1 December 2024.
DATE_FORMATS = ("%Y-%m-%d", "%Y/%m/%d", "%m/%d/%Y", "%m-%d-%Y", "%m.%d.%Y")


def _header_key(value) -> str:
    return (str(value) if value is not None else "").strip().lower().replace(" ", "").replace("_", "")


_IMPORT_HEADER_KEYS = {_header_key(h): h for h in TEMPLATE_HEADERS}


# --- Export ---
def payment_report_rows(payments: Sequence[Payment]) -> List[list]:
    """One row per payment in REPORT_HEADERS order. Payments must have student and category loaded."""
    return [
        [
            p.id,
            p.payment_date,
            p.student.student_id,
            p.student.first_name,
            p.student.last_name,
            p.student.class_name,
            p.category.name,
            Decimal(str(p.amount)),
            p.payment_method,
            p.reference,
            p.notes,
        ]
        for p in payments
    ]


def build_payment_report(payments: Sequence[Payment]) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = SHEET_NAME
    ws.append(list(REPORT_HEADERS))
    for row in payment_report_rows(payments):
        ws.append(row)
    bio = io.BytesIO()
    wb.save(bio)
    return bio.getvalue()


async def generate_payment_report(db: AsyncSession, filters: PaymentFilters) -> bytes:
    payments = await find_payments(db, filters)
    logger.info("Generating payment report with %d rows (filters=%s)", len(payments), filters.model_dump())
    return build_payment_report(payments)


def build_upload_template() -> bytes:
    """Blank import sheet with the import headers and a payment method dropdown."""
    wb = Workbook()
    ws = wb.active
    ws.title = SHEET_NAME
    ws.append(list(TEMPLATE_HEADERS))

    methods = ",".join(m.value for m in PaymentMethod)
    dv_method = DataValidation(type="list", formula1=f'"{methods}"', allow_blank=True)
    dv_method.error = "Select a payment method from the dropdown"
    ws.add_data_validation(dv_method)
    dv_method.add(f"E2:E{TEMPLATE_MAX_ROWS + 1}")

    bio = io.BytesIO()
    wb.save(bio)
    return bio.getvalue()


# --- Import ---
async def read_upload(file: UploadFile) -> bytes:
    if not file.filename or not file.filename.lower().endswith(".xlsx"):
        raise ValidationError("File must be an Excel file (.xlsx)")
    content = await file.read()
    if not content:
        raise ValidationError("File is empty")
    return content


def parse_payment_sheet(content: bytes) -> List[Dict[str, object]]:
    """Rows of the first worksheet as dicts keyed by import header. Blank rows are skipped.

    Only recognised columns appear in each dict; missing required columns fail each row on import.

    Headers match case-insensitively, ignoring spaces and underscores ('Student ID' == 'studentId').
    """
    try:
        wb = load_workbook(filename=io.BytesIO(content), read_only=True, data_only=True)
    except Exception as e:
        raise ValidationError(f"Invalid Excel file: {e}") from e

    try:
        if not wb.worksheets:
            raise ValidationError("Excel file has no worksheet")
        ws = wb.worksheets[0]
        rows_iter = ws.iter_rows(values_only=True)
        header_row = next(rows_iter, None)
        if not header_row:
            raise ValidationError("Excel file has no header row")

        col_idx: Dict[str, int] = {}
        for i, cell in enumerate(header_row):
            name = _IMPORT_HEADER_KEYS.get(_header_key(cell))
            if name and name not in col_idx:
                col_idx[name] = i
        rows: List[Dict[str, object]] = []
        for row in rows_iter:
            if not row or all(c is None or (isinstance(c, str) and not c.strip()) for c in row):
                continue
            rows.append({h: (row[i] if i < len(row) else None) for h, i in col_idx.items()})
        return rows
    finally:
        wb.close()


def _cell_str(value) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        # Excel stores numeric ids as floats
        return str(int(value))
    return str(value).strip()


def _parse_amount(value) -> Decimal:
    if value is None or isinstance(value, bool) or (isinstance(value, str) and not value.strip()):
        raise RowError("Amount is required")
    try:
        amount = Decimal(str(value).replace(",", "").strip())
    except InvalidOperation:
        raise RowError(f"Invalid amount '{value}'") from None
    if not amount.is_finite() or amount <= 0:
        raise RowError(f"Invalid amount '{value}'")
    return amount.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def _parse_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return from_excel(value).date()
        except (ValueError, OverflowError, TypeError):
            raise RowError(f"Invalid payment date '{value}'") from None
    text = _cell_str(value)
    if not text:
        raise RowError("Payment date is required")
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        pass
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    raise RowError(f"Invalid payment date '{text}'")


def _parse_method(value) -> PaymentMethod:
    text = _cell_str(value) or DEFAULT_IMPORT_METHOD
    try:
        return PaymentMethod.parse(text)
    except ValueError as e:
        raise RowError(str(e)) from None


async def _find_category_by_name(db: AsyncSession, name: str) -> Optional[Category]:
    result = await db.execute(
        select(Category).where(Category.name == name, Category.is_deleted.is_(False))
    )
    return result.scalars().first()


async def _import_row(db: AsyncSession, row: Dict[str, object]) -> None:
    missing = [h for h in REQUIRED_IMPORT_HEADERS if h not in row]
    if missing:
        raise RowError(f"Missing required column(s): {', '.join(missing)}")

    external_id = _cell_str(row.get("studentId"))
    category_name = _cell_str(row.get("categoryName"))

    student = await get_student_by_external_id(db, external_id) if external_id else None
    if not student:
        raise RowError(f"Student with ID {external_id} not found")
    category = await _find_category_by_name(db, category_name) if category_name else None
    if not category:
        raise RowError(f'Category "{category_name}" not found')

    await record_payment(
        db,
        student,
        category,
        amount=_parse_amount(row.get("amount")),
        payment_date=_parse_date(row.get("paymentDate")),
        payment_method=_parse_method(row.get("paymentMethod")),
        reference=_cell_str(row.get("reference")) or None,
    )


async def import_payments(db: AsyncSession, rows: Sequence[Dict[str, object]]) -> PaymentUploadSummary:
    """Create one payment per row, in order. Row numbers in errors are 1-based data rows."""
    summary = PaymentUploadSummary()
    for index, row in enumerate(rows, start=1):
        try:
            await _import_row(db, row)
        except (ServiceError, SQLAlchemyError) as e:
            await db.rollback()
            message = e.message if isinstance(e, ServiceError) else "Could not save payment"
            summary.error_count += 1
            summary.errors.append(f"Row {index}: {message}")
            logger.warning("Payment import row %d failed: %s", index, e)
        else:
            summary.success_count += 1
    logger.info(
        "Payment import finished: %d imported, %d errors",
        summary.success_count,
        summary.error_count,
    )
    return summary


async def upload_payments(db: AsyncSession, file: UploadFile) -> PaymentUploadSummary:
    content = await read_upload(file)
    rows = parse_payment_sheet(content)
    return await import_payments(db, rows)
