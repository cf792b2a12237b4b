from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from schoolfees.auth.dependencies import get_current_user
from schoolfees.core.schemas import ApiResponse, success
from schoolfees.db.session import get_db

from .schemas import DashboardStatsResponse
from . import service

router = APIRouter(
    prefix="/api/dashboard",
    tags=["dashboard"],
    dependencies=[Depends(get_current_user)],
)


@router.get("/stats", response_model=ApiResponse[DashboardStatsResponse])
async def get_dashboard_stats(db: AsyncSession = Depends(get_db)) -> ApiResponse[DashboardStatsResponse]:
    """Expected vs. collected totals, payment status split, top categories and monthly collections."""
    stats = await service.get_dashboard_stats(db)
    return success("Dashboard statistics retrieved successfully", stats)
