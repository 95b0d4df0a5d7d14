from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase
from app.modules.weekly_cycles.schemas import WeeklyCycleResponse, ManualRangeRequest
from app.modules.weekly_cycles.service import WeeklyCycleService
from app.modules.auth.schemas import SessionContext
from app.core.dependencies import require_admin
from supabase import Client
from typing import List, Optional

router = APIRouter(prefix="/admin/cycles", tags=["weekly_cycles"])


def get_weekly_cycle_service(supabase: Client = Depends(get_supabase)) -> WeeklyCycleService:
    return WeeklyCycleService(supabase)


@router.get("", response_model=List[WeeklyCycleResponse])
async def list_cycles(
    limit: int = 20,
    session: SessionContext = Depends(require_admin),
    service: WeeklyCycleService = Depends(get_weekly_cycle_service)
):
    """Weekly cycles, newest first"""
    return service.list_cycles(limit=limit)


@router.get("/active", response_model=Optional[WeeklyCycleResponse])
async def get_active_cycle(
    session: SessionContext = Depends(require_admin),
    service: WeeklyCycleService = Depends(get_weekly_cycle_service)
):
    """The active weekly cycle, or null"""
    return service.get_active_cycle()


@router.post("/reset-current", response_model=WeeklyCycleResponse)
async def reset_to_current_week(
    session: SessionContext = Depends(require_admin),
    service: WeeklyCycleService = Depends(get_weekly_cycle_service)
):
    """Reset the active week to the current Mon..Sun and clear its pairs"""
    return service.reset_to_current_week()


@router.post("/start-new", response_model=WeeklyCycleResponse, status_code=201)
async def start_new_week(
    session: SessionContext = Depends(require_admin),
    service: WeeklyCycleService = Depends(get_weekly_cycle_service)
):
    """Archive the active week and start next Mon..Sun"""
    return service.start_new_week()


@router.put("/active/range", response_model=WeeklyCycleResponse)
async def set_manual_range(
    range_data: ManualRangeRequest,
    session: SessionContext = Depends(require_admin),
    service: WeeklyCycleService = Depends(get_weekly_cycle_service)
):
    """Set the active week's dates by hand and clear its pairs"""
    return service.set_manual_range(range_data.week_start_date, range_data.week_end_date)
