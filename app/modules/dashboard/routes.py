from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase
from app.modules.dashboard.schemas import DashboardResponse
from app.modules.dashboard.service import DashboardService
from app.modules.auth.schemas import SessionContext
from app.core.dependencies import get_session
from supabase import Client

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


def get_dashboard_service(supabase: Client = Depends(get_supabase)) -> DashboardService:
    return DashboardService(supabase)


@router.get("", response_model=DashboardResponse)
async def get_dashboard(
    session: SessionContext = Depends(get_session),
    service: DashboardService = Depends(get_dashboard_service)
):
    """Profile card; paired users also get the room to redirect to"""
    return service.load(session)
