from fastapi import APIRouter, Depends, HTTPException
from app.database.supabase_client import get_supabase
from app.modules.pairing.schemas import PairResponse, ManualPairRequest, PairingOverview, AutoPairResponse
from app.modules.pairing.service import PairingService
from app.modules.weekly_cycles.routes import get_weekly_cycle_service
from app.modules.weekly_cycles.schemas import WeeklyCycleResponse
from app.modules.weekly_cycles.service import WeeklyCycleService
from app.modules.profiles.service import ProfileService
from app.modules.auth.schemas import SessionContext
from app.core.dependencies import require_admin, get_profile_service
from supabase import Client

router = APIRouter(prefix="/admin/pairs", tags=["pairing"])


def get_pairing_service(supabase: Client = Depends(get_supabase)) -> PairingService:
    return PairingService(supabase)


def require_active_cycle(
    cycles: WeeklyCycleService = Depends(get_weekly_cycle_service)
) -> WeeklyCycleResponse:
    cycle = cycles.get_active_cycle()
    if cycle is None:
        raise HTTPException(status_code=400, detail="No active week. Start or reset a week first.")
    return cycle


@router.get("", response_model=PairingOverview)
async def get_pairing_overview(
    session: SessionContext = Depends(require_admin),
    cycles: WeeklyCycleService = Depends(get_weekly_cycle_service),
    service: PairingService = Depends(get_pairing_service)
):
    """Active week, current pairs and unpaired members"""
    return service.get_overview(cycles.get_active_cycle())


@router.post("/auto", response_model=AutoPairResponse)
async def auto_pair(
    session: SessionContext = Depends(require_admin),
    cycle: WeeklyCycleResponse = Depends(require_active_cycle),
    profiles: ProfileService = Depends(get_profile_service),
    service: PairingService = Depends(get_pairing_service)
):
    """Replace this week's pairs with a random pairing of all members"""
    member_ids = [m.id for m in profiles.list_members()]
    return service.auto_pair(cycle.id, member_ids)


@router.post("", response_model=PairResponse, status_code=201)
async def manual_pair(
    pair_data: ManualPairRequest,
    session: SessionContext = Depends(require_admin),
    cycle: WeeklyCycleResponse = Depends(require_active_cycle),
    profiles: ProfileService = Depends(get_profile_service),
    service: PairingService = Depends(get_pairing_service)
):
    """Pair two unpaired members"""
    member_ids = [m.id for m in profiles.list_members()]
    return service.manual_pair(cycle.id, pair_data.user_a, pair_data.user_b, member_ids)


@router.delete("/{pair_id}", status_code=204)
async def remove_pair(
    pair_id: int,
    session: SessionContext = Depends(require_admin),
    service: PairingService = Depends(get_pairing_service)
):
    """Remove a pair so both members can be paired again"""
    service.remove_pair(pair_id)
    return None
