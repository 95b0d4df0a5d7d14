from fastapi import APIRouter, Depends, Query
from app.database.supabase_client import get_supabase
from app.modules.rooms.schemas import (
    RoomMember, RoomResponse, GoalCreate, GoalUpdate, GoalResponse,
    CommentCreate, CommentResponse, CheckInCreate, CheckInResponse
)
from app.modules.rooms.service import RoomService
from app.modules.auth.schemas import SessionContext
from app.core.dependencies import get_session
from supabase import Client
from typing import List, Optional

router = APIRouter(prefix="/rooms", tags=["rooms"])


def get_room_service(supabase: Client = Depends(get_supabase)) -> RoomService:
    return RoomService(supabase)


def require_pair_member(
    pair_id: int,
    session: SessionContext = Depends(get_session),
    service: RoomService = Depends(get_room_service)
) -> List[RoomMember]:
    """Both members of the pair, or 403 when the caller is not one of them"""
    return service.get_members(pair_id, session)


@router.get("/{pair_id}", response_model=RoomResponse)
async def get_room(
    pair_id: int,
    session: SessionContext = Depends(get_session),
    members: List[RoomMember] = Depends(require_pair_member),
    service: RoomService = Depends(get_room_service)
):
    """Members, goals, comments and recent check-ins of a pair"""
    return service.get_room(pair_id, session, members)


@router.post("/{pair_id}/goals", response_model=GoalResponse, status_code=201)
async def add_goal(
    pair_id: int,
    goal_data: GoalCreate,
    session: SessionContext = Depends(get_session),
    members: List[RoomMember] = Depends(require_pair_member),
    service: RoomService = Depends(get_room_service)
):
    """Add a goal owned by the caller"""
    return service.add_goal(pair_id, session.user_id, goal_data.title, goal_data.notes)


@router.patch("/{pair_id}/goals/{goal_id}", response_model=GoalResponse)
async def update_goal(
    pair_id: int,
    goal_id: int,
    goal_data: GoalUpdate,
    session: SessionContext = Depends(get_session),
    members: List[RoomMember] = Depends(require_pair_member),
    service: RoomService = Depends(get_room_service)
):
    """Change progress or status of one of the caller's goals"""
    return service.update_goal(pair_id, goal_id, session, progress=goal_data.progress, status=goal_data.status)


@router.get("/{pair_id}/comments", response_model=List[CommentResponse])
async def list_comments(
    pair_id: int,
    members: List[RoomMember] = Depends(require_pair_member),
    service: RoomService = Depends(get_room_service)
):
    return service.list_comments(pair_id)


@router.post("/{pair_id}/comments", response_model=CommentResponse, status_code=201)
async def add_comment(
    pair_id: int,
    comment_data: CommentCreate,
    session: SessionContext = Depends(get_session),
    members: List[RoomMember] = Depends(require_pair_member),
    service: RoomService = Depends(get_room_service)
):
    return service.add_comment(pair_id, session.user_id, comment_data.body)


@router.get("/{pair_id}/check-ins", response_model=List[CheckInResponse])
async def list_check_ins(
    pair_id: int,
    limit: Optional[int] = Query(None, ge=1, le=100),
    members: List[RoomMember] = Depends(require_pair_member),
    service: RoomService = Depends(get_room_service)
):
    """Most recent check-ins across the pair's goals, newest first"""
    return service.list_recent_check_ins(pair_id, limit)


@router.post("/{pair_id}/check-ins", response_model=CheckInResponse, status_code=201)
async def submit_check_in(
    pair_id: int,
    check_in: CheckInCreate,
    session: SessionContext = Depends(get_session),
    members: List[RoomMember] = Depends(require_pair_member),
    service: RoomService = Depends(get_room_service)
):
    """Report progress on one of the caller's goals"""
    return service.submit_check_in(pair_id, check_in.goal_id, session, check_in.progress, check_in.note)
