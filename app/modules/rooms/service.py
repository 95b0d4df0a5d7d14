from supabase import Client
from app.modules.rooms.schemas import (
    RoomMember, GoalResponse, CommentResponse, CheckInResponse, RoomResponse
)
from app.modules.auth.schemas import SessionContext
from app.core.compensation import CompensatingWrite
from app.config.settings import settings
from typing import List, Optional
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)

GOAL_COLUMNS = "id, pair_id, owner_user_id, title, notes, status, progress"
COMMENT_COLUMNS = "id, pair_id, user_id, body, created_at"
CHECK_IN_COLUMNS = "id, goal_id, user_id, progress, body, created_at, goals!inner(id, title, pair_id)"


class RoomService:
    """Goals, check-ins and comments shared by the two members of a pair"""

    def __init__(self, supabase: Client):
        self.supabase = supabase

    def get_members(self, pair_id: int, session: SessionContext) -> List[RoomMember]:
        """Both members of the pair; the lookup returns nothing unless the caller is one of them"""
        try:
            result = self.supabase.rpc(
                "get_pair_members_secure",
                {"p_pair_id": pair_id, "uid": session.user_id}
            ).execute()
        except Exception as e:
            # An error from the lookup denies access the same way an empty result does
            logger.warning(f"Membership lookup for room {pair_id} failed for user {session.user_id}: {e}")
            raise HTTPException(status_code=403, detail="You are not a member of this pair")
        rows = result.data or []
        if not any(r.get("user_id") == session.user_id for r in rows):
            logger.info(f"User {session.user_id} denied access to room {pair_id}")
            raise HTTPException(status_code=403, detail="You are not a member of this pair")
        return [RoomMember(id=r["user_id"], full_name=r.get("full_name"), email=r.get("email")) for r in rows]

    def list_goals(self, pair_id: int) -> List[GoalResponse]:
        try:
            result = self.supabase.table("goals")\
                .select(GOAL_COLUMNS)\
                .eq("pair_id", pair_id)\
                .order("id")\
                .execute()
            return [GoalResponse(**row) for row in result.data or []]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_goal(self, pair_id: int, goal_id: int) -> GoalResponse:
        try:
            result = self.supabase.table("goals")\
                .select(GOAL_COLUMNS)\
                .eq("id", goal_id)\
                .eq("pair_id", pair_id)\
                .limit(1)\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        if not result.data:
            raise HTTPException(status_code=404, detail="Goal not found")
        return GoalResponse(**result.data[0])

    def add_goal(self, pair_id: int, owner_user_id: str, title: str, notes: Optional[str] = None) -> GoalResponse:
        """New goal starts not_started at 0% progress"""
        title = (title or "").strip()
        if not title:
            raise HTTPException(status_code=400, detail="Title is required.")
        try:
            result = self.supabase.table("goals").insert({
                "pair_id": pair_id,
                "owner_user_id": owner_user_id,
                "title": title,
                "notes": (notes or "").strip() or None,
                "status": "not_started",
                "progress": 0
            }).execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create goal")

            return GoalResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def update_goal(self, pair_id: int, goal_id: int, session: SessionContext,
                    progress: Optional[int] = None, status: Optional[str] = None) -> GoalResponse:
        """Owner-only change of progress and/or status"""
        update_data = {}
        if progress is not None:
            update_data["progress"] = progress
        if status is not None:
            update_data["status"] = status
        if not update_data:
            raise HTTPException(status_code=400, detail="Nothing to update.")

        goal = self.get_goal(pair_id, goal_id)
        if goal.owner_user_id != session.user_id:
            raise HTTPException(status_code=403, detail="Only the goal's owner can change it")
        try:
            result = self.supabase.table("goals")\
                .update(update_data)\
                .eq("id", goal_id)\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="Goal not found")

            return GoalResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def list_comments(self, pair_id: int) -> List[CommentResponse]:
        """Comments, oldest first"""
        try:
            result = self.supabase.table("comments")\
                .select(COMMENT_COLUMNS)\
                .eq("pair_id", pair_id)\
                .order("created_at")\
                .execute()
            return [CommentResponse(**row) for row in result.data or []]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def add_comment(self, pair_id: int, user_id: str, body: str) -> CommentResponse:
        body = (body or "").strip()
        if not body:
            raise HTTPException(status_code=400, detail="Comment cannot be empty.")
        try:
            result = self.supabase.table("comments").insert({
                "pair_id": pair_id,
                "user_id": user_id,
                "body": body
            }).execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to add comment")

            return CommentResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def submit_check_in(self, pair_id: int, goal_id: Optional[int], session: SessionContext,
                        progress: int, note: Optional[str] = None) -> CheckInResponse:
        """Log a check-in and move the goal's progress to the same value.

        If the goal update fails the check-in row is deleted again, so the log
        never disagrees with the goal.
        """
        if goal_id is None:
            raise HTTPException(status_code=400, detail="Pick one of your goals first.")
        goal = self.get_goal(pair_id, goal_id)
        if goal.owner_user_id != session.user_id:
            raise HTTPException(status_code=400, detail="Pick one of your goals first.")

        try:
            with CompensatingWrite(f"check-in on goal {goal_id}") as write:
                result = self.supabase.table("goal_updates").insert({
                    "goal_id": goal_id,
                    "user_id": session.user_id,
                    "progress": progress,
                    "body": (note or "").strip() or None
                }).execute()
                if not result.data:
                    raise HTTPException(status_code=500, detail="Failed to save check-in")
                check_in = result.data[0]
                write.on_failure(
                    f"check-in {check_in['id']}",
                    lambda: self.supabase.table("goal_updates").delete().eq("id", check_in["id"]).execute()
                )

                updated = self.supabase.table("goals")\
                    .update({"progress": progress})\
                    .eq("id", goal_id)\
                    .execute()
                if not updated.data:
                    raise HTTPException(status_code=404, detail="Goal not found")

            return CheckInResponse(**{k: check_in[k] for k in (
                "id", "goal_id", "user_id", "progress", "body", "created_at"
            )}, goal_title=goal.title)
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def list_recent_check_ins(self, pair_id: int, limit: Optional[int] = None) -> List[CheckInResponse]:
        """Newest check-ins across every goal in the pair, with the goal's title"""
        try:
            result = self.supabase.table("goal_updates")\
                .select(CHECK_IN_COLUMNS)\
                .eq("goals.pair_id", pair_id)\
                .order("created_at", desc=True)\
                .limit(limit if limit is not None else settings.recent_check_in_limit)\
                .execute()
            check_ins = []
            for row in result.data or []:
                goal = row.get("goals") or {}
                check_ins.append(CheckInResponse(
                    id=row["id"],
                    goal_id=row["goal_id"],
                    user_id=row["user_id"],
                    progress=row.get("progress"),
                    body=row.get("body"),
                    created_at=row["created_at"],
                    goal_title=goal.get("title") or "(goal)"
                ))
            return check_ins
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_room(self, pair_id: int, session: SessionContext,
                 members: Optional[List[RoomMember]] = None) -> RoomResponse:
        """Everything the room screen shows, split into my side and my partner's"""
        if members is None:
            members = self.get_members(pair_id, session)
        me = next((m for m in members if m.id == session.user_id), None)
        partner = next((m for m in members if m.id != session.user_id), None)
        goals = self.list_goals(pair_id)
        return RoomResponse(
            pair_id=pair_id,
            me=me,
            partner=partner,
            members=members,
            my_goals=[g for g in goals if g.owner_user_id == session.user_id],
            partner_goals=[g for g in goals if g.owner_user_id != session.user_id],
            comments=self.list_comments(pair_id),
            recent_check_ins=self.list_recent_check_ins(pair_id)
        )
