from supabase import Client
from app.modules.weekly_cycles.schemas import WeeklyCycleResponse
from app.core.compensation import CompensatingWrite
from typing import List, Optional, Tuple
from fastapi import HTTPException
from datetime import date, datetime, timedelta, timezone
import logging

logger = logging.getLogger(__name__)


def today_utc() -> date:
    return datetime.now(timezone.utc).date()


def week_bounds(day: date) -> Tuple[date, date]:
    """Monday..Sunday span containing `day`"""
    monday = day - timedelta(days=day.weekday())
    return monday, monday + timedelta(days=6)


class WeeklyCycleService:
    """Owns the single active week that pairing and rooms are scoped to"""

    def __init__(self, supabase: Client):
        self.supabase = supabase

    def _active_rows(self) -> List[dict]:
        result = self.supabase.table("weekly_cycles")\
            .select("*")\
            .eq("status", "active")\
            .order("id", desc=True)\
            .execute()
        return result.data or []

    def _assert_single_active(self, rows: List[dict]) -> None:
        if len(rows) > 1:
            ids = [r["id"] for r in rows]
            logger.error(f"Found {len(rows)} active weekly cycles: {ids}")
            raise HTTPException(
                status_code=409,
                detail=f"Multiple active weekly cycles ({', '.join(str(i) for i in ids)}); archive all but one"
            )

    def get_active_cycle(self) -> Optional[WeeklyCycleResponse]:
        """The cycle with status = active, or None"""
        try:
            rows = self._active_rows()
            self._assert_single_active(rows)
            return WeeklyCycleResponse(**rows[0]) if rows else None
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def list_cycles(self, limit: int = 20) -> List[WeeklyCycleResponse]:
        """Cycle history, newest first"""
        try:
            result = self.supabase.table("weekly_cycles")\
                .select("*")\
                .order("id", desc=True)\
                .limit(limit)\
                .execute()
            return [WeeklyCycleResponse(**row) for row in result.data or []]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def _clear_pairs(self, cycle_id: int) -> int:
        # pair_members rows go with their pair (on delete cascade)
        result = self.supabase.table("pairs")\
            .delete()\
            .eq("weekly_cycle_id", cycle_id)\
            .execute()
        return len(result.data or [])

    def _insert_active(self, start: date, end: date) -> WeeklyCycleResponse:
        result = self.supabase.table("weekly_cycles").insert({
            "week_start_date": start.isoformat(),
            "week_end_date": end.isoformat(),
            "status": "active"
        }).execute()
        if not result.data:
            raise HTTPException(status_code=500, detail="Failed to create weekly cycle")
        return WeeklyCycleResponse(**result.data[0])

    def _set_active_range(self, start: date, end: date) -> WeeklyCycleResponse:
        """Point the active cycle at [start, end] with no pairs, creating it when missing"""
        try:
            active = self.get_active_cycle()
            if active is None:
                cycle = self._insert_active(start, end)
                logger.info(f"Created active weekly cycle {cycle.id}: {start} -> {end}")
                return cycle

            result = self.supabase.table("weekly_cycles")\
                .update({
                    "week_start_date": start.isoformat(),
                    "week_end_date": end.isoformat(),
                    "status": "active"
                })\
                .eq("id", active.id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Weekly cycle not found")

            removed = self._clear_pairs(active.id)
            logger.info(f"Reset weekly cycle {active.id} to {start} -> {end}; removed {removed} pair(s)")
            return WeeklyCycleResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def reset_to_current_week(self, today: Optional[date] = None) -> WeeklyCycleResponse:
        """Active cycle becomes the current Mon..Sun with zero pairs"""
        start, end = week_bounds(today or today_utc())
        return self._set_active_range(start, end)

    def set_manual_range(self, start: Optional[date], end: Optional[date]) -> WeeklyCycleResponse:
        """Active cycle becomes [start, end] with zero pairs"""
        if start is None or end is None:
            raise HTTPException(status_code=400, detail="Pick a start and end date.")
        if start >= end:
            raise HTTPException(status_code=400, detail="Start date must be before end date.")
        return self._set_active_range(start, end)

    def start_new_week(self, today: Optional[date] = None) -> WeeklyCycleResponse:
        """Archive the active cycle and open next Mon..Sun; prior pairs stay with the archived cycle"""
        try:
            with CompensatingWrite("start new week") as write:
                result = self.supabase.table("weekly_cycles")\
                    .update({"status": "archived"})\
                    .eq("status", "active")\
                    .execute()
                archived = [row["id"] for row in result.data or []]
                if archived:
                    logger.info(f"Archived weekly cycle(s) {archived}")
                    write.on_failure(
                        f"archive of cycle(s) {archived}",
                        lambda: self.supabase.table("weekly_cycles")
                            .update({"status": "active"})
                            .in_("id", archived)
                            .execute()
                    )

                start, end = week_bounds(today or today_utc())
                cycle = self._insert_active(start + timedelta(days=7), end + timedelta(days=7))

            # Another admin may have opened a week between our archive and insert
            self._assert_single_active(self._active_rows())
            logger.info(f"Started weekly cycle {cycle.id}: {cycle.week_start_date} -> {cycle.week_end_date}")
            return cycle
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
