import logging
import random
from supabase import Client
from app.modules.pairing.schemas import PairResponse, PairingOverview, AutoPairResponse
from app.modules.profiles.schemas import ProfileResponse
from app.modules.profiles.service import ProfileService
from app.modules.weekly_cycles.schemas import WeeklyCycleResponse
from app.core.compensation import CompensatingWrite
from typing import Dict, Iterable, List, Optional, Sequence, Tuple
from fastapi import HTTPException

logger = logging.getLogger(__name__)

PICK_TWO_UNPAIRED = "Pick two different unpaired members."


def compute_unpaired(member_ids: Iterable[str], memberships: Iterable[dict]) -> List[str]:
    """Members that appear in none of the given pair_members rows, in member order"""
    seen = {row["user_id"] for row in memberships}
    unpaired = []
    for member_id in member_ids:
        if member_id not in seen:
            seen.add(member_id)
            unpaired.append(member_id)
    return unpaired


def shuffle(ids: Sequence[str], rng: random.Random) -> List[str]:
    """Uniform random permutation (Fisher-Yates)"""
    pool = list(ids)
    for i in range(len(pool) - 1, 0, -1):
        j = rng.randint(0, i)
        pool[i], pool[j] = pool[j], pool[i]
    return pool


def partition_pairs(ids: Sequence[str]) -> List[Tuple[str, str]]:
    """Consecutive pairs (p0, p1), (p2, p3), ...; an odd last element is left out"""
    return [(ids[i], ids[i + 1]) for i in range(0, len(ids) - 1, 2)]


class PairingService:
    def __init__(self, supabase: Client, rng: Optional[random.Random] = None):
        self.supabase = supabase
        self.rng = rng or random.SystemRandom()
        self.profiles = ProfileService(supabase)

    def _pair_rows(self, cycle_id: int) -> List[dict]:
        result = self.supabase.table("pairs")\
            .select("id, weekly_cycle_id, created_at")\
            .eq("weekly_cycle_id", cycle_id)\
            .order("id")\
            .execute()
        return result.data or []

    def _memberships(self, pair_ids: List[int]) -> List[dict]:
        if not pair_ids:
            return []
        result = self.supabase.table("pair_members")\
            .select("pair_id, user_id")\
            .in_("pair_id", pair_ids)\
            .execute()
        return result.data or []

    def list_pairs(self, cycle_id: int) -> List[PairResponse]:
        """Pairs under a cycle with their member profiles"""
        try:
            pairs = self._pair_rows(cycle_id)
            memberships = self._memberships([p["id"] for p in pairs])
            profiles = {
                p.id: p for p in self.profiles.get_profiles_by_ids(
                    list({m["user_id"] for m in memberships})
                )
            }
            members_by_pair: Dict[int, List[ProfileResponse]] = {p["id"]: [] for p in pairs}
            for row in memberships:
                profile = profiles.get(row["user_id"])
                if profile and row["pair_id"] in members_by_pair:
                    members_by_pair[row["pair_id"]].append(profile)
            return [PairResponse(**p, members=members_by_pair[p["id"]]) for p in pairs]
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_overview(self, cycle: Optional[WeeklyCycleResponse]) -> PairingOverview:
        """Active week, its pairs, and the members still waiting for a partner"""
        members = self.profiles.list_members()
        if cycle is None:
            return PairingOverview(week=None, pairs=[], unpaired=members, unpaired_count=len(members))
        pairs = self.list_pairs(cycle.id)
        memberships = [{"user_id": m.id} for pair in pairs for m in pair.members]
        unpaired_ids = set(compute_unpaired([m.id for m in members], memberships))
        unpaired = [m for m in members if m.id in unpaired_ids]
        return PairingOverview(week=cycle, pairs=pairs, unpaired=unpaired, unpaired_count=len(unpaired))

    def get_unpaired_ids(self, cycle_id: int, member_ids: List[str]) -> List[str]:
        try:
            pair_ids = [p["id"] for p in self._pair_rows(cycle_id)]
            return compute_unpaired(member_ids, self._memberships(pair_ids))
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def _create_pair(self, cycle_id: int, user_a: str, user_b: str) -> int:
        """Insert a pair and both memberships; a failed membership insert removes the pair again"""
        with CompensatingWrite(f"create pair in cycle {cycle_id}") as write:
            result = self.supabase.table("pairs")\
                .insert({"weekly_cycle_id": cycle_id})\
                .execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create pair")
            pair_id = result.data[0]["id"]
            write.on_failure(
                f"pair {pair_id}",
                lambda: self.supabase.table("pairs").delete().eq("id", pair_id).execute()
            )
            for user_id in (user_a, user_b):
                self.supabase.table("pair_members")\
                    .insert({"pair_id": pair_id, "user_id": user_id})\
                    .execute()
        return pair_id

    def auto_pair(self, cycle_id: int, member_ids: List[str]) -> AutoPairResponse:
        """Discard the cycle's pairs and pair every member at random"""
        try:
            self.supabase.table("pairs")\
                .delete()\
                .eq("weekly_cycle_id", cycle_id)\
                .execute()

            pool = shuffle(member_ids, self.rng)
            pairs = partition_pairs(pool)
            for user_a, user_b in pairs:
                self._create_pair(cycle_id, user_a, user_b)

            unpaired_count = len(pool) - 2 * len(pairs)
            logger.info(
                f"Auto-paired cycle {cycle_id}: {len(pairs)} pair(s), {unpaired_count} unpaired"
            )
            return AutoPairResponse(
                pairs_created=len(pairs),
                unpaired_count=unpaired_count,
                pairs=self.list_pairs(cycle_id)
            )
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def manual_pair(self, cycle_id: int, user_a: Optional[str], user_b: Optional[str],
                    member_ids: List[str]) -> PairResponse:
        """Pair two members who are both unpaired in this cycle"""
        if not user_a or not user_b or user_a == user_b:
            raise HTTPException(status_code=400, detail=PICK_TWO_UNPAIRED)
        unpaired = self.get_unpaired_ids(cycle_id, member_ids)
        if user_a not in unpaired or user_b not in unpaired:
            raise HTTPException(status_code=400, detail=PICK_TWO_UNPAIRED)
        try:
            pair_id = self._create_pair(cycle_id, user_a, user_b)
            logger.info(f"Manually paired {user_a} and {user_b} as pair {pair_id} in cycle {cycle_id}")
            for pair in self.list_pairs(cycle_id):
                if pair.id == pair_id:
                    return pair
            raise HTTPException(status_code=404, detail="Pair not found")
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def remove_pair(self, pair_id: int) -> None:
        """Delete a pair; its two members become unpaired"""
        try:
            result = self.supabase.table("pairs")\
                .delete()\
                .eq("id", pair_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Pair not found")
            logger.info(f"Removed pair {pair_id}")
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
