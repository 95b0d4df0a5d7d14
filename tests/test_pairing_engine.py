import random

import pytest
from fastapi import HTTPException

from app.modules.pairing.service import (
    PICK_TWO_UNPAIRED,
    PairingService,
    compute_unpaired,
    partition_pairs,
    shuffle,
)


def test_compute_unpaired_is_members_minus_paired():
    members = ["a", "b", "c", "d", "e"]
    memberships = [{"pair_id": 1, "user_id": "b"}, {"pair_id": 1, "user_id": "d"}]
    assert compute_unpaired(members, memberships) == ["a", "c", "e"]
    # same inputs, same answer
    assert compute_unpaired(members, memberships) == compute_unpaired(members, memberships)


def test_compute_unpaired_ignores_membership_order_and_strangers():
    members = ["a", "b", "c"]
    forward = [{"user_id": "a"}, {"user_id": "zz"}]
    backward = list(reversed(forward))
    assert set(compute_unpaired(members, forward)) == {"b", "c"}
    assert set(compute_unpaired(members, backward)) == {"b", "c"}


def test_compute_unpaired_with_no_pairs_returns_everyone():
    assert compute_unpaired(["a", "b"], []) == ["a", "b"]


def test_shuffle_is_a_permutation_and_leaves_input_alone():
    ids = [str(i) for i in range(10)]
    shuffled = shuffle(ids, random.Random(3))
    assert sorted(shuffled) == sorted(ids)
    assert ids == [str(i) for i in range(10)]


def test_shuffle_is_deterministic_for_a_seeded_source():
    ids = list("abcdefgh")
    assert shuffle(ids, random.Random(42)) == shuffle(ids, random.Random(42))


def test_shuffle_reaches_every_ordering_of_three():
    rng = random.Random(0)
    seen = {tuple(shuffle(["a", "b", "c"], rng)) for _ in range(300)}
    assert len(seen) == 6


@pytest.mark.parametrize("n", range(0, 10))
def test_partition_pairs_sizes(n):
    ids = [f"m{i}" for i in range(n)]
    pairs = partition_pairs(ids)
    assert len(pairs) == n // 2
    paired = [uid for pair in pairs for uid in pair]
    assert len(set(paired)) == 2 * (n // 2)
    assert all(a != b for a, b in pairs)


def test_partition_pairs_takes_consecutive_elements():
    assert partition_pairs(["a", "b", "c", "d", "e"]) == [("a", "b"), ("c", "d")]


@pytest.mark.parametrize("n", [0, 1, 2, 5, 8])
def test_auto_pair_pairs_everyone_but_one_odd_member(fake_db, n):
    cycle = fake_db.add_cycle("2026-01-05", "2026-01-11")
    members = [fake_db.add_user(f"m{i}@example.com").id for i in range(n)]
    service = PairingService(fake_db, rng=random.Random(n))

    result = service.auto_pair(cycle["id"], members)

    assert result.pairs_created == n // 2
    assert result.unpaired_count == n % 2
    assert len(fake_db.rows("pairs", weekly_cycle_id=cycle["id"])) == n // 2
    paired = [m["user_id"] for m in fake_db.tables["pair_members"]]
    assert len(paired) == len(set(paired)) == 2 * (n // 2)
    for pair in result.pairs:
        assert len({m.id for m in pair.members}) == 2


def test_auto_pair_replaces_previous_pairs(fake_db):
    cycle = fake_db.add_cycle("2026-01-05", "2026-01-11")
    members = [fake_db.add_user(f"m{i}@example.com").id for i in range(4)]
    old_pair = fake_db.add_pair(cycle["id"], members[0], members[1])
    service = PairingService(fake_db, rng=random.Random(1))

    service.auto_pair(cycle["id"], members)

    assert not fake_db.rows("pairs", id=old_pair)
    assert not fake_db.rows("pair_members", pair_id=old_pair)
    assert len(fake_db.tables["pairs"]) == 2


def test_manual_pair_rejects_same_or_missing_member(fake_db):
    cycle = fake_db.add_cycle("2026-01-05", "2026-01-11")
    a = fake_db.add_user("a@example.com").id
    service = PairingService(fake_db)

    for user_a, user_b in [(a, a), (a, None), (None, None)]:
        with pytest.raises(HTTPException) as exc:
            service.manual_pair(cycle["id"], user_a, user_b, [a])
        assert exc.value.status_code == 400
        assert exc.value.detail == PICK_TWO_UNPAIRED
    assert fake_db.tables["pairs"] == []


def test_manual_pair_rejects_already_paired_member(fake_db):
    cycle = fake_db.add_cycle("2026-01-05", "2026-01-11")
    a, b, c = (fake_db.add_user(f"{x}@example.com").id for x in "abc")
    fake_db.add_pair(cycle["id"], a, b)
    service = PairingService(fake_db)

    with pytest.raises(HTTPException) as exc:
        service.manual_pair(cycle["id"], a, c, [a, b, c])
    assert exc.value.status_code == 400
    assert len(fake_db.tables["pairs"]) == 1


def test_membership_in_archived_cycle_does_not_block_manual_pair(fake_db):
    old = fake_db.add_cycle("2025-12-29", "2026-01-04", status="archived")
    cycle = fake_db.add_cycle("2026-01-05", "2026-01-11")
    a, b = (fake_db.add_user(f"{x}@example.com").id for x in "ab")
    fake_db.add_pair(old["id"], a, b)

    pair = PairingService(fake_db).manual_pair(cycle["id"], a, b, [a, b])

    assert pair.weekly_cycle_id == cycle["id"]
    assert {m.id for m in pair.members} == {a, b}


def test_failed_membership_insert_removes_orphan_pair(fake_db):
    cycle = fake_db.add_cycle("2026-01-05", "2026-01-11")
    a, b = (fake_db.add_user(f"{x}@example.com").id for x in "ab")
    fake_db.fail_next("pair_members", "insert", skip=1, message="insert violates foreign key")

    with pytest.raises(HTTPException) as exc:
        PairingService(fake_db).manual_pair(cycle["id"], a, b, [a, b])

    assert exc.value.status_code == 500
    assert "foreign key" in exc.value.detail
    assert fake_db.tables["pairs"] == []
    assert fake_db.tables["pair_members"] == []


def test_remove_pair_returns_members_to_unpaired(fake_db):
    cycle = fake_db.add_cycle("2026-01-05", "2026-01-11")
    a, b, c = (fake_db.add_user(f"{x}@example.com").id for x in "abc")
    pair_id = fake_db.add_pair(cycle["id"], a, b)
    service = PairingService(fake_db)
    assert service.get_unpaired_ids(cycle["id"], [a, b, c]) == [c]

    service.remove_pair(pair_id)

    assert service.get_unpaired_ids(cycle["id"], [a, b, c]) == [a, b, c]


def test_remove_missing_pair_is_not_found(fake_db):
    with pytest.raises(HTTPException) as exc:
        PairingService(fake_db).remove_pair(999)
    assert exc.value.status_code == 404
