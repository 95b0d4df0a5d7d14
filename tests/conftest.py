"""In-memory stand-in for the Supabase client used by the API tests."""

from __future__ import annotations

import copy
import itertools
import re
import uuid
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from typing import Any, Callable

import pytest
from fastapi.testclient import TestClient

from app.database.supabase_client import get_supabase, get_supabase_auth
from app.main import app, limiter
from app.modules.auth.service import clear_auth_cache

EMBED = re.compile(r"(\w+)(!inner)?\(([^)]*)\)")

# Tables whose rows go with a parent row (on delete cascade)
CASCADES = {
    "pairs": [("pair_members", "pair_id"), ("goals", "pair_id"), ("comments", "pair_id")],
    "goals": [("goal_updates", "goal_id")],
}
# Tables keyed by something other than an identity column
NO_IDENTITY = {"profiles", "pair_members"}


class StoreError(Exception):
    pass


class FakeQuery:
    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table = table
        self.op = "select"
        self.columns: list[str] | None = None
        self.embeds: list[tuple[str, bool, list[str]]] = []
        self.filters: list[Callable[[dict], bool]] = []
        self.ordering: list[tuple[str, bool]] = []
        self.row_limit: int | None = None
        self.payload: Any = None

    # query building

    def select(self, columns: str = "*"):
        self.op = "select"
        for name, inner, cols in EMBED.findall(columns):
            self.embeds.append((name, bool(inner), [c.strip() for c in cols.split(",") if c.strip()]))
        plain = EMBED.sub("", columns)
        names = [c.strip() for c in plain.split(",") if c.strip()]
        self.columns = None if names == ["*"] else names
        return self

    def insert(self, payload):
        self.op = "insert"
        self.payload = payload
        return self

    def update(self, payload: dict):
        self.op = "update"
        self.payload = payload
        return self

    def delete(self):
        self.op = "delete"
        return self

    def _value(self, row: dict, column: str):
        if "." in column:
            embed, field = column.split(".", 1)
            return (row.get(embed) or {}).get(field)
        return row.get(column)

    def eq(self, column: str, value):
        self.filters.append(lambda row: self._value(row, column) == value)
        return self

    def in_(self, column: str, values):
        values = list(values)
        self.filters.append(lambda row: self._value(row, column) in values)
        return self

    def order(self, column: str, desc: bool = False):
        self.ordering.append((column, desc))
        return self

    def limit(self, count: int):
        self.row_limit = count
        return self

    # execution

    def _embedded(self, row: dict) -> dict:
        row = dict(row)
        for name, _inner, cols in self.embeds:
            fk = f"{name[:-1]}_id"
            target = next((r for r in self.db.tables[name] if r.get("id") == row.get(fk)), None)
            row[name] = {c: target.get(c) for c in cols} if target else None
        return row

    def _matching(self) -> list[dict]:
        return [r for r in self.db.tables[self.table] if all(f(r) for f in self.filters)]

    def execute(self):
        self.db.maybe_fail(self.table, self.op)
        rows = self.db.tables[self.table]
        if self.op == "insert":
            items = self.payload if isinstance(self.payload, list) else [self.payload]
            created = [self.db.new_row(self.table, item) for item in items]
            rows.extend(created)
            return SimpleNamespace(data=copy.deepcopy(created))
        if self.op == "update":
            matched = self._matching()
            for row in matched:
                row.update(self.payload)
            return SimpleNamespace(data=copy.deepcopy(matched))
        if self.op == "delete":
            matched = self._matching()
            for row in matched:
                self.db.remove(self.table, row)
            return SimpleNamespace(data=copy.deepcopy(matched))

        result = [self._embedded(r) for r in rows]
        for name, inner, _cols in self.embeds:
            if inner:
                result = [r for r in result if r.get(name) is not None]
        result = [r for r in result if all(f(r) for f in self.filters)]
        for column, desc in reversed(self.ordering):
            result.sort(key=lambda r: r.get(column), reverse=desc)
        if self.row_limit is not None:
            result = result[: self.row_limit]
        if self.columns is not None:
            keep = set(self.columns) | {name for name, _i, _c in self.embeds}
            result = [{k: v for k, v in r.items() if k in keep} for r in result]
        return SimpleNamespace(data=copy.deepcopy(result))


class FakeRpc:
    def __init__(self, db: "FakeSupabase", name: str, params: dict):
        self.db = db
        self.name = name
        self.params = params

    def execute(self):
        self.db.maybe_fail("rpc", self.name)
        tables = self.db.tables
        if self.name == "get_pair_members_secure":
            members = [m["user_id"] for m in tables["pair_members"] if m["pair_id"] == self.params["p_pair_id"]]
            if self.params["uid"] not in members:
                return SimpleNamespace(data=[])
            profiles = {p["id"]: p for p in tables["profiles"]}
            return SimpleNamespace(data=[
                {"user_id": uid, "full_name": profiles.get(uid, {}).get("full_name"),
                 "email": profiles.get(uid, {}).get("email")}
                for uid in members
            ])
        if self.name == "get_active_pair_for_user":
            active = {c["id"] for c in tables["weekly_cycles"] if c["status"] == "active"}
            pair_ids = {p["id"] for p in tables["pairs"] if p["weekly_cycle_id"] in active}
            return SimpleNamespace(data=[
                {"pair_id": m["pair_id"]} for m in tables["pair_members"]
                if m["pair_id"] in pair_ids and m["user_id"] == self.params["uid"]
            ])
        raise StoreError(f"function {self.name} does not exist")


class FakeAuth:
    def __init__(self, db: "FakeSupabase"):
        self.db = db
        self.accounts: dict[str, dict] = {}
        self.tokens: dict[str, SimpleNamespace] = {}
        self.require_confirmation = False
        self.sign_out_calls = 0

    def _user(self, account: dict) -> SimpleNamespace:
        return SimpleNamespace(
            id=account["id"],
            email=account["email"],
            user_metadata={"full_name": account["full_name"]},
            app_metadata={},
        )

    def issue_token(self, account: dict) -> str:
        token = f"token-{uuid.uuid4().hex}"
        self.tokens[token] = self._user(account)
        return token

    def sign_up(self, credentials: dict):
        email = credentials["email"]
        if email in self.accounts:
            raise StoreError("User already registered")
        full_name = credentials.get("options", {}).get("data", {}).get("full_name") or None
        account = {"id": str(uuid.uuid4()), "email": email,
                   "password": credentials["password"], "full_name": full_name}
        self.accounts[email] = account
        # mirrors the on-signup trigger that creates the profile row
        self.db.tables["profiles"].append(self.db.new_row("profiles", {
            "id": account["id"], "email": email, "full_name": full_name, "role": "member"
        }))
        session = None
        if not self.require_confirmation:
            session = SimpleNamespace(access_token=self.issue_token(account))
        return SimpleNamespace(user=self._user(account), session=session)

    def sign_in_with_password(self, credentials: dict):
        account = self.accounts.get(credentials["email"])
        if not account or account["password"] != credentials["password"]:
            raise StoreError("Invalid login credentials")
        return SimpleNamespace(
            user=self._user(account),
            session=SimpleNamespace(access_token=self.issue_token(account)),
        )

    def get_user(self, jwt: str):
        user = self.tokens.get(jwt)
        if user is None:
            raise StoreError("invalid JWT: unable to parse or verify signature")
        return SimpleNamespace(user=user)

    def sign_out(self):
        self.sign_out_calls += 1


class FakeSupabase:
    def __init__(self):
        self.tables: dict[str, list[dict]] = {
            name: [] for name in (
                "profiles", "weekly_cycles", "pairs", "pair_members",
                "goals", "goal_updates", "comments",
            )
        }
        self.ids = itertools.count(1)
        self.clock = datetime(2026, 1, 5, 9, 0, tzinfo=timezone.utc)
        self.failures: list[dict] = []
        self.calls: list[tuple[str, str]] = []
        self.auth = FakeAuth(self)

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def rpc(self, name: str, params: dict) -> FakeRpc:
        return FakeRpc(self, name, params)

    def now(self) -> str:
        self.clock += timedelta(seconds=1)
        return self.clock.isoformat()

    def new_row(self, table: str, values: dict) -> dict:
        row = dict(values)
        if table not in NO_IDENTITY:
            row.setdefault("id", next(self.ids))
        if table != "pair_members":
            row.setdefault("created_at", self.now())
        if table == "goals":
            row.setdefault("status", "not_started")
            row.setdefault("progress", 0)
            row.setdefault("notes", None)
        return row

    def remove(self, table: str, row: dict) -> None:
        self.tables[table].remove(row)
        for child, fk in CASCADES.get(table, []):
            for child_row in [r for r in self.tables[child] if r.get(fk) == row.get("id")]:
                self.remove(child, child_row)

    def fail_next(self, table: str, op: str, skip: int = 0, message: str = "store unavailable") -> None:
        """Make the (skip+1)-th matching call raise"""
        self.failures.append({"table": table, "op": op, "skip": skip, "message": message})

    def maybe_fail(self, table: str, op: str) -> None:
        self.calls.append((table, op))
        for failure in self.failures:
            if failure["table"] == table and failure["op"] == op:
                if failure["skip"] > 0:
                    failure["skip"] -= 1
                    return
                self.failures.remove(failure)
                raise StoreError(failure["message"])

    # helpers for arranging test data

    def add_user(self, email: str, role: str = "member", full_name: str | None = None) -> SimpleNamespace:
        response = self.auth.sign_up({
            "email": email, "password": "secret123",
            "options": {"data": {"full_name": full_name or email.split("@")[0].title()}},
        })
        if role != "member":
            for profile in self.tables["profiles"]:
                if profile["id"] == response.user.id:
                    profile["role"] = role
        token = response.session.access_token if response.session else self.auth.issue_token(
            self.auth.accounts[email]
        )
        return SimpleNamespace(
            id=response.user.id, email=email, token=token,
            headers={"Authorization": f"Bearer {token}"},
        )

    def add_cycle(self, start: str, end: str, status: str = "active") -> dict:
        row = self.new_row("weekly_cycles", {"week_start_date": start, "week_end_date": end, "status": status})
        self.tables["weekly_cycles"].append(row)
        return row

    def add_pair(self, cycle_id: int, *user_ids: str) -> int:
        pair = self.new_row("pairs", {"weekly_cycle_id": cycle_id})
        self.tables["pairs"].append(pair)
        for user_id in user_ids:
            self.tables["pair_members"].append({"pair_id": pair["id"], "user_id": user_id})
        return pair["id"]

    def rows(self, table: str, **where) -> list[dict]:
        return [r for r in self.tables[table] if all(r.get(k) == v for k, v in where.items())]


@pytest.fixture
def fake_db() -> FakeSupabase:
    return FakeSupabase()


@pytest.fixture
def client(fake_db: FakeSupabase):
    clear_auth_cache()
    limiter.reset()
    app.dependency_overrides[get_supabase] = lambda: fake_db
    app.dependency_overrides[get_supabase_auth] = lambda: fake_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
        clear_auth_cache()


@pytest.fixture
def admin(fake_db: FakeSupabase):
    return fake_db.add_user("admin@example.com", role="admin", full_name="Ada Admin")
