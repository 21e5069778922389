"""Shared pytest fixtures for the test suite.

Fixture overview
----------------
fake_supabase  : in-memory stand-in for the Supabase query builder, seeded
                 with one admin and three members
seed_equb      : factory inserting an equb row with sensible defaults
api            : FastAPI TestClient wired to fake_supabase; call
                 ``api.as_user(user_id)`` to choose the authenticated caller
"""

from __future__ import annotations

import copy
import uuid
from datetime import datetime, timezone
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from app.core.dependencies import get_current_user_id
from app.database.supabase_client import get_supabase
from app.main import app

ADMIN_ID = "admin-1"
MEMBER_IDS = ["member-1", "member-2", "member-3"]

# Column defaults the real tables fill in on insert
COLUMN_DEFAULTS = {
    "notifications": {"read": False},
    "contributions": {"status": "pending"},
}


# ── Fake Supabase ─────────────────────────────────────────────────────────────


class FakeResponse:
    def __init__(self, data):
        self.data = data


class FakeQuery:
    """Chainable subset of the postgrest query builder used by the services."""

    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table_name = table
        self.action = "select"
        self.columns = "*"
        self.payload = None
        self.on_conflict = None
        self.filters = []
        self.order_by = []
        self._limit = None
        self._offset = 0

    # actions
    def select(self, columns="*", **kwargs):
        self.action = "select"
        self.columns = columns
        return self

    def insert(self, payload):
        self.action = "insert"
        self.payload = payload
        return self

    def update(self, payload):
        self.action = "update"
        self.payload = payload
        return self

    def upsert(self, payload, on_conflict=None, **kwargs):
        self.action = "upsert"
        self.payload = payload
        self.on_conflict = on_conflict
        return self

    def delete(self):
        self.action = "delete"
        return self

    # filters
    def eq(self, column, value):
        self.filters.append(lambda row: row.get(column) == value)
        return self

    def neq(self, column, value):
        self.filters.append(lambda row: row.get(column) != value)
        return self

    def in_(self, column, values):
        values = list(values)
        self.filters.append(lambda row: row.get(column) in values)
        return self

    def ilike(self, column, pattern):
        needle = pattern.strip("%").lower()
        self.filters.append(lambda row: needle in str(row.get(column) or "").lower())
        return self

    def order(self, column, desc=False):
        self.order_by.append((column, desc))
        return self

    def limit(self, n):
        self._limit = n
        return self

    def offset(self, n):
        self._offset = n
        return self

    # execution
    def _matches(self, row):
        return all(f(row) for f in self.filters)

    def _project(self, row):
        if self.columns.strip() == "*":
            return copy.deepcopy(row)
        cols = [c.strip() for c in self.columns.split(",")]
        return {c: copy.deepcopy(row.get(c)) for c in cols}

    def _new_row(self, data):
        row = copy.deepcopy(data)
        row.setdefault("id", str(uuid.uuid4()))
        row.setdefault("created_at", datetime.now(timezone.utc).isoformat())
        for column, value in COLUMN_DEFAULTS.get(self.table_name, {}).items():
            row.setdefault(column, value)
        return row

    def execute(self):
        self.db.calls.append((self.table_name, self.action))
        if (self.table_name, self.action) in self.db.fail_on:
            raise RuntimeError(f"simulated failure on {self.table_name}.{self.action}")

        rows = self.db.tables.setdefault(self.table_name, [])

        if self.action == "insert":
            payload = self.payload if isinstance(self.payload, list) else [self.payload]
            created = [self._new_row(p) for p in payload]
            rows.extend(created)
            return FakeResponse(copy.deepcopy(created))

        if self.action == "upsert":
            keys = [k.strip() for k in (self.on_conflict or "id").split(",")]
            existing = next(
                (r for r in rows if all(r.get(k) == self.payload.get(k) for k in keys)), None
            )
            if existing is not None:
                existing.update(copy.deepcopy(self.payload))
                return FakeResponse([copy.deepcopy(existing)])
            row = copy.deepcopy(self.payload)
            rows.append(row)
            return FakeResponse([copy.deepcopy(row)])

        if self.action == "update":
            updated = []
            for row in rows:
                if self._matches(row):
                    row.update(copy.deepcopy(self.payload))
                    updated.append(copy.deepcopy(row))
            return FakeResponse(updated)

        if self.action == "delete":
            deleted = [r for r in rows if self._matches(r)]
            self.db.tables[self.table_name] = [r for r in rows if not self._matches(r)]
            return FakeResponse(copy.deepcopy(deleted))

        selected = [r for r in rows if self._matches(r)]
        for column, desc in reversed(self.order_by):
            selected.sort(key=lambda r: (r.get(column) is None, r.get(column)), reverse=desc)
        selected = selected[self._offset:]
        if self._limit is not None:
            selected = selected[:self._limit]
        return FakeResponse([self._project(r) for r in selected])


class FakeAuth:
    def __init__(self):
        self.users = {}
        self.tokens = {}
        self.signed_out = False

    def sign_up(self, credentials):
        email = credentials["email"]
        if any(u.email == email for u in self.users.values()):
            raise RuntimeError("User already registered")
        user = SimpleNamespace(
            id=str(uuid.uuid4()),
            email=email,
            user_metadata=credentials.get("options", {}).get("data", {}),
            email_confirmed_at=None,
            password=credentials["password"],
        )
        self.users[user.id] = user
        return SimpleNamespace(user=user, session=None)

    def sign_in_with_password(self, credentials):
        for user in self.users.values():
            if user.email == credentials["email"] and user.password == credentials["password"]:
                token = f"token-{user.id}"
                self.tokens[token] = user
                return SimpleNamespace(user=user, session=SimpleNamespace(access_token=token))
        raise RuntimeError("Invalid login credentials")

    def get_user(self, jwt=None):
        user = self.tokens.get(jwt)
        if user is None:
            raise RuntimeError("invalid JWT")
        return SimpleNamespace(user=user)

    def sign_out(self):
        self.signed_out = True


class FakeSupabase:
    def __init__(self):
        self.tables = {}
        self.calls = []
        self.fail_on = set()
        self.auth = FakeAuth()

    def table(self, name):
        return FakeQuery(self, name)

    def rows(self, name):
        return self.tables.setdefault(name, [])


# ── Fixtures ──────────────────────────────────────────────────────────────────


@pytest.fixture
def fake_supabase() -> FakeSupabase:
    db = FakeSupabase()
    db.rows("profiles").append({
        "id": ADMIN_ID, "full_name": "Abebe Admin", "email": "admin@example.com",
        "phone": "0911000000", "location": "Addis Ababa", "role": "admin",
        "wallet_balance": 0, "is_active": True, "updated_at": None,
    })
    for i, uid in enumerate(MEMBER_IDS, start=1):
        db.rows("profiles").append({
            "id": uid, "full_name": f"Member {i}", "email": f"member{i}@example.com",
            "phone": f"09110000{i:02d}", "location": "Adama", "role": "member",
            "wallet_balance": 0, "is_active": True, "updated_at": None,
        })
    return db


@pytest.fixture
def seed_equb(fake_supabase):
    """Factory: seed_equb(max_members=3, status="Open", members=[...]) -> equb row."""

    def _seed(members=(), winners=(), **overrides):
        equb = {
            "id": str(uuid.uuid4()),
            "created_at": datetime.now(timezone.utc).isoformat(),
            "created_by": ADMIN_ID,
            "name": "Merkato Traders",
            "equb_type": "Merchants",
            "contribution_amount": 1000,
            "cycle": "monthly",
            "max_members": 3,
            "status": "Open",
            "start_date": "2026-01-31",
            "next_due_date": "2026-01-31",
            "winnable_amount": 3000,
        }
        equb.update(overrides)
        fake_supabase.rows("equbs").append(equb)
        for uid in members:
            fake_supabase.rows("memberships").append({
                "user_id": uid, "equb_id": equb["id"], "status": "approved",
                "join_date": "2026-01-01T00:00:00+00:00",
            })
        for n, uid in enumerate(winners, start=1):
            fake_supabase.rows("winners").append({
                "id": str(uuid.uuid4()), "equb_id": equb["id"], "user_id": uid,
                "win_date": "2026-01-31", "round": n,
            })
        return equb

    return _seed


@pytest.fixture
def api(fake_supabase):
    client = TestClient(app)

    def as_user(user_id: str):
        app.dependency_overrides[get_current_user_id] = lambda: {
            "id": user_id, "email": f"{user_id}@example.com", "is_email_confirmed": True,
        }
        return client

    app.dependency_overrides[get_supabase] = lambda: fake_supabase
    client.as_user = as_user
    yield client
    app.dependency_overrides.clear()
