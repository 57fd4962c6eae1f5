"""
Pytest configuration and fixtures for SportsPanel tests

The Supabase client is replaced by an in-memory fake that understands the
query builder calls the services make.
"""

import pytest
import sys
import uuid
from datetime import datetime, timezone
from pathlib import Path
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import database.supabase_client as supabase_client
from app.club.communications.mailer import MailTransport, OutgoingMail, SenderIdentity
from app.club.errors import MailDeliveryError
from app.club.settings import default_settings


CLUB_ID = "00000000-0000-0000-0000-0000000000c1"
OTHER_CLUB_ID = "00000000-0000-0000-0000-0000000000c2"
ADMIN_ID = "00000000-0000-0000-0000-000000000001"


# =============================================
# Fake Supabase
# =============================================

class FakeResponse:
    def __init__(self, data: List[Dict[str, Any]], count: Optional[int] = None):
        self.data = data
        self.count = count


class FakeQuery:
    """Chainable query over one in-memory table"""

    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table = table
        self.action = "select"
        self.payload: Any = None
        self.filters = []
        self.order_by: Optional[tuple] = None
        self.max_rows: Optional[int] = None
        self.want_count = False

    # actions
    def select(self, columns: str = "*", count: Optional[str] = None):
        self.action = "select"
        self.want_count = count is not None
        return self

    def insert(self, data):
        self.action = "insert"
        self.payload = data
        return self

    def upsert(self, data):
        self.action = "upsert"
        self.payload = data
        return self

    def update(self, data):
        self.action = "update"
        self.payload = data
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

    def gt(self, column, value):
        self.filters.append(lambda row: row.get(column) is not None and row.get(column) > value)
        return self

    def gte(self, column, value):
        self.filters.append(lambda row: row.get(column) is not None and row.get(column) >= value)
        return self

    def lt(self, column, value):
        self.filters.append(lambda row: row.get(column) is not None and row.get(column) < value)
        return self

    def lte(self, column, value):
        self.filters.append(lambda row: row.get(column) is not None and row.get(column) <= value)
        return self

    def order(self, column, desc: bool = False):
        self.order_by = (column, desc)
        return self

    def limit(self, n: int):
        self.max_rows = n
        return self

    def _matches(self, row) -> bool:
        return all(f(row) for f in self.filters)

    def _new_row(self, data: Dict[str, Any]) -> Dict[str, Any]:
        row = dict(data)
        row.setdefault("id", str(uuid.uuid4()))
        self.db.clock += 1
        row.setdefault("created_at", datetime(2025, 1, 1, tzinfo=timezone.utc).replace(
            microsecond=self.db.clock
        ).isoformat())
        return row

    def execute(self) -> FakeResponse:
        if self.db.fail_tables.get(self.table) == self.action:
            raise RuntimeError(f"{self.table} {self.action} failed")
        rows = self.db.tables.setdefault(self.table, [])

        if self.action in ("insert", "upsert"):
            items = self.payload if isinstance(self.payload, list) else [self.payload]
            created = []
            for item in items:
                row = self._new_row(item)
                existing = next((r for r in rows if r["id"] == row["id"]), None)
                if existing is not None and self.action == "upsert":
                    existing.update(item)
                    created.append(dict(existing))
                    continue
                rows.append(row)
                created.append(dict(row))
            return FakeResponse(created)

        matched = [r for r in rows if self._matches(r)]

        if self.action == "update":
            for row in matched:
                row.update(self.payload)
            return FakeResponse([dict(r) for r in matched])

        if self.action == "delete":
            self.db.tables[self.table] = [r for r in rows if not self._matches(r)]
            return FakeResponse([dict(r) for r in matched])

        if self.order_by:
            column, desc = self.order_by
            matched.sort(key=lambda r: (r.get(column) is None, str(r.get(column))), reverse=desc)
        if self.max_rows is not None:
            matched = matched[:self.max_rows]
        return FakeResponse(
            [dict(r) for r in matched],
            count=len(matched) if self.want_count else None
        )


class FakeBucket:
    def __init__(self, storage: "FakeStorage", name: str):
        self.storage = storage
        self.name = name

    def upload(self, path, file, file_options=None):
        if self.storage.fail_uploads:
            raise RuntimeError("storage unavailable")
        self.storage.files[path] = file
        return SimpleNamespace(path=path)

    def get_public_url(self, path):
        return f"https://storage.test/{self.name}/{path}"

    def remove(self, paths):
        for path in paths:
            self.storage.files.pop(path, None)
        self.storage.removed.extend(paths)
        return []


class FakeStorage:
    def __init__(self):
        self.files: Dict[str, bytes] = {}
        self.removed: List[str] = []
        self.fail_uploads = False

    def from_(self, bucket):
        return FakeBucket(self, bucket)


class FakeAuth:
    """Supabase Auth with email/password accounts"""

    def __init__(self):
        self.users: Dict[str, Dict[str, str]] = {}

    def sign_up(self, credentials):
        email = credentials["email"]
        if email in self.users:
            raise Exception("User already registered")
        if len(credentials["password"]) < 6:
            raise Exception("Password should be at least 6 characters")
        user_id = str(uuid.uuid4())
        self.users[email] = {"id": user_id, "password": credentials["password"]}
        return SimpleNamespace(user=SimpleNamespace(id=user_id, email=email), session=None)

    def sign_in_with_password(self, credentials):
        user = self.users.get(credentials["email"])
        if not user or user["password"] != credentials["password"]:
            raise Exception("Invalid login credentials")
        return SimpleNamespace(user=SimpleNamespace(id=user["id"], email=credentials["email"]))


class FakeSupabase:
    def __init__(self):
        self.tables: Dict[str, List[Dict[str, Any]]] = {}
        self.storage = FakeStorage()
        self.auth = FakeAuth()
        self.fail_tables: Dict[str, str] = {}
        self.clock = 0

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def rows(self, name: str) -> List[Dict[str, Any]]:
        return self.tables.get(name, [])

    def add(self, _table: str, **data) -> Dict[str, Any]:
        return self.table(_table).insert(data).execute().data[0]


@pytest.fixture
def fake_db(monkeypatch):
    """In-memory Supabase installed as the shared client"""
    db = FakeSupabase()
    monkeypatch.setattr(supabase_client, "_supabase_client", db)
    return db


@pytest.fixture
def club(fake_db):
    """A club with default settings"""
    fake_db.add("clubs", id=CLUB_ID, name="CF Demo", sport="Fútbol")
    fake_db.add("club_settings", club_id=CLUB_ID, **default_settings("#2563eb"))
    fake_db.add("club_users", id=ADMIN_ID, club_id=CLUB_ID, name="Admin", email="admin@demo.es",
                role="super-admin")
    return CLUB_ID


@pytest.fixture
def smtp_club(fake_db, club):
    """Club whose SMTP settings are complete"""
    fake_db.table("club_settings").update({
        "mail_provider": "smtp",
        "smtp_host": "smtp.demo.es",
        "smtp_port": 587,
        "smtp_user": "club@demo.es",
        "smtp_password": "secret",
        "smtp_from_email": "club@demo.es",
    }).eq("club_id", club).execute()
    return club


# =============================================
# Mail
# =============================================

class FakeTransport(MailTransport):
    """Records messages; addresses in fail_for are rejected, addresses in crash_for raise"""

    provider = "fake"

    def __init__(self, fail_for=()):
        super().__init__(SenderIdentity(club_name="CF Demo", from_email="club@demo.es"))
        self.sent: List[OutgoingMail] = []
        self.fail_for = set(fail_for)
        self.crash_for = set()

    async def send(self, mail: OutgoingMail) -> None:
        if mail.to in self.fail_for:
            raise MailDeliveryError("mail.delivery_failed", error="mailbox unavailable")
        if mail.to in self.crash_for:
            raise RuntimeError("connection reset")
        self.sent.append(mail)


@pytest.fixture
def fake_transport(monkeypatch):
    """Replace the club transport wherever it is used"""
    transport = FakeTransport()

    def _club_transport(club_id):
        return transport

    for module in (
        "app.club.communications.batches",
        "app.club.communications.mailer",
        "app.club.communications.router",
        "app.club.documents.file_requests",
    ):
        monkeypatch.setattr(f"{module}.club_transport", _club_transport)
    return transport


# =============================================
# API
# =============================================

@pytest.fixture
def make_token(fake_db):
    """Session token; other roles get their own club_users row"""
    from app.auth.router import create_access_token

    def _make(role="super-admin", user_id=None, club_id=CLUB_ID, name="Admin"):
        if user_id is None:
            if role == "super-admin":
                user_id = ADMIN_ID
            else:
                user_id = fake_db.add(
                    "club_users", club_id=club_id, name=name, email=f"{role.lower()}@demo.es", role=role
                )["id"]
        return create_access_token({"sub": user_id, "club_id": club_id, "role": role, "name": name})
    return _make


@pytest.fixture
def api(fake_db):
    """TestClient for the app (startup jobs are not run)"""
    from fastapi.testclient import TestClient
    from app.server import app

    return TestClient(app)


@pytest.fixture
def admin_headers(make_token):
    return {"Authorization": f"Bearer {make_token()}"}
