"""
Pytest configuration and fixtures for Agency Intake tests.
"""

import os
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

# Set test environment before importing intake modules
os.environ["INTAKE_ENV"] = "development"
os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key-not-real")

from onboarding.aggregate import FormAggregate
from onboarding.steps import WizardStep
from onboarding.store import RowStore


# ---------------------------------------------------------------------------
# In-memory Supabase table emulation
# ---------------------------------------------------------------------------


class FakeResponse:
    def __init__(self, data):
        self.data = data


class FakeQuery:
    """The slice of the PostgREST builder that RowStore uses."""

    def __init__(self, db: "FakeSupabase", table: str):
        self.db = db
        self.table_name = table
        self._filters: list[tuple[str, object]] = []
        self._order: tuple[str, bool] | None = None
        self._limit: int | None = None
        self._single = False
        self._upsert: tuple[list[dict], str | None] | None = None

    def select(self, columns: str = "*"):
        return self

    def eq(self, column: str, value):
        self._filters.append((column, value))
        return self

    def order(self, column: str, desc: bool = False):
        self._order = (column, desc)
        return self

    def limit(self, n: int):
        self._limit = n
        return self

    def maybe_single(self):
        self._single = True
        return self

    def upsert(self, rows, on_conflict: str | None = None):
        self._upsert = (list(rows), on_conflict)
        return self

    def execute(self):
        self.db.calls.append(self.table_name)
        if self.db.fail_with:
            raise RuntimeError(self.db.fail_with)
        if self._upsert is not None:
            if self.db.fail_upserts:
                raise RuntimeError("upsert rejected")
            return self._execute_upsert()
        return self._execute_select()

    def _execute_select(self):
        rows = [
            r for r in self.db.rows(self.table_name)
            if all(r.get(col) == val for col, val in self._filters)
        ]
        if self._order:
            col, desc = self._order
            rows.sort(key=lambda r: r.get(col) or "", reverse=desc)
        if self._limit is not None:
            rows = rows[: self._limit]
        if self._single:
            # supabase-py returns no response at all for zero rows
            return FakeResponse(dict(rows[0])) if rows else None
        return FakeResponse([dict(r) for r in rows])

    def _execute_upsert(self):
        rows, on_conflict = self._upsert
        table = self.db.rows(self.table_name)
        written = []
        for row in rows:
            existing = None
            if on_conflict:
                existing = next(
                    (r for r in table if r.get(on_conflict) == row.get(on_conflict)), None
                )
            if existing is not None:
                existing.update(row)
                written.append(dict(existing))
            else:
                new_row = {"created_at": self.db.next_timestamp(), **row}
                table.append(new_row)
                written.append(dict(new_row))
        return FakeResponse(written)


class FakeSupabase:
    """In-memory stand-in for the Supabase client's table() API."""

    def __init__(self):
        self.tables: dict[str, list[dict]] = {}
        self.calls: list[str] = []
        self.fail_with: str | None = None
        self.fail_upserts = False
        self._clock = datetime(2026, 1, 1, tzinfo=timezone.utc)

    def next_timestamp(self) -> str:
        self._clock += timedelta(seconds=1)
        return self._clock.isoformat()

    def rows(self, table: str) -> list[dict]:
        return self.tables.setdefault(table, [])

    def insert_raw(self, table: str, row: dict) -> None:
        """Append a history row directly, bypassing upsert."""
        self.rows(table).append({"created_at": self.next_timestamp(), **row})

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)


class RecordingNavigator:
    def __init__(self):
        self.history: list[WizardStep] = []

    def go_to(self, step: WizardStep) -> None:
        self.history.append(step)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_supabase():
    """Mock Supabase client for unit tests."""
    mock_client = MagicMock()

    mock_table = MagicMock()
    mock_table.select.return_value = mock_table
    mock_table.upsert.return_value = mock_table
    mock_table.eq.return_value = mock_table
    mock_table.order.return_value = mock_table
    mock_table.limit.return_value = mock_table
    mock_table.maybe_single.return_value = mock_table
    mock_table.execute.return_value = MagicMock(data=None)

    mock_client.table.return_value = mock_table

    return mock_client


@pytest.fixture
def fake_supabase():
    return FakeSupabase()


@pytest.fixture
def store(fake_supabase):
    return RowStore(fake_supabase)


@pytest.fixture
def aggregate():
    return FormAggregate()


@pytest.fixture
def navigator():
    return RecordingNavigator()


@pytest.fixture
def basic_info_values():
    """A valid basic-info submission."""
    return {
        "full_name": "Jonathan Doe",
        "display_name": "Jon",
        "date_of_birth": "1990-04-12",
        "gender_pronouns": "he/him",
        "city_country": "London, UK",
        "time_zone": "UTC+0",
        "physical_address": "",
        "job_title": "Frontend Developer",
        "one_liner": "I build fast React apps.",
        "bio": "Ten years of shipping web products.",
        "years_experience": 10,
        "email": "jon@example.com",
        "phone_number": "+44 20 7946 0000",
        "languages": "English, French",
        "mbti": "INTJ",
        "if_i_were_a": "a well-tuned bicycle",
    }


@pytest.fixture
def digital_presence_values():
    """All seven tools enabled and filled in."""
    return {
        "whatsapp": {"enabled": True, "value": "+15550000000"},
        "discord": {"enabled": True, "value": "jon#1234"},
        "github": {"enabled": True, "value": "https://github.com/jondoe"},
        "jira": {"enabled": True, "value": "jon@example.com"},
        "git": {"enabled": True, "confirmed": True},
        "node": {"enabled": True, "confirmed": True},
        "antigravity": {"enabled": True, "value": "jon@example.com"},
    }


@pytest.fixture
def crypto_profile_values():
    """Professional/financial submission paid in crypto."""
    return {
        "work_capacity": "part-time",
        "time_zone": "UTC+0",
        "start_date": "2026-11-01",
        "primary_skills": ["React.js", "Node.js"],
        "experience_level": "senior",
        "portfolio_url": "https://jondoe.dev",
        "tax_declaration": True,
        "payment_method": "crypto",
        "network": "TRC20",
        "wallet_address": "TXYZabc123",
    }
