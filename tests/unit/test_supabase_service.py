"""
Unit tests for SupabaseService retry handling.

create_client is patched so no Supabase project is needed.
"""

import httpx
import pytest

import service.supabase_service as supabase_module
from config import DatabaseCredentials
from service.supabase_service import SupabaseService

CREDS = DatabaseCredentials(url="https://example.supabase.co", api_key="key", email="a@b.c", password="pw")


class FakeQuery:
    def __init__(self, table):
        self._table = table

    def select(self, *_):
        return self

    def upsert(self, rows):
        self._table.upserts.append(rows)
        return self

    def delete(self):
        return self

    def eq(self, column, value):
        return self

    def execute(self):
        if self._table.failures:
            raise self._table.failures.pop(0)
        return type("Resp", (), {"data": self._table.data})()


class FakeTable:
    def __init__(self):
        self.failures = []
        self.upserts = []
        self.data = []


class FakeClient:
    def __init__(self, table):
        self._table = table
        self.auth = type("Auth", (), {"sign_in_with_password": lambda self, creds: None})()

    def table(self, name):
        return FakeQuery(self._table)


@pytest.fixture
def table(monkeypatch):
    shared = FakeTable()
    monkeypatch.setattr(supabase_module, "create_client", lambda url, key: FakeClient(shared))
    monkeypatch.setattr(supabase_module.time, "sleep", lambda seconds: None)
    return shared


class TestSupabaseService:
    """Tests for SupabaseService."""

    def test_retries_transient_errors(self, table):
        """httpx transport errors are retried."""
        table.failures = [httpx.ReadTimeout("slow"), httpx.RemoteProtocolError("reset")]
        svc = SupabaseService(CREDS, max_retries=3)

        svc.upsert("roster_store", [{"key": "k", "players": []}])

        assert table.failures == []
        assert table.upserts

    def test_gives_up_after_budget(self, table):
        """Errors beyond the retry budget propagate."""
        table.failures = [httpx.ReadTimeout("slow")] * 3
        svc = SupabaseService(CREDS, max_retries=1)

        with pytest.raises(httpx.ReadTimeout):
            svc.delete_eq("roster_store", "key", "k")

    def test_non_transport_error_not_retried(self, table):
        """Other errors are raised immediately."""
        table.failures = [ValueError("bad row")]
        svc = SupabaseService(CREDS, max_retries=5)

        with pytest.raises(ValueError):
            svc.select_eq("roster_store", "key", "k")

    def test_select_returns_rows(self, table):
        """Rows come back as a list, empty when there is no data."""
        svc = SupabaseService(CREDS)
        assert svc.select_eq("roster_store", "key", "k") == []
        table.data = [{"key": "k"}]
        assert svc.select_eq("roster_store", "key", "k") == [{"key": "k"}]

    def test_empty_upsert_skipped(self, table):
        """Nothing is sent for an empty row list."""
        SupabaseService(CREDS).upsert("roster_store", [])
        assert table.upserts == []
