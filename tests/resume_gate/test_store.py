import sqlite3

import pytest

from resume_gate.config import Settings
from resume_gate.models import RECORD_TTL_SECONDS, RequestRecord, RequestStatus, Requester
from resume_gate.store import (
    InMemoryRequestStore,
    SqliteRequestStore,
    build_store,
    request_key,
)


def make_record(request_id="req-1", status=RequestStatus.PENDING):
    return RequestRecord(
        id=request_id,
        status=status,
        created_at="2026-10-18T12:00:00+00:00",
        requester=Requester(name="Jo", email="jo@x.com", company="Acme", reason="hiring"),
    )


@pytest.fixture(params=["memory", "sqlite"])
def backend(request, tmp_path, clock):
    if request.param == "memory":
        return InMemoryRequestStore(clock=clock)
    return SqliteRequestStore(str(tmp_path / "requests.db"), clock=clock)


class TestPutGet:
    def test_get_absent(self, backend):
        assert backend.get("missing") is None

    def test_put_then_get(self, backend):
        record = make_record()
        backend.put(record.id, record)
        assert backend.get(record.id) == record

    def test_put_overwrites(self, backend):
        backend.put("req-1", make_record())
        approved = make_record().decided(RequestStatus.APPROVED, "2026-10-19T00:00:00+00:00")
        backend.put("req-1", approved)
        assert backend.get("req-1").status == RequestStatus.APPROVED
        assert backend.get("req-1").decided_at == "2026-10-19T00:00:00+00:00"

    def test_records_are_isolated_by_id(self, backend):
        backend.put("req-1", make_record("req-1"))
        backend.put("req-2", make_record("req-2", RequestStatus.DENIED))
        assert backend.get("req-1").status == RequestStatus.PENDING
        assert backend.get("req-2").status == RequestStatus.DENIED


class TestTtl:
    def test_live_before_ttl(self, backend, clock):
        backend.put("req-1", make_record(), ttl=60)
        clock.advance(59)
        assert backend.get("req-1") is not None

    def test_gone_after_ttl(self, backend, clock):
        backend.put("req-1", make_record(), ttl=60)
        clock.advance(60)
        assert backend.get("req-1") is None

    def test_default_ttl_is_thirty_days(self, backend, clock):
        backend.put("req-1", make_record())
        clock.advance(RECORD_TTL_SECONDS - 1)
        assert backend.get("req-1") is not None
        clock.advance(1)
        assert backend.get("req-1") is None

    def test_expired_record_cannot_be_decided(self, backend, clock):
        backend.put("req-1", make_record(), ttl=60)
        clock.advance(61)
        decided = make_record().decided(RequestStatus.DENIED)
        assert backend.put_if_status("req-1", RequestStatus.PENDING, decided) is False


class TestMemoryPurge:
    def test_put_drops_expired_records_never_read_again(self, clock):
        store = InMemoryRequestStore(clock=clock)
        for i in range(100):
            store.put(f"req-{i}", make_record(f"req-{i}"), ttl=10)
        clock.advance(11)
        store.put("fresh", make_record("fresh"))
        assert len(store._items) == 1
        assert store.get("fresh") is not None

    def test_conditional_write_drops_expired_records(self, clock):
        store = InMemoryRequestStore(clock=clock)
        store.put("old", make_record("old"), ttl=10)
        store.put("req-1", make_record("req-1"))
        clock.advance(11)
        decided = make_record("req-1").decided(RequestStatus.APPROVED)
        assert store.put_if_status("req-1", RequestStatus.PENDING, decided) is True
        assert list(store._items) == [request_key("req-1")]


class TestPutIfStatus:
    def test_writes_when_status_matches(self, backend):
        backend.put("req-1", make_record())
        decided = make_record().decided(RequestStatus.DENIED)
        assert backend.put_if_status("req-1", RequestStatus.PENDING, decided) is True
        assert backend.get("req-1").status == RequestStatus.DENIED

    def test_refuses_when_status_differs(self, backend):
        backend.put("req-1", make_record())
        approved = make_record().decided(RequestStatus.APPROVED)
        denied = make_record().decided(RequestStatus.DENIED)
        assert backend.put_if_status("req-1", RequestStatus.PENDING, approved) is True
        assert backend.put_if_status("req-1", RequestStatus.PENDING, denied) is False
        assert backend.get("req-1").status == RequestStatus.APPROVED

    def test_refuses_when_absent(self, backend):
        decided = make_record().decided(RequestStatus.DENIED)
        assert backend.put_if_status("req-1", RequestStatus.PENDING, decided) is False
        assert backend.get("req-1") is None


class TestSqliteLayout:
    def test_keys_are_namespaced(self, tmp_path):
        path = str(tmp_path / "requests.db")
        store = SqliteRequestStore(path)
        store.put("req-1", make_record())
        conn = sqlite3.connect(path)
        keys = [row[0] for row in conn.execute("SELECT key FROM kv_requests")]
        conn.close()
        assert keys == [request_key("req-1")] == ["resume_request:req-1"]

    def test_stored_json_uses_camel_case(self, tmp_path):
        path = str(tmp_path / "requests.db")
        store = SqliteRequestStore(path)
        store.put("req-1", make_record())
        conn = sqlite3.connect(path)
        value = conn.execute("SELECT value FROM kv_requests").fetchone()[0]
        conn.close()
        assert '"createdAt"' in value
        assert "decidedAt" not in value

    def test_init_db_is_idempotent(self, tmp_path):
        path = str(tmp_path / "requests.db")
        SqliteRequestStore(path).put("req-1", make_record())
        assert SqliteRequestStore(path).get("req-1") is not None


class TestBuildStore:
    def test_memory(self):
        assert isinstance(build_store(Settings(store_backend="memory")), InMemoryRequestStore)

    def test_sqlite(self, tmp_path):
        settings = Settings(store_backend="sqlite", db_path=str(tmp_path / "x.db"))
        assert isinstance(build_store(settings), SqliteRequestStore)

    def test_unknown(self):
        with pytest.raises(ValueError, match="RESUME_STORE"):
            build_store(Settings(store_backend="redis"))
