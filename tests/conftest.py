"""
Shared test doubles and fixtures.

The doubles implement the KeyValueStore and RemoteRecordStore protocols
structurally; nothing here touches the network or the real data directory.
"""

from __future__ import annotations

import pytest

from adapters.storage.local_cache import LocalCache
from core.domain.errors import RemoteUnavailable
from core.domain.models import FamilyRecord, new_family_record
from core.result import Result
from core.services.sync import RecordRepository

TEST_ENDPOINT = "http://records.test/api"


class MemoryStore:
    """Dict-backed KeyValueStore that records every write."""

    def __init__(self) -> None:
        self.data: dict[str, str] = {}
        self.writes: list[tuple[str, str]] = []

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.writes.append((key, value))
        self.data[key] = value

    def delete(self, key: str) -> None:
        self.data.pop(key, None)


class FakeRecordStore:
    """In-memory remote tier; flip `available` to simulate an outage."""

    def __init__(self, endpoint: str = TEST_ENDPOINT) -> None:
        self.endpoint = endpoint
        self.records: dict[str, FamilyRecord] = {}
        self.available = True
        self.calls: list[str] = []
        self.closed = False

    def _down(self, operation: str) -> Result:
        return Result.err(RemoteUnavailable(f"{operation} failed: connection refused"))

    async def fetch_all(self) -> Result[list[FamilyRecord], RemoteUnavailable]:
        self.calls.append("fetch_all")
        if not self.available:
            return self._down("fetch")
        return Result.ok(list(self.records.values()))

    async def push(self, record: FamilyRecord) -> Result[bool, RemoteUnavailable]:
        self.calls.append("push")
        if not self.available:
            return self._down("push")
        self.records[record.id] = record
        return Result.ok(True)

    async def remove(self, record_id: str) -> Result[bool, RemoteUnavailable]:
        self.calls.append("remove")
        if not self.available:
            return self._down("remove")
        self.records.pop(record_id, None)
        return Result.ok(True)

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def cache(memory_store: MemoryStore) -> LocalCache:
    return LocalCache(memory_store)


@pytest.fixture
def fake_remote() -> FakeRecordStore:
    return FakeRecordStore()


@pytest.fixture
def repository(cache: LocalCache, fake_remote: FakeRecordStore) -> RecordRepository:
    return RecordRepository(
        cache, default_endpoint=TEST_ENDPOINT, remote_factory=lambda url: fake_remote
    )


@pytest.fixture
def local_repository(cache: LocalCache) -> RecordRepository:
    """Repository with no record store configured."""
    return RecordRepository(cache, default_endpoint="")


@pytest.fixture
def sample_record() -> FamilyRecord:
    record = new_family_record()
    general = record.general_data.model_copy(
        update={"department": "Córdoba", "municipality": "Montería", "sisben": "A1"}
    )
    return record.model_copy(
        update={
            "general_data": general,
            "medical_history": {"Diabetes Mellitus": {"CF": True}},
        }
    )
