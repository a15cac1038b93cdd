"""
Synchronization facade between the local cache and the remote record store.

Replication policy: local-write-always, remote-best-effort.

- Reads prefer the remote store so other operators' records show up, and
  refresh the local mirror as a side effect; an unreachable store falls back
  to the mirror.
- Writes land in the local mirror first, unconditionally, then are forwarded
  to the remote store. A remote failure never undoes the local write.
- There is no conflict resolution: the last save wins on each tier
  independently.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from datetime import UTC, date, datetime
from pathlib import Path
from typing import Any, Protocol

import structlog

from adapters.record_store.client import RecordStoreClient
from adapters.storage.local_cache import JsonFileStore, LocalCache
from core.config import AppConfig
from core.domain.errors import RemoteUnavailable
from core.domain.models import FamilyRecord
from core.result import Result

logger = structlog.get_logger(__name__)

EXPORT_FILENAME_PREFIX = "health_assess_backup"


class RemoteRecordStore(Protocol):
    """What the facade needs from the remote tier."""

    async def fetch_all(self) -> Result[list[FamilyRecord], RemoteUnavailable]: ...

    async def push(self, record: FamilyRecord) -> Result[bool, RemoteUnavailable]: ...

    async def remove(self, record_id: str) -> Result[bool, RemoteUnavailable]: ...

    async def aclose(self) -> None: ...


RemoteFactory = Callable[[str], RemoteRecordStore]


def export_filename(day: date | None = None) -> str:
    day = day or datetime.now(UTC).date()
    return f"{EXPORT_FILENAME_PREFIX}_{day.isoformat()}.json"


def parse_records_payload(payload: str) -> Result[list[Any], ValueError]:
    """
    Parse an import payload. Any JSON array is accepted; elements are not
    validated here, the mirror keeps them as they are.
    """
    try:
        parsed = json.loads(payload)
    except ValueError as e:
        return Result.err(ValueError(f"payload is not JSON: {e}"))

    if not isinstance(parsed, list):
        kind = type(parsed).__name__
        return Result.err(ValueError(f"payload must be a JSON array, got {kind}"))

    return Result.ok(parsed)


class RecordRepository:
    """
    Single entry point for reading and writing family records.

    The server location is read once, here; `connect()` changes it.
    """

    def __init__(
        self,
        cache: LocalCache,
        default_endpoint: str = "",
        remote_factory: RemoteFactory | None = None,
        timeout_seconds: float = 10.0,
    ) -> None:
        self.cache = cache
        self.logger = logger.bind(component="record_repository")
        self._remote_factory: RemoteFactory = remote_factory or (
            lambda url: RecordStoreClient(url, timeout_seconds=timeout_seconds)
        )

        saved = cache.server_location()
        self.endpoint = saved if saved is not None else default_endpoint.strip()
        self._remote = self._remote_factory(self.endpoint) if self.endpoint else None

        self.logger.info(
            "record_repository_ready",
            endpoint=self.endpoint or None,
            local_only=self.is_local_only,
        )

    @classmethod
    def from_config(cls, config: AppConfig) -> RecordRepository:
        """Repository over the on-disk cache and the configured record store."""
        cache = LocalCache(JsonFileStore(config.storage.data_dir), config.storage.key_prefix)
        return cls(
            cache,
            default_endpoint=config.record_store.default_endpoint,
            timeout_seconds=config.record_store.timeout_seconds,
        )

    @property
    def is_local_only(self) -> bool:
        return self._remote is None

    async def connect(self, url: str) -> None:
        """Persist a new server location and switch to it; empty means local-only."""
        url = url.strip().rstrip("/")
        self.cache.set_server_location(url)
        if self._remote is not None:
            await self._remote.aclose()
        self.endpoint = url
        self._remote = self._remote_factory(url) if url else None
        self.logger.info("server_location_changed", endpoint=url or None)

    async def aclose(self) -> None:
        if self._remote is not None:
            await self._remote.aclose()

    async def list(self) -> list[FamilyRecord]:
        """All records, from the remote store when reachable, else from the mirror."""
        if self._remote is None:
            return self.cache.load_mirror()

        result = await self._remote.fetch_all()
        if result.is_ok():
            records = result.unwrap()
            self.cache.replace_mirror(records)
            return records

        self.logger.warning(
            "remote_list_unavailable_using_mirror", error=str(result.unwrap_err())
        )
        return self.cache.load_mirror()

    async def get(self, record_id: str) -> FamilyRecord | None:
        records = await self.list()
        return next((r for r in records if r.id == record_id), None)

    async def save(self, record: FamilyRecord) -> bool:
        """Upsert locally, then forward. Returns whether the remote store accepted it."""
        self.cache.upsert(record)

        if self._remote is None:
            return False

        result = await self._remote.push(record)
        if result.is_err():
            self.logger.warning(
                "remote_save_failed_kept_locally",
                record_id=record.id,
                error=str(result.unwrap_err()),
            )
        return result.unwrap_or(False)

    async def delete(self, record_id: str) -> None:
        """Remove locally right away; the remote delete is best effort."""
        self.cache.remove(record_id)

        if self._remote is None:
            return

        result = await self._remote.remove(record_id)
        if result.is_err():
            self.logger.warning(
                "remote_delete_failed", record_id=record_id, error=str(result.unwrap_err())
            )

    # Backup

    def export(self) -> str:
        """The whole mirror as one JSON array."""
        return self.cache.mirror_json()

    def export_to(self, directory: str | Path, day: date | None = None) -> Path:
        target = Path(directory) / export_filename(day)
        target.write_text(self.export(), encoding="utf-8")
        self.logger.info("mirror_exported", path=str(target))
        return target

    def import_(self, payload: str) -> bool:
        """Replace the mirror wholesale with a JSON array; anything else changes nothing."""
        result = parse_records_payload(payload)
        if result.is_err():
            self.logger.warning("import_rejected", error=str(result.unwrap_err()))
            return False

        items = result.unwrap()
        self.cache.replace_mirror_items(items)
        self.logger.info("mirror_imported", count=len(items))
        return True

    # Draft slot

    def load_draft(self) -> FamilyRecord | None:
        return self.cache.load_draft()

    def save_draft(self, record: FamilyRecord) -> None:
        self.cache.save_draft(record)

    def clear_draft(self) -> None:
        self.cache.clear_draft()
