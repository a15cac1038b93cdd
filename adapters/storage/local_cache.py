"""
On-device cache: the local tier of the record storage.

`LocalCache` is the storage handle built once at startup and handed to every
component that persists. It owns three keys under a prefix:

- ``<prefix>_records``  full mirror of the record set (JSON array)
- ``<prefix>_draft``    the single unsaved record (JSON object, or absent)
- ``<prefix>_api_url``  the saved server location (plain string, or absent)
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Protocol

import structlog
from pydantic import ValidationError

from core.domain.models import FamilyRecord, records_to_json, validate_records

logger = structlog.get_logger(__name__)


class KeyValueStore(Protocol):
    """
    Minimal string key-value persistence.

    Why Protocol over ABC: structural typing, the test doubles need no base class.
    """

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class JsonFileStore:
    """One UTF-8 file per key inside a directory; writes replace the file atomically."""

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        if not key or "/" in key or "\\" in key or key.startswith("."):
            raise ValueError(f"Invalid cache key: {key!r}")
        return self.directory / f"{key}.json"

    def get(self, key: str) -> str | None:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(value)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def delete(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)


class LocalCache:
    """Typed access to the records mirror, the draft slot and the server location."""

    def __init__(self, store: KeyValueStore, key_prefix: str = "health_assess") -> None:
        self.store = store
        self.records_key = f"{key_prefix}_records"
        self.draft_key = f"{key_prefix}_draft"
        self.api_url_key = f"{key_prefix}_api_url"
        self.logger = logger.bind(component="local_cache", prefix=key_prefix)

    # Records mirror

    def mirror_json(self) -> str:
        """Raw mirror contents, `[]` when nothing was stored yet."""
        return self.store.get(self.records_key) or "[]"

    def _mirror_items(self) -> list[Any] | None:
        """Stored mirror as a raw JSON list; None when the stored text is not a JSON array."""
        raw = self.store.get(self.records_key)
        if raw is None:
            return []
        try:
            items = json.loads(raw)
        except ValueError as e:
            self.logger.warning("mirror_unreadable", error=str(e))
            return None
        if not isinstance(items, list):
            self.logger.warning("mirror_unreadable", error="not a JSON array")
            return None
        return items

    def load_mirror(self) -> list[FamilyRecord]:
        """Valid records of the mirror; unreadable elements are left out but stay stored."""
        items = self._mirror_items()
        if items is None:
            return []
        records, rejected = validate_records(items)
        if rejected:
            self.logger.warning("mirror_records_skipped", count=rejected)
        return records

    def replace_mirror(self, records: list[FamilyRecord]) -> None:
        self.store.set(self.records_key, records_to_json(records))
        self.logger.debug("mirror_replaced", count=len(records))

    def replace_mirror_items(self, items: list[Any]) -> None:
        """Store an already parsed JSON array as is (backup import)."""
        self.store.set(self.records_key, json.dumps(items, ensure_ascii=False))
        self.logger.debug("mirror_replaced", count=len(items))

    def upsert(self, record: FamilyRecord) -> bool:
        """
        Replace the element with the same id, or append the record.

        Works on the raw array so elements this version cannot read survive.
        Returns False, writing nothing, when the stored mirror is not an array.
        """
        items = self._mirror_items()
        if items is None:
            self.logger.error("mirror_write_skipped", operation="upsert", record_id=record.id)
            return False

        payload = record.to_json_dict()
        for index, item in enumerate(items):
            if _item_id(item) == record.id:
                items[index] = payload
                break
        else:
            items.append(payload)
        self.replace_mirror_items(items)
        return True

    def remove(self, record_id: str) -> bool:
        items = self._mirror_items()
        if items is None:
            self.logger.error("mirror_write_skipped", operation="remove", record_id=record_id)
            return False

        self.replace_mirror_items([item for item in items if _item_id(item) != record_id])
        return True

    # Draft slot

    def load_draft(self) -> FamilyRecord | None:
        raw = self.store.get(self.draft_key)
        if raw is None:
            return None
        try:
            return FamilyRecord.model_validate_json(raw)
        except ValidationError as e:
            self.logger.warning("draft_unreadable", error=str(e))
            return None

    def save_draft(self, record: FamilyRecord) -> None:
        self.store.set(self.draft_key, json.dumps(record.to_json_dict(), ensure_ascii=False))

    def clear_draft(self) -> None:
        self.store.delete(self.draft_key)

    # Server location

    def server_location(self) -> str | None:
        """Saved endpoint; None when never set, empty string for local-only mode."""
        value = self.store.get(self.api_url_key)
        return value.strip() if value is not None else None

    def set_server_location(self, url: str) -> None:
        self.store.set(self.api_url_key, url.strip())


def _item_id(item: Any) -> Any:
    return item.get("id") if isinstance(item, dict) else None
