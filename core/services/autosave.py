"""Debounced draft persistence.

Each edit cancels the pending write and schedules a new one, so a burst of
edits ends in a single write holding the last state.
"""

import asyncio
from collections.abc import Callable

import structlog

from core.domain.models import FamilyRecord

logger = structlog.get_logger(__name__)


class DraftAutosaver:
    def __init__(self, sink: Callable[[FamilyRecord], None], quiet_seconds: float = 1.0) -> None:
        if quiet_seconds <= 0:
            raise ValueError("quiet_seconds must be positive")
        self.sink = sink
        self.quiet_seconds = quiet_seconds
        self.writes = 0
        self.logger = logger.bind(component="draft_autosaver")
        self._timer: asyncio.TimerHandle | None = None
        self._pending: FamilyRecord | None = None

    @property
    def pending(self) -> bool:
        return self._timer is not None

    def schedule(self, record: FamilyRecord) -> None:
        """
        (Re)start the quiet period for `record`.

        Without a running event loop there is no timer to debounce with, so the
        draft is written right away.
        """
        if self._timer is not None:
            self._timer.cancel()
        self._pending = record
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._timer = None
            self._write()
            return
        self._timer = loop.call_later(self.quiet_seconds, self._write)

    def flush(self) -> None:
        """Write the pending record now instead of waiting."""
        if self._timer is not None:
            self._timer.cancel()
            self._write()

    def cancel(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
        self._timer = None
        self._pending = None

    def _write(self) -> None:
        record, self._pending, self._timer = self._pending, None, None
        if record is None:
            return
        try:
            self.sink(record)
        except OSError as e:
            # Next edit schedules another attempt
            self.logger.error("draft_write_failed", record_id=record.id, error=str(e))
            return
        self.writes += 1
        self.logger.debug("draft_written", record_id=record.id, writes=self.writes)
