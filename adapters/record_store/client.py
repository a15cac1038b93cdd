"""
HTTP client for the remote record store.

Every call returns a Result: a reachable store yields Ok, anything else
(connection refused, timeout, non-2xx status, body that is not a JSON array)
yields Err(RemoteUnavailable). Nothing here raises for transport problems.
"""

from urllib.parse import quote

import httpx
import structlog

from core.domain.errors import RemoteUnavailable
from core.domain.models import FamilyRecord, validate_records
from core.result import Result

logger = structlog.get_logger(__name__)


class RecordStoreClient:
    """
    Async client for the three record store routes.

    Design: one pooled httpx.AsyncClient per endpoint, closed with `aclose()`
    or by using the client as an async context manager.
    """

    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.logger = logger.bind(component="record_store_client", base_url=self.base_url)
        self._http = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout_seconds),
            headers={"Accept": "application/json"},
            transport=transport,
        )

    async def __aenter__(self) -> "RecordStoreClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def fetch_all(self) -> Result[list[FamilyRecord], RemoteUnavailable]:
        """GET /records"""
        try:
            response = await self._http.get("/records")
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as e:
            return self._unavailable("fetch", e, e.response.status_code)
        except (httpx.HTTPError, ValueError) as e:
            return self._unavailable("fetch", e)

        if not isinstance(body, list):
            return self._unavailable("fetch", ValueError("response body is not a JSON array"))

        records, rejected = validate_records(body)
        if rejected:
            self.logger.warning("fetched_records_skipped", count=rejected)
        self.logger.info("records_fetched", count=len(records))
        return Result.ok(records)

    async def push(self, record: FamilyRecord) -> Result[bool, RemoteUnavailable]:
        """POST /records (insert or replace by id)"""
        try:
            response = await self._http.post("/records", json=record.to_json_dict())
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            return self._unavailable("push", e, e.response.status_code)
        except httpx.HTTPError as e:
            return self._unavailable("push", e)

        self.logger.info("record_pushed", record_id=record.id)
        return Result.ok(_reported_success(response))

    async def remove(self, record_id: str) -> Result[bool, RemoteUnavailable]:
        """DELETE /records/{id}"""
        try:
            response = await self._http.delete("/records/" + quote(record_id, safe=""))
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            return self._unavailable("remove", e, e.response.status_code)
        except httpx.HTTPError as e:
            return self._unavailable("remove", e)

        self.logger.info("record_removed", record_id=record_id)
        return Result.ok(_reported_success(response))

    def _unavailable(
        self, operation: str, error: Exception, status_code: int | None = None
    ) -> Result:
        self.logger.warning(
            "record_store_unavailable",
            operation=operation,
            error=str(error),
            error_type=type(error).__name__,
            status_code=status_code,
        )
        return Result.err(RemoteUnavailable(f"{operation} failed: {error}", status_code))


def _reported_success(response: httpx.Response) -> bool:
    """`success` flag of a 2xx body; a 2xx without one counts as success."""
    try:
        body = response.json()
    except ValueError:
        return True
    if isinstance(body, dict) and "success" in body:
        return bool(body["success"])
    return True
