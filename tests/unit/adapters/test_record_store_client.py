"""
Tests for the record store HTTP client.

httpx.MockTransport stands in for the network, so each test decides exactly
what the server answers (or how the connection fails).
"""

import json
from collections.abc import Callable

import httpx

from adapters.record_store.client import RecordStoreClient
from core.domain.errors import RemoteUnavailable
from core.domain.models import FamilyRecord, new_family_record

BASE_URL = "http://store.test/api"

Handler = Callable[[httpx.Request], httpx.Response]


def client_for(handler: Handler) -> RecordStoreClient:
    return RecordStoreClient(BASE_URL, transport=httpx.MockTransport(handler))


def refuse(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("connection refused", request=request)


class TestFetchAll:
    async def test_returns_parsed_records(self, sample_record: FamilyRecord) -> None:
        seen: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(f"{request.method} {request.url}")
            return httpx.Response(200, json=[sample_record.to_json_dict()])

        async with client_for(handler) as client:
            result = await client.fetch_all()

        assert seen == [f"GET {BASE_URL}/records"]
        assert result.unwrap() == [sample_record]

    async def test_server_error_is_unavailable(self) -> None:
        async with client_for(lambda request: httpx.Response(500, json={"error": "x"})) as client:
            result = await client.fetch_all()

        assert result.is_err()
        assert isinstance(result.unwrap_err(), RemoteUnavailable)
        assert result.unwrap_err().status_code == 500

    async def test_connection_refused_is_unavailable(self) -> None:
        async with client_for(refuse) as client:
            result = await client.fetch_all()

        assert result.is_err()
        assert result.unwrap_err().status_code is None

    async def test_body_that_is_not_a_record_list_is_unavailable(self) -> None:
        async with client_for(lambda request: httpx.Response(200, text="<html>")) as client:
            assert (await client.fetch_all()).is_err()

        async with client_for(lambda request: httpx.Response(200, json={"a": 1})) as client:
            assert (await client.fetch_all()).is_err()

    async def test_unreadable_elements_are_skipped_not_fatal(
        self, sample_record: FamilyRecord
    ) -> None:
        shared = sample_record.to_json_dict()
        shared["socioeconomic"]["peoplePerRoom"] = ""
        body = [shared, {"familyInfo": {"members": []}}, 1]

        async with client_for(lambda request: httpx.Response(200, json=body)) as client:
            result = await client.fetch_all()

        assert [r.id for r in result.unwrap()] == [sample_record.id]
        assert result.unwrap()[0].socioeconomic.people_per_room == 1


class TestPush:
    async def test_posts_camel_case_record(self, sample_record: FamilyRecord) -> None:
        bodies: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.method == "POST"
            assert request.url.path == "/api/records"
            bodies.append(json.loads(request.content))
            return httpx.Response(200, json={"success": True})

        async with client_for(handler) as client:
            result = await client.push(sample_record)

        assert result.unwrap() is True
        assert bodies[0]["id"] == sample_record.id
        assert bodies[0]["generalData"]["sisben"] == "A1"

    async def test_reported_failure_is_ok_false(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"success": False})

        async with client_for(handler) as client:
            result = await client.push(new_family_record())

        assert result.is_ok()
        assert result.unwrap() is False

    async def test_empty_success_body_counts_as_success(self) -> None:
        async with client_for(lambda request: httpx.Response(204)) as client:
            assert (await client.push(new_family_record())).unwrap() is True

    async def test_connection_refused(self) -> None:
        async with client_for(refuse) as client:
            result = await client.push(new_family_record())

        assert result.unwrap_or(False) is False
        assert "push failed" in str(result.unwrap_err())


class TestRemove:
    async def test_deletes_by_id(self) -> None:
        seen: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(f"{request.method} {request.url.path}")
            return httpx.Response(200, json={"success": True})

        async with client_for(handler) as client:
            result = await client.remove("abc-123")

        assert seen == ["DELETE /api/records/abc-123"]
        assert result.unwrap() is True

    async def test_id_is_escaped_as_one_path_segment(self) -> None:
        paths: list[bytes] = []

        def handler(request: httpx.Request) -> httpx.Response:
            paths.append(request.url.raw_path)
            return httpx.Response(200, json={"success": True})

        async with client_for(handler) as client:
            assert (await client.remove("a/b?c")).unwrap() is True

        assert paths == [b"/api/records/a%2Fb%3Fc"]

    async def test_not_found_is_unavailable(self) -> None:
        async with client_for(lambda request: httpx.Response(404)) as client:
            result = await client.remove("abc-123")

        assert result.unwrap_err().status_code == 404


def test_trailing_slash_trimmed() -> None:
    client = RecordStoreClient(BASE_URL + "/", transport=httpx.MockTransport(refuse))

    assert client.base_url == BASE_URL
