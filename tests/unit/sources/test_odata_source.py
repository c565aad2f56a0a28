"""Unit tests for ODataRecordSource using httpx.MockTransport."""

import httpx
import pytest

from record_tree.core.exceptions import RecordSourceError
from record_tree.sources.odata import ODataRecordSource

URL = "https://tenant.example.com/_api/web/lists/getbytitle('{list_name}')/items"


class TestODataRecordSource:
    @pytest.mark.asyncio
    async def test_sends_query_options(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"value": [{"Title": "a"}]})

        source = ODataRecordSource(URL, transport=httpx.MockTransport(handler))
        records = await source.fetch(
            "Staff", ["Dept", "Manager/Title"], ["Manager"], "Dept eq 'Eng'"
        )

        assert records == [{"Title": "a"}]
        params = seen[0].url.params
        assert "getbytitle('Staff')" in seen[0].url.path
        assert params["$select"] == "Dept,Manager/Title"
        assert params["$expand"] == "Manager"
        assert params["$filter"] == "Dept eq 'Eng'"
        assert params["$top"] == "5000"
        assert seen[0].headers["accept"].startswith("application/json")

    @pytest.mark.asyncio
    async def test_omits_empty_options(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"value": []})

        source = ODataRecordSource(URL, transport=httpx.MockTransport(handler))
        await source.fetch("Staff", ["Dept"], [], "")

        params = seen[0].url.params
        assert "$expand" not in params
        assert "$filter" not in params

    @pytest.mark.asyncio
    async def test_follows_next_links(self):
        next_url = "https://tenant.example.com/page2?$skiptoken=abc"

        def handler(request: httpx.Request) -> httpx.Response:
            if "skiptoken" in str(request.url):
                return httpx.Response(200, json={"value": [{"Id": 2}]})
            return httpx.Response(
                200, json={"value": [{"Id": 1}], "odata.nextLink": next_url}
            )

        source = ODataRecordSource(URL, transport=httpx.MockTransport(handler))
        records = await source.fetch("Staff", [], [])
        assert [r["Id"] for r in records] == [1, 2]

    @pytest.mark.asyncio
    async def test_verbose_payload_shape(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if "page2" in str(request.url):
                return httpx.Response(200, json={"d": {"results": [{"Id": 2}]}})
            return httpx.Response(
                200,
                json={"d": {"results": [{"Id": 1}], "__next": "https://h/page2"}},
            )

        source = ODataRecordSource(URL, transport=httpx.MockTransport(handler))
        records = await source.fetch("Staff", [], [])
        assert [r["Id"] for r in records] == [1, 2]

    @pytest.mark.asyncio
    async def test_http_error_raises_record_source_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(403, json={"error": "forbidden"})

        source = ODataRecordSource(URL, transport=httpx.MockTransport(handler))
        with pytest.raises(RecordSourceError) as exc_info:
            await source.fetch("Staff", [], [])
        assert exc_info.value.context["status_code"] == 403

    @pytest.mark.asyncio
    async def test_unexpected_payload_raises_record_source_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"items": []})

        source = ODataRecordSource(URL, transport=httpx.MockTransport(handler))
        with pytest.raises(RecordSourceError):
            await source.fetch("Staff", [], [])

    @pytest.mark.asyncio
    async def test_connection_error_raises_record_source_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        source = ODataRecordSource(URL, transport=httpx.MockTransport(handler))
        with pytest.raises(RecordSourceError):
            await source.fetch("Staff", [], [])
