"""Records fetched from an OData/REST list items endpoint."""

from __future__ import annotations

from typing import Any

import httpx
from loguru import logger

from ..config.defaults import DEFAULT_FETCH_TIMEOUT, DEFAULT_PAGE_SIZE
from ..core.exceptions import RecordSourceError
from ..core.models import Record

NEXT_LINK_KEYS = ("odata.nextLink", "@odata.nextLink", "__next")


def _page_items(payload: Any) -> tuple[list[Record], str | None]:
    """Split one response page into records and the next page link.

    Handles both the ``{"value": [...]}`` shape and the verbose
    ``{"d": {"results": [...], "__next": ...}}`` shape.
    """
    if not isinstance(payload, dict):
        raise ValueError("response is not a JSON object")

    body = payload.get("d", payload)
    if not isinstance(body, dict):
        raise ValueError("response has an unexpected 'd' member")
    items = body.get("value", body.get("results"))
    if not isinstance(items, list):
        raise ValueError("response has no 'value' or 'results' list")

    next_link = next((body[key] for key in NEXT_LINK_KEYS if body.get(key)), None)
    return items, next_link


class ODataRecordSource:
    """Paged OData source.

    ``url`` may contain a ``{list_name}`` placeholder, e.g.
    ``https://host/_api/web/lists/getbytitle('{list_name}')/items``.
    """

    def __init__(
        self,
        url: str,
        headers: dict[str, str] | None = None,
        timeout: float = DEFAULT_FETCH_TIMEOUT,
        page_size: int = DEFAULT_PAGE_SIZE,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.url = url
        self.headers = {"Accept": "application/json;odata=nometadata", **(headers or {})}
        self.timeout = timeout
        self.page_size = page_size
        self._transport = transport

    def _params(
        self, select: list[str], expand: list[str], filter_expression: str
    ) -> dict[str, str]:
        params = {"$top": str(self.page_size)}
        if select:
            params["$select"] = ",".join(select)
        if expand:
            params["$expand"] = ",".join(expand)
        if filter_expression:
            params["$filter"] = filter_expression
        return params

    async def fetch(
        self,
        list_name: str,
        select: list[str],
        expand: list[str],
        filter_expression: str = "",
    ) -> list[Record]:
        url: str | None = self.url.replace("{list_name}", list_name)
        params: dict[str, str] | None = self._params(select, expand, filter_expression)
        records: list[Record] = []
        pages = 0

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, headers=self.headers, transport=self._transport
            ) as client:
                while url:
                    response = await client.get(url, params=params)
                    response.raise_for_status()
                    items, url = _page_items(response.json())
                    records.extend(items)
                    # next links already carry the query string
                    params = None
                    pages += 1

        except httpx.TimeoutException as e:
            logger.error(f"Timed out fetching '{list_name}' after {self.timeout}s")
            raise RecordSourceError(
                f"Request timed out after {self.timeout} seconds",
                context={"list_name": list_name},
            ) from e

        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code
            logger.error(f"Fetching '{list_name}' failed (HTTP {status_code})")
            raise RecordSourceError(
                f"Record source returned HTTP {status_code}",
                context={"list_name": list_name, "status_code": status_code},
            ) from e

        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Fetching '{list_name}' failed: {e}")
            raise RecordSourceError(
                f"Record fetch failed: {e}", context={"list_name": list_name}
            ) from e

        logger.debug(f"Fetched {len(records)} records for '{list_name}' in {pages} pages")
        return records
