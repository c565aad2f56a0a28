"""Record source interface."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from ..core.models import Record


@runtime_checkable
class RecordSource(Protocol):
    """Anything that can hand back the records of a named list."""

    async def fetch(
        self,
        list_name: str,
        select: list[str],
        expand: list[str],
        filter_expression: str = "",
    ) -> list[Record]:
        """Fetch every record of ``list_name`` matching the filter.

        Raises:
            RecordSourceError: If the records cannot be retrieved
        """
        ...
