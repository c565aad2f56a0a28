"""Records read from a local JSON or YAML file."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any

import yaml
from loguru import logger

from ..core.exceptions import RecordSourceError
from ..core.models import Record
from .query import matches_filter


class FileRecordSource:
    """Serve records from a file.

    The file holds either a list of records or a mapping with a ``records``
    (or OData style ``value``) list. Select and expand are ignored since the
    file already carries expanded reference objects; only equality filters
    are evaluated.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def _load(self) -> Any:
        with open(self.path, encoding="utf-8") as f:
            if self.path.suffix.lower() == ".json":
                return json.load(f)
            return yaml.safe_load(f)

    async def fetch(
        self,
        list_name: str,
        select: list[str],
        expand: list[str],
        filter_expression: str = "",
    ) -> list[Record]:
        if not self.path.exists():
            raise RecordSourceError(
                f"Record file not found: {self.path}", context={"path": str(self.path)}
            )

        try:
            data = await asyncio.to_thread(self._load)
        except (OSError, json.JSONDecodeError, yaml.YAMLError) as e:
            raise RecordSourceError(
                f"Could not read records from {self.path}: {e}",
                context={"path": str(self.path)},
            ) from e

        if isinstance(data, dict):
            data = data.get("records", data.get("value"))
        if not isinstance(data, list):
            raise RecordSourceError(
                f"{self.path} does not contain a record list",
                context={"path": str(self.path)},
            )

        records = [record for record in data if isinstance(record, dict)]
        if filter_expression:
            try:
                records = [r for r in records if matches_filter(r, filter_expression)]
            except ValueError as e:
                raise RecordSourceError(str(e), context={"filter": filter_expression}) from e

        logger.debug(
            f"Loaded {len(records)} records for '{list_name}' from {self.path}"
        )
        return records
