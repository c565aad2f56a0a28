"""Tree session: fetch records, build the hierarchy, load it for rendering."""

from __future__ import annotations

from loguru import logger

from ..config.settings import TreeConfig
from ..render.controller import InteractionController, RenderUpdate
from ..sources.base import RecordSource
from ..sources.file import FileRecordSource
from ..sources.odata import ODataRecordSource
from ..sources.query import build_filter_expression, plan_query, query_columns
from .builder import build_hierarchy
from .exceptions import ConfigError, RecordSourceError
from .models import Hierarchy, MetadataTable, Record


def create_source(config: TreeConfig) -> RecordSource:
    """Instantiate the record source described by ``config.source``.

    Raises:
        ConfigError: If no source is configured
    """
    source = config.source
    if source is None:
        raise ConfigError("No record source configured")
    if source.type == "odata":
        return ODataRecordSource(source.url, headers=source.headers, timeout=source.timeout)
    return FileRecordSource(source.path)


class TreeSession:
    """One configured tree and the controller that renders it.

    Example:
        >>> session = TreeSession(TreeConfig.load(Path("record-tree.yaml")))
        >>> await session.refresh()
        >>> session.controller.click("Company\\x1fEng")
    """

    def __init__(
        self,
        config: TreeConfig,
        source: RecordSource | None = None,
        controller: InteractionController | None = None,
    ) -> None:
        self.config = config
        self.metadata: MetadataTable = config.metadata()
        self.source = source
        self.controller = controller or InteractionController(
            settings=config.render,
            tooltip_fields=config.tooltip_fields,
            metadata=self.metadata,
            node_colors=config.node_colors,
        )
        self.hierarchy = Hierarchy()

    def _source(self) -> RecordSource:
        if self.source is None:
            self.source = create_source(self.config)
        return self.source

    async def fetch_records(self) -> list[Record]:
        """Fetch the configured list, degrading to no records on failure."""
        columns = query_columns(self.config.grouping_columns, self.config.tooltip_fields)
        plan = plan_query(columns, self.metadata)
        filter_expression = build_filter_expression(
            self.config.filter.column, self.config.filter.text, self.config.filter.operator
        )
        if filter_expression:
            logger.debug(f"Filter: {filter_expression}")

        try:
            return await self._source().fetch(
                self.config.list_name, plan.select, plan.expand, filter_expression
            )
        except RecordSourceError as e:
            logger.warning(f"Fetching '{self.config.list_name}' failed, showing no records: {e}")
        except Exception as e:
            logger.warning(f"Unexpected error fetching '{self.config.list_name}': {e}")
        return []

    async def build(self) -> Hierarchy:
        """Fetch and build without touching the controller."""
        if not self.config.is_complete:
            logger.debug("Configuration incomplete, nothing to build")
            return Hierarchy()

        records = await self.fetch_records()
        return build_hierarchy(
            records,
            self.config.root_value,
            self.config.grouping_columns,
            self.config.tooltip_fields,
            self.metadata,
        )

    async def refresh(self) -> RenderUpdate:
        """Rebuild the tree and swap it into the controller.

        Interaction is paused for the duration of the fetch; the controller's
        state is replaced in one step once the new hierarchy is ready. When
        refreshes overlap only the most recently started one is applied; an
        older one finishing later returns an ignored update.
        """
        generation = self.controller.begin_rebuild()
        hierarchy = self.hierarchy
        try:
            hierarchy = await self.build()
        finally:
            update = self.controller.load(hierarchy, generation)
            if not update.ignored:
                self.hierarchy = hierarchy
        return update
