"""Unit tests for TreeSession (fetch, build, load)."""

import asyncio

import pytest

from record_tree.config.settings import TreeConfig
from record_tree.core.exceptions import RecordSourceError
from record_tree.core.session import TreeSession, create_source
from record_tree.sources.file import FileRecordSource
from record_tree.sources.odata import ODataRecordSource

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class StubSource:
    """Record source returning canned records and remembering the query."""

    def __init__(self, records=None, error: Exception | None = None):
        self.records = records or []
        self.error = error
        self.calls = []

    async def fetch(self, list_name, select, expand, filter_expression=""):
        self.calls.append((list_name, select, expand, filter_expression))
        if self.error:
            raise self.error
        return self.records


class GatedSource(StubSource):
    """Record source that waits until released."""

    def __init__(self, records):
        super().__init__(records)
        self.release = asyncio.Event()

    async def fetch(self, list_name, select, expand, filter_expression=""):
        await self.release.wait()
        return await super().fetch(list_name, select, expand, filter_expression)


class SequencedSource:
    """Record source whose nth call waits for its own release event."""

    def __init__(self, *record_sets):
        self.record_sets = list(record_sets)
        self.releases = [asyncio.Event() for _ in record_sets]
        self.calls = 0

    async def fetch(self, list_name, select, expand, filter_expression=""):
        index = self.calls
        self.calls += 1
        await self.releases[index].wait()
        return self.record_sets[index]


@pytest.fixture
def config(config_dict) -> TreeConfig:
    config_dict = {**config_dict, "filter": {"column": "Dept", "text": "Eng, Sales"}}
    return TreeConfig.from_dict(config_dict)


class TestRefresh:
    @pytest.mark.asyncio
    async def test_builds_and_loads(self, config, company_records):
        session = TreeSession(config, source=StubSource(company_records))
        update = await session.refresh()

        assert [c.title for c in session.hierarchy.root.children] == ["Eng", "Sales"]
        # only the root and its (collapsed) children are drawn after a rebuild
        assert set(update.reconciliation.graph.nodes) == {
            "Company",
            "Company\x1fEng",
            "Company\x1fSales",
        }

    @pytest.mark.asyncio
    async def test_passes_query_plan_and_filter(self, config, company_records):
        source = StubSource(company_records)
        session = TreeSession(config, source=source)
        await session.refresh()

        list_name, select, expand, filter_expression = source.calls[0]
        assert list_name == "Staff"
        assert select == ["Dept", "Team", "Manager/Title"]
        assert expand == ["Manager"]
        assert filter_expression == "(Dept eq 'Eng' or Dept eq 'Sales')"

    @pytest.mark.asyncio
    async def test_fetch_failure_degrades_to_empty_tree(self, config):
        session = TreeSession(config, source=StubSource(error=RecordSourceError("down")))
        update = await session.refresh()

        assert session.hierarchy.root.title == "Company"
        assert session.hierarchy.root.children == []
        assert list(update.reconciliation.graph.nodes) == ["Company"]

    @pytest.mark.asyncio
    async def test_unexpected_source_error_also_degrades(self, config):
        session = TreeSession(config, source=StubSource(error=RuntimeError("boom")))
        await session.refresh()
        assert session.hierarchy.root.children == []

    @pytest.mark.asyncio
    async def test_incomplete_config_renders_nothing(self, company_records):
        source = StubSource(company_records)
        session = TreeSession(TreeConfig(list_name="Staff"), source=source)
        update = await session.refresh()

        assert session.hierarchy.root is None
        assert update.reconciliation.graph.nodes == {}
        assert source.calls == []

    @pytest.mark.asyncio
    async def test_toggles_during_rebuild_are_ignored(self, config, company_records):
        source = GatedSource(company_records)
        session = TreeSession(config, source=source)
        refresh = asyncio.create_task(session.refresh())
        await asyncio.sleep(0)

        assert session.controller.rebuilding
        assert session.controller.click("Company").ignored
        assert session.controller.expand_all().ignored

        source.release.set()
        await refresh
        assert not session.controller.rebuilding
        assert not session.controller.click("Company\x1fEng").ignored


class TestOverlappingRefresh:
    HR = [{"Dept": "HR", "Team": "Ops"}]

    @pytest.mark.asyncio
    async def test_stays_paused_until_newest_refresh_lands(self, config, company_records):
        source = SequencedSource(company_records, self.HR)
        session = TreeSession(config, source=source)
        first = asyncio.create_task(session.refresh())
        await asyncio.sleep(0)
        second = asyncio.create_task(session.refresh())
        await asyncio.sleep(0)

        source.releases[0].set()
        assert (await first).ignored
        assert session.controller.rebuilding
        assert session.controller.click("Company").ignored

        source.releases[1].set()
        update = await second
        assert not update.ignored
        assert not session.controller.rebuilding
        assert [c.title for c in session.hierarchy.root.children] == ["HR"]

    @pytest.mark.asyncio
    async def test_older_refresh_finishing_last_is_discarded(self, config, company_records):
        source = SequencedSource(company_records, self.HR)
        session = TreeSession(config, source=source)
        first = asyncio.create_task(session.refresh())
        await asyncio.sleep(0)
        second = asyncio.create_task(session.refresh())
        await asyncio.sleep(0)

        source.releases[1].set()
        assert not (await second).ignored
        assert not session.controller.rebuilding

        source.releases[0].set()
        assert (await first).ignored
        assert [c.title for c in session.hierarchy.root.children] == ["HR"]
        assert session.controller.state.find("Company\x1fHR") is not None
        assert session.controller.state.find("Company\x1fEng") is None


class TestCreateSource:
    def test_file_source(self, config):
        assert isinstance(create_source(config), FileRecordSource)

    def test_odata_source(self, config_dict):
        config_dict["source"] = {"type": "odata", "url": "https://example.com/items"}
        source = create_source(TreeConfig.from_dict(config_dict))
        assert isinstance(source, ODataRecordSource)
