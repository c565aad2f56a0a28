"""Tests for the tree visualization server."""

import asyncio
import socket

import pytest
from fastapi.testclient import TestClient

from record_tree.cli.commands.visualize.server import create_app, find_free_port
from record_tree.config.settings import TreeConfig
from record_tree.core.session import TreeSession

ENG = "Company\x1fEng"


class StubSource:
    def __init__(self, records):
        self.records = records

    async def fetch(self, list_name, select, expand, filter_expression=""):
        return self.records


@pytest.fixture
def session(config_dict, company_records) -> TreeSession:
    session = TreeSession(TreeConfig.from_dict(config_dict), source=StubSource(company_records))
    asyncio.run(session.refresh())
    return session


@pytest.fixture
def client(session) -> TestClient:
    return TestClient(create_app(session))


def _keys(section: list[dict]) -> set[str]:
    return {item["key"] for item in section}


class TestPage:
    def test_index_serves_d3_page(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert "text/html" in response.headers["content-type"]
        assert "no-cache" in response.headers["cache-control"]
        assert "d3.v7.min.js" in response.text
        assert "<title>Company</title>" in response.text
        assert "const CONFIG" in response.text

    def test_late_hover_response_is_ignored_after_leave(self, client):
        page = client.get("/").text

        assert "hoveredKey = d.key;" in page
        assert "if (!tip || hoveredKey !== d.key) return;" in page
        hide = page[page.index("function hideTooltip()") :]
        assert hide.index("hoveredKey = null;") < hide.index("visibility', 'hidden'")

    def test_graph_snapshot(self, client):
        data = client.get("/api/graph").json()

        assert data["ignored"] is False
        assert _keys(data["graph"]["nodes"]["enter"]) == {"Company", ENG, "Company\x1fSales"}
        assert data["viewport"] == {"x": 400.0, "y": 80.0, "k": 1.0, "duration": 0}


class TestToggles:
    def test_toggle_expands_node(self, client):
        data = client.post("/api/nodes/toggle", json={"key": ENG}).json()

        entering = {n["key"]: n for n in data["graph"]["nodes"]["enter"]}
        assert set(entering) == {f"{ENG}\x1fCore", f"{ENG}\x1fInfra"}
        # entering nodes start where their parent was drawn
        assert entering[f"{ENG}\x1fCore"]["from"] == [-100, 200]
        assert entering[f"{ENG}\x1fCore"]["to"] == [-200, 400]
        assert "viewport" not in data

    def test_toggle_unknown_key_is_404(self, client):
        response = client.post("/api/nodes/toggle", json={"key": "Company\x1fNope"})
        assert response.status_code == 404
        assert response.json()["key"] == "Company\x1fNope"

    def test_expand_all_and_collapse_all(self, client):
        data = client.post("/api/expand-all").json()
        assert len(data["graph"]["nodes"]["enter"]) == 3
        assert data["viewport"]["duration"] == 750

        data = client.post("/api/collapse-all").json()
        assert len(data["graph"]["nodes"]["exit"]) == 5
        assert data["viewport"]["x"] == 400

    def test_toggle_ignored_while_rebuilding(self, client, session):
        session.controller.begin_rebuild()
        data = client.post("/api/nodes/toggle", json={"key": ENG}).json()
        assert data == {"ignored": True}


class TestHover:
    def test_enter_move_leave(self, client):
        tooltip = client.post(
            "/api/hover", json={"event": "enter", "key": ENG, "x": 5, "y": 5}
        ).json()
        assert tooltip["title"] == "Eng"
        assert tooltip["fields"] == [{"label": "Manager", "value": "Alice"}]
        assert (tooltip["x"], tooltip["y"]) == (15, 15)

        tooltip = client.post("/api/hover", json={"event": "move", "x": 50, "y": 60}).json()
        assert (tooltip["x"], tooltip["y"]) == (60, 70)

        assert client.post("/api/hover", json={"event": "leave"}).json() is None

    def test_enter_without_key_is_404(self, client):
        response = client.post("/api/hover", json={"event": "enter"})
        assert response.status_code == 404


class TestViewport:
    def test_viewport_is_clamped(self, client):
        data = client.post("/api/viewport", json={"x": 10, "y": 20, "k": 10}).json()
        assert data == {"x": 10, "y": 20, "k": 3.0}

    def test_resize_moves_reset_point(self, client):
        assert client.post("/api/resize", json={"width": 1200}).json() == {
            "width": 1200,
            "height": 600,
        }
        data = client.post("/api/collapse-all").json()
        assert data["viewport"]["x"] == 600


def test_refresh_rebuilds(client, session):
    client.post("/api/expand-all")
    data = client.post("/api/refresh").json()

    assert data["ignored"] is False
    assert session.controller.state.find(ENG).is_expanded is False
    assert _keys(data["graph"]["nodes"]["exit"]) >= {f"{ENG}\x1fCore"}


def test_find_free_port_skips_busy_port():
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as busy:
        busy.bind(("", 0))
        port = busy.getsockname()[1]
        assert find_free_port(port, port + 10) != port


def test_find_free_port_raises_when_range_exhausted():
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as busy:
        busy.bind(("", 0))
        port = busy.getsockname()[1]
        with pytest.raises(OSError):
            find_free_port(port, port)
