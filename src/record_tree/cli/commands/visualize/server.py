"""HTTP server bridging the browser page to the interaction controller.

Every handler is ``async`` and runs on the server's single event loop, so
controller calls never interleave. The only suspension point is the record
fetch inside ``/api/refresh``; toggles arriving while it is pending reach a
controller in its rebuilding phase and are answered with an ignored update.
"""

import socket
import webbrowser
from typing import Any, Literal

import typer
import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, JSONResponse
from loguru import logger
from pydantic import BaseModel
from rich.console import Console
from rich.panel import Panel

from ....core.exceptions import UnknownNodeError
from ....core.session import TreeSession
from ....render.state import ViewportTransform
from .templates.base import generate_html_template

console = Console()

NO_CACHE = {"Cache-Control": "no-cache, no-store, must-revalidate"}


class ToggleRequest(BaseModel):
    key: str


class HoverRequest(BaseModel):
    event: Literal["enter", "move", "leave"] = "enter"
    key: str | None = None
    x: float = 0.0
    y: float = 0.0


class ViewportRequest(BaseModel):
    x: float
    y: float
    k: float


class ResizeRequest(BaseModel):
    width: float
    height: float | None = None


def find_free_port(start_port: int = 8090, end_port: int = 8109) -> int:
    """Find a free port in the given range.

    Args:
        start_port: Starting port number to check
        end_port: Ending port number to check

    Returns:
        First available port in the range

    Raises:
        OSError: If no free ports available in range
    """
    for test_port in range(start_port, end_port + 1):
        try:
            with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
                s.bind(("", test_port))
                return test_port
        except OSError:
            continue
    raise OSError(f"No free ports available in range {start_port}-{end_port}")


def create_app(session: TreeSession) -> FastAPI:
    """Create the FastAPI application for one tree session.

    Args:
        session: Session whose controller receives the browser's events

    Returns:
        Configured FastAPI application

    Error Handling:
    - Unknown node keys: 404 with the offending key
    - Fetch failures: handled by the session (empty tree), never a 5xx
    """
    app = FastAPI(title="Record Tree")
    controller = session.controller

    @app.exception_handler(UnknownNodeError)
    async def unknown_node(request: Request, exc: UnknownNodeError) -> JSONResponse:
        logger.debug(f"{request.url.path}: {exc}")
        return JSONResponse(
            status_code=404, content={"error": str(exc), "key": exc.context.get("key")}
        )

    @app.get("/", response_class=HTMLResponse)
    async def serve_index() -> HTMLResponse:
        """Serve the page with no-cache headers to prevent stale scripts."""
        title = session.config.root_value or session.config.list_name or "Record Tree"
        return HTMLResponse(
            generate_html_template(title, session.config.render), headers=NO_CACHE
        )

    @app.get("/api/graph")
    async def get_graph() -> JSONResponse:
        """Full current graph, every visible node entering in place."""
        return JSONResponse(controller.snapshot().to_dict(), headers=NO_CACHE)

    @app.post("/api/nodes/toggle")
    async def toggle_node(body: ToggleRequest) -> dict[str, Any]:
        return controller.click(body.key).to_dict()

    @app.post("/api/expand-all")
    async def expand_all() -> dict[str, Any]:
        return controller.expand_all().to_dict()

    @app.post("/api/collapse-all")
    async def collapse_all() -> dict[str, Any]:
        return controller.collapse_all().to_dict()

    @app.post("/api/hover")
    async def hover(body: HoverRequest) -> dict[str, Any] | None:
        """Tooltip enter/move/leave.

        Returns:
            Tooltip for ``enter`` and ``move``, null after ``leave``
        """
        if body.event == "leave":
            controller.leave()
            return None
        if body.event == "move":
            tooltip = controller.move_pointer(body.x, body.y)
            return tooltip.to_dict() if tooltip else None
        if body.key is None:
            raise UnknownNodeError("Hover without a node key", context={"key": None})
        return controller.hover(body.key, body.x, body.y).to_dict()

    @app.post("/api/viewport")
    async def viewport(body: ViewportRequest) -> dict[str, Any]:
        transform = controller.zoom(ViewportTransform(body.x, body.y, body.k))
        return transform.to_dict()

    @app.post("/api/resize")
    async def resize(body: ResizeRequest) -> dict[str, Any]:
        controller.resize(body.width, body.height)
        return {"width": controller.width, "height": controller.height}

    @app.post("/api/refresh")
    async def refresh() -> dict[str, Any]:
        update = await session.refresh()
        return update.to_dict()

    return app


def start_visualization_server(
    port: int, session: TreeSession, auto_open: bool = True
) -> None:
    """Start the HTTP server for one tree session.

    Args:
        port: Port number to use
        session: Loaded tree session
        auto_open: Whether to automatically open browser

    Raises:
        typer.Exit: If server fails to start
    """
    try:
        app = create_app(session)
        url = f"http://localhost:{port}"

        console.print()
        console.print(
            Panel.fit(
                f"[green]✓[/green] Record tree server running\n\n"
                f"URL: [cyan]{url}[/cyan]\n"
                f"List: [dim]{session.config.list_name or '-'}[/dim]\n"
                f"Nodes: [dim]{session.hierarchy.node_count()}[/dim]\n\n"
                f"[dim]Press Ctrl+C to stop[/dim]",
                title="Server Started",
                border_style="green",
            )
        )

        if auto_open:
            webbrowser.open(url)

        config = uvicorn.Config(
            app,
            host="127.0.0.1",
            port=port,
            log_level="warning",
            access_log=False,
        )
        server = uvicorn.Server(config)
        server.run()

    except KeyboardInterrupt:
        console.print("\n[yellow]Stopping server...[/yellow]")
    except OSError as e:
        if "Address already in use" in str(e):
            console.print(
                f"[red]✗ Port {port} is already in use. Try a different port with --port[/red]"
            )
        else:
            console.print(f"[red]✗ Server error: {e}[/red]")
        raise typer.Exit(1) from e
