import typer
from rich.console import Console

serve_app = typer.Typer(help="Start servers.")
console = Console()


@serve_app.command("api")
def api(
    host: str = "127.0.0.1",
    port: int = 8000,
) -> None:
    """Start the FastAPI REST API server."""
    import uvicorn

    from deep_populate.api.app import create_app

    app = create_app()
    console.print(f"[green]Starting API server on {host}:{port}[/green]")
    uvicorn.run(app, host=host, port=port)


@serve_app.command("mcp")
def mcp(
    transport: str = "stdio",
) -> None:
    """Start the MCP server."""
    from deep_populate.api.dependencies import get_config, get_registry, get_schema_provider
    from deep_populate.db.engine import get_engine
    from deep_populate.db.sql import SqlContentDatabase
    from deep_populate.mcp.server import create_mcp_server

    db = SqlContentDatabase(get_engine())
    server = create_mcp_server(db, get_schema_provider(), get_registry(), get_config())
    console.print(f"[green]Starting MCP server (transport: {transport})[/green]")
    server.run(transport=transport)  # type: ignore[arg-type]
