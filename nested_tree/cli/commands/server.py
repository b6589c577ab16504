"""Command serving the HTTP API with uvicorn.

Example:bash
    nested-tree serve
    nested-tree serve --port 9000 --reload
"""

from __future__ import annotations

import click

from nested_tree.core.settings import get_app_settings, get_logging_settings


@click.command()
@click.option("--host", default=None, help="Bind host  [default: APP_HOST]")
@click.option("--port", default=None, type=click.IntRange(1, 65535), help="Bind port  [default: APP_PORT]")
@click.option("--reload", is_flag=True, help="Restart when source files change")
def serve(host: str | None, port: int | None, reload: bool) -> None:
    """Serve the node API.

    Every request runs in its own transaction, so mutations made through
    the API and through the other commands can be mixed freely.
    """
    import uvicorn

    settings = get_app_settings()
    host = host or settings.host
    port = port or settings.port

    click.echo(f"Serving {settings.title} on http://{host}:{port}{settings.api_prefix}")
    uvicorn.run(
        "nested_tree.app.main:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_level=get_logging_settings().level.lower(),
    )
