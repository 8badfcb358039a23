from __future__ import annotations

import json
import logging
from typing import Optional

import typer

from snaproom.config import load_settings

app = typer.Typer(add_completion=False, help="SnapRoom signaling server utilities.")
logger = logging.getLogger(__name__)

APP_FACTORY = "snaproom.server.app:create_app"


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, help="Bind host (default from settings)."),
    port: Optional[int] = typer.Option(None, help="Bind port (default from settings)."),
    log_level: Optional[str] = typer.Option(None, help="uvicorn log level."),
    reload: bool = typer.Option(False, help="Enable uvicorn reload for development."),
) -> None:
    """Run the room coordination server under uvicorn."""
    import uvicorn

    settings = load_settings()
    bind_host = host or settings.host
    bind_port = port or settings.port
    level = (log_level or settings.log_level).lower()
    logger.info("Starting SnapRoom server at http://%s:%s", bind_host, bind_port)
    uvicorn.run(
        APP_FACTORY,
        host=bind_host,
        port=bind_port,
        log_level=level,
        reload=reload,
        factory=True,
    )


@app.command()
def config() -> None:
    """Print the resolved server settings."""
    print(json.dumps(load_settings().to_dict(), indent=2))


def main() -> None:
    app()


if __name__ == "__main__":
    main()
