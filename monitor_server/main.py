"""
Main entry point for the Monitor Server application.

This module provides the command-line interface and the application
bootstrap: load configuration, set up logging, build the services and
serve the HTTP API.
"""

import asyncio
import logging
import os
from pathlib import Path
from typing import Optional

import aiohttp
import typer
import uvicorn

from .application.container import Container
from .application.startup import ApplicationStartup
from .infrastructure.config.loader import ConfigLoader
from .infrastructure.config.models import ApplicationConfig
from .infrastructure.logging.setup import setup_logging
from .presentation.api.app import CONFIG_FILE_ENV, create_app

cli = typer.Typer(
    name="monitor-server",
    help="Monitor server with node management API and background task execution"
)

logger = logging.getLogger(__name__)

# loguru levels uvicorn does not know about
_UVICORN_LOG_LEVELS = {"SUCCESS": "info"}


@cli.command()
def start(
    config_file: Optional[str] = typer.Option(
        None, "--config", "-c", help="Configuration file path"
    ),
    host: Optional[str] = typer.Option(
        None, "--host", help="Server host address"
    ),
    port: Optional[int] = typer.Option(
        None, "--port", "-p", help="Server port"
    ),
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="Logging level"
    ),
    debug: bool = typer.Option(
        False, "--debug", help="Enable debug mode"
    )
) -> None:
    """Start the monitor server."""
    try:
        config = ConfigLoader().load_config(config_file)
    except (OSError, ValueError) as e:
        typer.echo(f"Error loading configuration: {e}", err=True)
        raise typer.Exit(code=1)

    if host:
        config.server.host = host
    if port:
        config.server.port = port
    if log_level:
        config.logging.level = log_level.upper()
    if debug:
        config.debug = True
        config.logging.level = "DEBUG"

    setup_logging(config.logging)

    logger.info(f"Starting {config.name} v{config.version}")
    logger.info(f"Environment: {config.environment}")
    logger.info(f"Debug mode: {config.debug}")

    try:
        asyncio.run(run_application(config))
    except KeyboardInterrupt:
        logger.info("Application interrupted by user")
    except Exception as e:
        logger.error(f"Application failed: {e}")
        raise typer.Exit(code=1)


@cli.command()
def dev(
    config_file: Optional[str] = typer.Option(
        None, "--config", "-c",
        help="Configuration file path (default: ./config.yaml when present)"
    ),
    host: str = typer.Option(
        "127.0.0.1", "--host", help="Server host address"
    ),
    port: int = typer.Option(
        8080, "--port", "-p", help="Server port"
    ),
    reload: bool = typer.Option(
        True, "--reload/--no-reload", help="Enable auto-reload"
    )
) -> None:
    """Start the server in development mode with auto-reload."""
    if config_file:
        # The reloaded app is built in a fresh process, so the path travels by environment
        os.environ[CONFIG_FILE_ENV] = str(Path(config_file).resolve())

    uvicorn.run(
        "monitor_server.presentation.api.app:create_app_from_config",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        reload_dirs=["monitor_server"],
        log_level="debug",
    )


@cli.command()
def init_config(
    output: str = typer.Option(
        "config.yaml", "--output", "-o", help="Output configuration file"
    ),
    format: str = typer.Option(
        "yaml", "--format", "-f", help="Configuration format (yaml/json)"
    )
) -> None:
    """Generate a default configuration file."""
    try:
        ConfigLoader().save_config(ApplicationConfig(), output, format)
    except (OSError, ValueError) as e:
        typer.echo(f"Error saving configuration: {e}", err=True)
        raise typer.Exit(code=1)

    typer.echo(f"Default configuration saved to {output}")


@cli.command()
def validate_config(
    config_file: str = typer.Argument(..., help="Configuration file to validate")
) -> None:
    """Validate a configuration file."""
    try:
        config = ConfigLoader().load_config(config_file)
    except (OSError, ValueError) as e:
        typer.echo(f"Configuration validation failed: {e}", err=True)
        raise typer.Exit(code=1)

    typer.echo(f"Configuration file {config_file} is valid")
    typer.echo(f"Application: {config.name} v{config.version}")
    typer.echo(f"Environment: {config.environment}")


@cli.command()
def health_check(
    host: str = typer.Option("localhost", "--host", help="Server host"),
    port: int = typer.Option(8080, "--port", help="Server port"),
    timeout: float = typer.Option(10.0, "--timeout", help="Request timeout")
) -> None:
    """Check the health of a running server."""

    async def check_health() -> bool:
        url = f"http://{host}:{port}/health/"
        timeout_config = aiohttp.ClientTimeout(total=timeout)

        try:
            async with aiohttp.ClientSession(timeout=timeout_config) as session:
                async with session.get(url) as response:
                    if response.status != 200:
                        typer.echo(f"Server returned status {response.status}")
                        return False
                    data = await response.json()
                    typer.echo(f"Server is healthy: {data.get('status', 'unknown')}")
                    return True
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            typer.echo(f"Health check failed: {e}")
            return False

    if not asyncio.run(check_health()):
        raise typer.Exit(code=1)


async def run_application(config: ApplicationConfig) -> None:
    """
    Build the services and serve the API until shutdown.

    The app lifespan starts the services before the first request and
    stops them after uvicorn has finished shutting down.

    Args:
        config: Application configuration
    """
    container = Container()
    startup = ApplicationStartup(container)
    app = create_app(container, config, startup)

    server_config = uvicorn.Config(
        app=app,
        host=config.server.host,
        port=config.server.port,
        log_level=_UVICORN_LOG_LEVELS.get(config.logging.level, config.logging.level.lower()),
        access_log=False,
        log_config=None,
    )

    # uvicorn installs its own SIGINT/SIGTERM handlers for graceful shutdown
    await uvicorn.Server(server_config).serve()


def main() -> None:
    """Main entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
