"""Command line interface."""

import asyncio
from pathlib import Path
from typing import Optional

import typer
import uvicorn
from pydantic import ValidationError
from rich.markup import escape

from .._version import __version__
from ..config.manager import ConfigurationManager
from ..di.container import Container
from ..errors import ConfigurationError, HonorerError
from ..http.app import create_app
from ..module.descriptor import is_module
from ..module.factory import ModuleRegistrationConfig, ModuleRegistrationFactory, import_string
from ..routing.router import RecordingRouter
from ..utils.logging import setup_logging
from .console import create_table, get_console, print_error, print_exception

app = typer.Typer(
    name="honorer",
    help="honorer: declarative modules, dependency injection and validated routes",
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
    pretty_exceptions_show_locals=False,
)

console = get_console()

UVICORN_LEVELS = ("critical", "error", "warning", "info", "debug", "trace")


def version_callback(value: bool):
    if value:
        console.print(f"[bold cyan]honorer[/bold cyan] version [green]{__version__}[/green]")
        raise typer.Exit()


@app.callback()
def callback(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-V", help="Enable debug logging"),
):
    """honorer command line tools."""
    setup_logging("DEBUG" if verbose else "WARNING")


def _load_module(target: str) -> type:
    try:
        module_class = import_string(target)
    except (ImportError, AttributeError) as e:
        print_error(f"Cannot import {escape(target)}: {escape(str(e))}")
        raise typer.Exit(1)

    if not is_module(module_class):
        print_error(f"{escape(target)} is not a module; decorate it with @module(...)")
        raise typer.Exit(1)
    return module_class


@app.command()
def routes(
    target: str = typer.Argument(..., help="Module to inspect, as package.module:ModuleClass"),
):
    """List the routes a module graph registers.

    Lifecycle hooks are not run.
    """
    module_class = _load_module(target)

    router = RecordingRouter()
    factory = ModuleRegistrationFactory(router, Container(), ModuleRegistrationConfig(auto_init=False))
    try:
        asyncio.run(factory.register_module(module_class))
    except HonorerError as e:
        print_exception(e, title="Registration failed")
        raise typer.Exit(1)

    table = create_table(f"Routes of {module_class.__name__}", ["Method", "Path", "Handler", "Chain length"])
    for registration in factory.composer.registrations:
        table.add_row(
            registration.method,
            escape(registration.path),
            f"{registration.controller.__name__}.{registration.handler_name}",
            str(len(registration.handlers)),
        )
    console.print(table)
    console.print(
        f"{len(factory.composer.registrations)} route(s) in "
        f"{len(factory.get_registered_modules())} module(s)"
    )


@app.command()
def serve(
    target: str = typer.Argument(..., help="Root module, as package.module:ModuleClass"),
    host: str = typer.Option("127.0.0.1", "--host", "-h", help="Host to bind to"),
    port: int = typer.Option(8000, "--port", "-p", help="Port to serve on"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Configuration file path"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Override the configured log level"),
):
    """Serve a module graph over HTTP."""
    try:
        settings = ConfigurationManager(command_config_path=config).load_settings()
        if log_level:
            settings = settings.model_copy()
            settings.log_level = log_level
    except (ConfigurationError, ValidationError) as e:
        print_exception(e, title="Configuration error")
        raise typer.Exit(1)

    setup_logging(settings.log_level)
    module_class = _load_module(target)
    application = create_app(settings, modules=[module_class])

    console.print(f"[bold blue]Serving {module_class.__name__} on http://{host}:{port}[/bold blue]")
    uvicorn_level = settings.log_level.lower()
    if uvicorn_level not in UVICORN_LEVELS:
        uvicorn_level = "info"
    uvicorn.run(application, host=host, port=port, log_level=uvicorn_level)


def main():
    app()
