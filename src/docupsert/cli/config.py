"""Configuration management CLI commands."""

import typer
from rich.syntax import Syntax

from ..core.config import DocUpsertConfig
from ..errors import ConfigError
from .display import console, error, info, success, warning

app = typer.Typer(help="Manage docupsert configuration")


@app.command()
def init(
    backend: str = typer.Option("local", "--backend", "-b", help="Store backend: local, azure, auto, memory"),
    path: str = typer.Option(None, "--path", help="Base directory for the local store"),
    container: str = typer.Option("documents", "--container", help="Azure blob container"),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing config file"),
):
    """Initialize configuration file.

    Creates ~/.docupsert/config.yaml (or $DOCUPSERT_CONFIG) with defaults.
    """
    config_path = DocUpsertConfig.config_path()
    if config_path.exists() and not force:
        overwrite = typer.confirm(f"{config_path} already exists. Overwrite?", default=False)
        if not overwrite:
            warning("Configuration not saved")
            raise typer.Exit(0)

    store = {"backend": backend, "container": container}
    if path:
        store["path"] = path
    config = DocUpsertConfig(store=store)
    config.save()

    # Reset the cached instance since we created a new config
    DocUpsertConfig.reset()

    success(f"Configuration saved to {config_path}")


@app.command()
def show():
    """Display current configuration."""
    config_path = DocUpsertConfig.config_path()
    if not config_path.exists():
        info(f"[dim]No config file at {config_path}, showing defaults[/dim]")

    try:
        config = DocUpsertConfig.get_instance()
    except ConfigError as e:
        error(str(e))
        raise typer.Exit(1)
    console.print(Syntax(config.to_yaml_string(), "yaml"))
