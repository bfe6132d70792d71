from __future__ import annotations

import json

import typer
import uvicorn

from scar_server.core.config import Settings, get_settings
from scar_server.core.userdata import UserDataStore


cli = typer.Typer(name="scar-server", help="SCAR sync service")
config_cli = typer.Typer(help="Configuration")
data_cli = typer.Typer(help="Stored user data")

cli.add_typer(config_cli, name="config")
cli.add_typer(data_cli, name="data")


@cli.command()
def serve() -> None:
    """Start the FastAPI server."""
    settings = get_settings()
    uvicorn.run("scar_server.main:app", host=settings.host, port=settings.port)


@config_cli.command("print")
def config_print() -> None:
    s = Settings()
    typer.echo(json.dumps(s.model_dump(), ensure_ascii=False, default=str))


@data_cli.command("show")
def data_show() -> None:
    """Print the stored memory, goals and reminders."""
    settings = get_settings()
    store = UserDataStore(settings.data_file, owner_id=settings.owner_id)
    typer.echo(json.dumps(store.snapshot(), ensure_ascii=False, indent=2))


if __name__ == "__main__":
    cli()
