from __future__ import annotations

import asyncio
import inspect
import json
import logging
from typing import Any, Awaitable, Callable, Optional, TypeVar, Union

import typer

from .app import build_assistant, close_assistant, console_session
from .audio.recognizer import ConsoleRecognizer
from .audio.tts import ConsoleSynthesizer
from .config.store import load_settings, save_settings
from .runtime.controller import ScarAssistant
from .services.api import detect_server_status

T = TypeVar("T")

cli = typer.Typer(name="scar", help="SCAR voice assistant")
goal_cli = typer.Typer(help="Goals")
memory_cli = typer.Typer(help="Memory notes")

cli.add_typer(goal_cli, name="goal")
cli.add_typer(memory_cli, name="memory")


@cli.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Log to the console")) -> None:
    logging.basicConfig(level=logging.INFO if verbose else logging.WARNING, format="%(levelname)s %(name)s: %(message)s")


def _with_assistant(action: Callable[[ScarAssistant], Union[T, Awaitable[T]]]) -> T:
    """Run ``action`` on a session built from the saved settings, then flush syncs.

    ``action`` may return an awaitable, which is awaited on the session loop.
    """

    async def _runner() -> T:
        assistant = build_assistant(
            load_settings(),
            recognizer=ConsoleRecognizer(),
            synthesizer=ConsoleSynthesizer(typer.echo),
            writer=typer.echo,
        )
        try:
            result = action(assistant)
            if inspect.isawaitable(result):
                result = await result
            return result
        finally:
            await close_assistant(assistant)

    return asyncio.run(_runner())


def _echo_json(payload: Any) -> None:
    typer.echo(json.dumps(payload, ensure_ascii=False))


@cli.command()
def console() -> None:
    """Type utterances as if spoken; say the stop phrase (or Ctrl-D) to quit."""
    settings = load_settings()
    typer.echo(f"Wake word: '{settings.voice.wake_word}', stop phrase: '{settings.voice.stop_phrase}'")
    asyncio.run(console_session(settings, writer=typer.echo))


@goal_cli.command("add")
def goal_add(text: str) -> None:
    goal = _with_assistant(lambda a: a.add_goal(text))
    _echo_json(goal.to_payload())


@goal_cli.command("toggle")
def goal_toggle(index: int) -> None:
    try:
        goal = _with_assistant(lambda a: a.toggle_goal(index))
    except IndexError:
        typer.echo(f"No goal at index {index}")
        raise typer.Exit(code=1)
    _echo_json(goal.to_payload())


@goal_cli.command("list")
def goal_list() -> None:
    goals = _with_assistant(lambda a: list(a.state.collections.goals))
    for index, goal in enumerate(goals):
        typer.echo(f"{index}. {goal.text} - {'done' if goal.completed else 'pending'}")


@memory_cli.command("add")
def memory_add(note: str) -> None:
    _with_assistant(lambda a: a.add_memory(note))
    typer.echo("Noted.")


@memory_cli.command("list")
def memory_list() -> None:
    notes = _with_assistant(lambda a: list(a.state.collections.memory))
    if not notes:
        typer.echo("No memories yet.")
    for note in notes:
        typer.echo(note)


@cli.command()
def history(limit: int = typer.Option(5, "--limit", help="Number of entries")) -> None:
    """Show the last utterances heard."""
    entries = _with_assistant(lambda a: a.recent_history(limit))
    typer.echo("History:")
    for entry in entries:
        typer.echo(entry)


@cli.command()
def reminders() -> None:
    items = _with_assistant(lambda a: [r.to_payload() for r in a.state.collections.reminders])
    _echo_json({"reminders": items})


async def _push_now(assistant: ScarAssistant) -> Optional[bool]:
    task = assistant.sync()
    if task is None:
        return None
    return await task


@cli.command()
def sync() -> None:
    """Push the collections to the sync service now."""
    accepted = _with_assistant(_push_now)
    if accepted is None:
        typer.echo("offline")
    elif accepted:
        typer.echo("synced")
    else:
        typer.echo("sync failed")
        raise typer.Exit(code=1)


@cli.command()
def online(state: str = typer.Argument(..., help="on|off")) -> None:
    if state not in ("on", "off"):
        typer.echo("Expected 'on' or 'off'")
        raise typer.Exit(code=2)
    settings = load_settings()
    settings.sync.online = state == "on"
    save_settings(settings)
    typer.echo(f"Online sync {state}")


@cli.command()
def status() -> None:
    """Ping the sync service."""
    ok = detect_server_status(load_settings().server)()
    typer.echo("online" if ok else "unreachable")
    if not ok:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    cli()
