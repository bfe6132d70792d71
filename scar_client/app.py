"""Assembly of the assistant and the console session."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Callable, Optional

import httpx

from .audio.recognizer import ConsoleRecognizer, Recognizer
from .audio.screen import ScreenCapture
from .audio.tts import ConsoleSynthesizer, Synthesizer
from .config.paths import data_dir
from .config.settings import AppSettings
from .config.store import load_settings
from .runtime.controller import ScarAssistant
from .runtime.responder import RemoteResponder, RuleResponder
from .runtime.router import CommandRouter
from .services.api import ScarAPI
from .services.sync import SyncReconciler
from .state.app_state import AppState
from .state.storage import CollectionStore, JsonFileStorage

Writer = Callable[[str], None]


def build_assistant(
    settings: AppSettings,
    *,
    recognizer: Optional[Recognizer],
    synthesizer: Synthesizer,
    writer: Writer,
    screen: Optional[ScreenCapture] = None,
    data_root: Optional[Path] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> ScarAssistant:
    """Load the collections and wire every collaborator of the assistant."""
    voice = settings.voice
    store = CollectionStore(JsonFileStorage(data_root or data_dir()), history_limit=voice.history_limit)
    state = AppState(settings=settings, collections=store.load())
    reconciler = SyncReconciler(ScarAPI(settings.server, transport=transport), settings)
    responder = RemoteResponder(settings.server) if voice.use_remote_responder else RuleResponder()
    router = CommandRouter(
        responder,
        text_mode_phrase=voice.text_mode_phrase,
        reminder_phrase=voice.reminder_phrase,
    )
    return ScarAssistant(
        state,
        recognizer=recognizer,
        synthesizer=synthesizer,
        store=store,
        reconciler=reconciler,
        router=router,
        screen=screen,
        on_display=writer,
        on_status=lambda text: writer(f"[status] {text}"),
        on_notice=lambda text: writer(f"[notice] {text}"),
    )


async def console_session(
    settings: AppSettings,
    *,
    writer: Writer = print,
    reader: Callable[[], str] = lambda: input("> "),
    data_root: Optional[Path] = None,
) -> ScarAssistant:
    """Run a session where typed lines stand in for recognized speech."""
    loop = asyncio.get_running_loop()
    recognizer = ConsoleRecognizer()
    synthesizer = ConsoleSynthesizer(writer, schedule=loop.call_soon)
    assistant = build_assistant(
        settings,
        recognizer=recognizer,
        synthesizer=synthesizer,
        writer=writer,
        data_root=data_root,
    )
    assistant.start_listening()
    while recognizer.active:
        try:
            line = await loop.run_in_executor(None, reader)
        except EOFError:
            assistant.stop_listening()
            break
        recognizer.feed(line)
        # Let speech completions and sync pushes progress between lines.
        await asyncio.sleep(0)
    await close_assistant(assistant)
    return assistant


async def close_assistant(assistant: ScarAssistant) -> None:
    """Wait for pending pushes, then release the HTTP clients."""
    await assistant.drain()
    if assistant.reconciler is not None:
        await assistant.reconciler.api.close()
    responder = assistant.router.responder
    if isinstance(responder, RemoteResponder):
        await responder.close()


def run(settings: Optional[AppSettings] = None) -> None:
    """Start the console voice session."""
    asyncio.run(console_session(settings or load_settings()))
