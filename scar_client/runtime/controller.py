"""Orchestrates recognition, routing, speech and the user collections."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Optional, Sequence

from ..audio.recognizer import Recognizer, RecognizerAlreadyStarted, RecognizerPermissionDenied
from ..audio.screen import ScreenCapture, ScreenCaptureError
from ..audio.tts import SpeechChannel, SpeechConfig, Synthesizer
from ..services.schemas import Goal, RecognitionResult, Reminder, goals_from_payload, reminders_from_payload
from ..services.sync import SyncReconciler
from ..state.app_state import AppState
from ..state.storage import CollectionStore
from .router import CommandRouter, RouteOutcome
from .session import (
    MIC_DENIED_NOTICE,
    CancelSpeech,
    Dispatch,
    Effect,
    Event,
    FinalUtterance,
    RecognitionErrorKind,
    RecognizerEnded,
    RecognizerFailed,
    RecordHistory,
    ResponseReady,
    RestartCapture,
    SetStatus,
    ShowNotice,
    ShowText,
    Speak,
    SpeechEnded,
    StartCapture,
    StartRequested,
    StopCapture,
    Triggers,
    stop,
    transition,
)
from .transcript import normalize

logger = logging.getLogger(__name__)

TextCallback = Callable[[str], None]

UNSUPPORTED_NOTICE = "Speech recognition is not supported in this environment."
SCREEN_UNSUPPORTED_NOTICE = "Screen capture not supported in this environment."
LIVE_SCREEN_ON = "Live screen mode active. Analyzing..."
LIVE_SCREEN_OFF = "Live screen mode deactivated."


class ScarAssistant:
    """Single-threaded shell around the session state machine.

    Recognizer callbacks, routing and effects for one utterance all run on
    the caller's thread (the asyncio loop in practice) before the next
    callback is handled. Sync pushes are fire-and-forget tasks, and so are
    replies from an asynchronous responder, which are delivered when they
    arrive.
    """

    def __init__(
        self,
        state: AppState,
        *,
        recognizer: Optional[Recognizer],
        synthesizer: Synthesizer,
        store: CollectionStore,
        reconciler: Optional[SyncReconciler] = None,
        router: Optional[CommandRouter] = None,
        screen: Optional[ScreenCapture] = None,
        on_transcript: Optional[TextCallback] = None,
        on_display: Optional[TextCallback] = None,
        on_status: Optional[TextCallback] = None,
        on_notice: Optional[TextCallback] = None,
    ) -> None:
        self.state = state
        voice = state.settings.voice
        self.triggers = Triggers(wake_word=voice.wake_word, stop_phrase=voice.stop_phrase)
        self.router = router or CommandRouter(
            text_mode_phrase=voice.text_mode_phrase,
            reminder_phrase=voice.reminder_phrase,
        )
        self.speech = SpeechChannel(
            synthesizer,
            SpeechConfig(preferred_voice=voice.preferred_voice, rate=voice.speech_rate, pitch=voice.speech_pitch),
            on_finished=self._on_speech_finished,
        )
        self.store = store
        self.reconciler = reconciler
        if reconciler is not None and reconciler.on_echo is None and state.settings.sync.adopt_remote_echo:
            reconciler.on_echo = self._adopt_echo
        self.screen = screen
        self._live_screen_timer: Optional[asyncio.TimerHandle] = None
        self._responses: set[asyncio.Task[None]] = set()

        self._on_transcript = on_transcript
        self._on_display = on_display
        self._on_status = on_status
        self._on_notice = on_notice

        self.recognizer = recognizer
        if recognizer is None:
            self._notify(UNSUPPORTED_NOTICE)
        else:
            recognizer.bind(self.handle_results, self.handle_end, self.handle_error)

    # ------------------------------------------------------------------ #
    # Session lifecycle
    # ------------------------------------------------------------------ #
    def start_listening(self) -> None:
        """Begin capture; stays idle if recognition is unavailable or refused."""
        if self.recognizer is None:
            self._notify(UNSUPPORTED_NOTICE)
            return
        previous = self.state.session
        try:
            self._feed(StartRequested())
        except RecognizerPermissionDenied:
            self.state.session = previous
            self._notify(MIC_DENIED_NOTICE)

    def stop_listening(self) -> None:
        new_state, effects = stop(self.state.session)
        self.state.session = new_state
        self._apply(effects)

    def handle_results(self, result_index: int, results: Sequence[RecognitionResult]) -> None:
        transcript = normalize(result_index, results)
        if self._on_transcript:
            self._on_transcript(transcript.display)
        if transcript.final:
            logger.info("Command: %s", transcript.final)
            self._feed(FinalUtterance(transcript.final))

    def handle_end(self) -> None:
        logger.debug("Recognition ended, restarting if listening...")
        self._feed(RecognizerEnded())

    def handle_error(self, kind: str) -> None:
        error = RecognitionErrorKind.parse(kind)
        logger.error("Recognition error: %s", error.value)
        self._feed(RecognizerFailed(error))

    def shutdown(self) -> None:
        self.stop_listening()
        self.set_live_screen(False)

    # ------------------------------------------------------------------ #
    # Collections
    # ------------------------------------------------------------------ #
    def add_goal(self, text: str) -> Goal:
        text = text.strip()
        if not text:
            raise ValueError("goal text is empty")
        goal = self.state.collections.add_goal(text)
        self._commit()
        return goal

    def toggle_goal(self, index: int) -> Goal:
        goal = self.state.collections.toggle_goal(index)
        self._commit()
        return goal

    def add_memory(self, note: str) -> None:
        self.state.collections.add_memory(note)
        self._commit()

    def create_reminder(self, text: str) -> Reminder:
        reminder = self.state.collections.add_reminder(text)
        logger.info("Reminder set: %s (%s)", reminder.text, reminder.id)
        self._commit()
        return reminder

    def recent_history(self, limit: int = 5) -> list[str]:
        history = list(self.state.collections.history)
        return history[-limit:] if limit > 0 else []

    def sync(self) -> Optional[asyncio.Task[bool]]:
        if self.reconciler is None:
            return None
        return self.reconciler.sync(self.state.collections)

    async def drain(self) -> None:
        """Wait for pending remote replies, then for the sync pushes in flight."""
        while self._responses:
            pending = list(self._responses)
            results = await asyncio.gather(*pending, return_exceptions=True)
            self._responses.difference_update(pending)
            for result in results:
                if isinstance(result, Exception):
                    logger.error("Response task crashed", exc_info=result)
        if self.reconciler is not None:
            await self.reconciler.drain()

    # ------------------------------------------------------------------ #
    # Toggles
    # ------------------------------------------------------------------ #
    def set_online(self, enabled: bool) -> None:
        self.state.settings.sync.online = enabled
        if enabled:
            self.sync()

    def set_bluetooth(self, enabled: bool) -> None:
        self.state.bluetooth = enabled
        logger.info("Bluetooth mode: %s", enabled)

    def set_live_screen(self, enabled: bool) -> None:
        if not enabled:
            self._stop_live_screen()
            return
        if self.screen is None:
            self._notify(SCREEN_UNSUPPORTED_NOTICE)
            self.state.live_screen = False
            return
        try:
            self.screen.start()
        except ScreenCaptureError as exc:
            logger.error("Screen capture error: %s", exc)
            self.state.live_screen = False
            return
        self.state.live_screen = True
        self._display(LIVE_SCREEN_ON)
        delay = self.state.settings.toggles.live_screen_seconds
        self._live_screen_timer = asyncio.get_running_loop().call_later(delay, self._stop_live_screen)

    def _stop_live_screen(self) -> None:
        if self._live_screen_timer is not None:
            self._live_screen_timer.cancel()
            self._live_screen_timer = None
        if not self.state.live_screen:
            return
        if self.screen is not None:
            self.screen.stop()
        self.state.live_screen = False
        self._display(LIVE_SCREEN_OFF)

    # ------------------------------------------------------------------ #
    # State machine plumbing
    # ------------------------------------------------------------------ #
    def _feed(self, event: Event) -> None:
        # Commit first: effects may feed follow-up events (speech completion).
        new_state, effects = transition(self.state.session, event, self.triggers)
        self.state.session = new_state
        self._apply(effects)

    def _apply(self, effects: list[Effect]) -> None:
        for effect in effects:
            if isinstance(effect, RecordHistory):
                self.state.collections.record_history(effect.text)
                self.store.save(self.state.collections)
            elif isinstance(effect, StartCapture):
                self._start_capture()
            elif isinstance(effect, RestartCapture):
                self._restart_capture()
            elif isinstance(effect, StopCapture):
                if self.recognizer is not None:
                    self.recognizer.stop()
            elif isinstance(effect, CancelSpeech):
                self.speech.cancel()
            elif isinstance(effect, Speak):
                self.speech.speak(effect.text)
            elif isinstance(effect, ShowText):
                self._display(effect.text)
            elif isinstance(effect, SetStatus):
                if self._on_status:
                    self._on_status(effect.text)
            elif isinstance(effect, ShowNotice):
                self._notify(effect.text)
            elif isinstance(effect, Dispatch):
                self._dispatch(effect.command)

    def _start_capture(self) -> None:
        assert self.recognizer is not None
        try:
            self.recognizer.start()
        except RecognizerAlreadyStarted:
            logger.warning("Recognition already started")

    def _restart_capture(self) -> None:
        if self.recognizer is None:
            return
        try:
            self.recognizer.start()
        except RecognizerAlreadyStarted:
            logger.debug("Recognizer still active, restart skipped")
        except RecognizerPermissionDenied:
            self._notify(MIC_DENIED_NOTICE)

    def _dispatch(self, command: str) -> None:
        if not self.router.asynchronous:
            self._deliver(self.router.route(command))
            return
        task = asyncio.get_running_loop().create_task(self._respond(command))
        self._responses.add(task)
        task.add_done_callback(self._responses.discard)

    async def _respond(self, command: str) -> None:
        outcome = await self.router.aroute(command)
        if not self.state.session.listening:
            # Stopped while the reply was pending: keep the reminder, drop the reply.
            logger.info("Session stopped, reply to %r dropped", command)
            if outcome.wants_reminder:
                self.create_reminder(outcome.command.raw)
            return
        self._deliver(outcome)

    def _deliver(self, outcome: RouteOutcome) -> None:
        self.state.language = outcome.command.language
        self._feed(ResponseReady(outcome.response, outcome.voiced))
        if outcome.wants_reminder:
            self.create_reminder(outcome.command.raw)

    def _on_speech_finished(self) -> None:
        self._feed(SpeechEnded())

    def _commit(self) -> None:
        self.store.save(self.state.collections)
        self.sync()

    def _adopt_echo(self, merged: dict[str, Any]) -> None:
        """Replace the synced collections with the copy the service echoed."""
        collections = self.state.collections
        memory = merged.get("memory")
        goals = merged.get("goals")
        reminders = merged.get("reminders")
        collections.replace(
            memory=[str(item) for item in memory] if isinstance(memory, list) else None,
            goals=goals_from_payload(goals) if isinstance(goals, list) else None,
            reminders=reminders_from_payload(reminders) if isinstance(reminders, list) else None,
        )
        self.store.save(collections)

    def _display(self, text: str) -> None:
        if self._on_display:
            self._on_display(text)

    def _notify(self, text: str) -> None:
        logger.warning(text)
        if self._on_notice:
            self._on_notice(text)
