"""Local configuration models for the SCAR client."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(slots=True)
class ServerSettings:
    """Connection settings for the sync service."""

    base_url: str = "http://127.0.0.1:3000"
    owner_id: str = "owner"
    verify_ssl: bool = True
    timeout_seconds: float = 30.0


@dataclass(slots=True)
class VoiceSettings:
    """Trigger phrases and speech parameters."""

    wake_word: str = "scar"
    stop_phrase: str = "stop"
    text_mode_phrase: str = "write it"
    reminder_phrase: str = "remind me"
    preferred_voice: str = "Male"
    speech_rate: float = 0.9
    speech_pitch: float = 0.8
    history_limit: int = 100
    use_remote_responder: bool = False


@dataclass(slots=True)
class SyncSettings:
    """Behaviour of the cloud sync."""

    online: bool = True
    adopt_remote_echo: bool = False


@dataclass(slots=True)
class ToggleSettings:
    """Feature toggles exposed in the menu."""

    live_screen: bool = False
    live_screen_seconds: float = 5.0
    bluetooth: bool = False


@dataclass(slots=True)
class AppSettings:
    """Full set of settings for the client."""

    server: ServerSettings = field(default_factory=ServerSettings)
    voice: VoiceSettings = field(default_factory=VoiceSettings)
    sync: SyncSettings = field(default_factory=SyncSettings)
    toggles: ToggleSettings = field(default_factory=ToggleSettings)
