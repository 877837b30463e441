"""Sound catalog and default-sound resolution for alarms and timers."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


SILENT = "silent"

_DEFAULT_CUSTOM_DIR = Path.home() / ".local" / "share" / "clockwork" / "sounds"
_ALLOWED_EXTENSIONS = {".wav", ".ogg", ".mp3"}


@dataclass(frozen=True)
class SoundInfo:
    title: str
    uri: str

    @property
    def is_silent(self) -> bool:
        return self.uri == SILENT


SILENT_SOUND = SoundInfo(title="Silent", uri=SILENT)


@dataclass(frozen=True)
class SoundSettings:
    default_alarm_title: str | None
    default_alarm_uri: str | None
    custom_dir: Path = _DEFAULT_CUSTOM_DIR

    @classmethod
    def with_defaults(
        cls,
        *,
        custom_dir: Path | None = None,
        default_alarm_title: str | None = None,
        default_alarm_uri: str | None = None,
    ) -> SoundSettings:
        return cls(
            default_alarm_title=default_alarm_title,
            default_alarm_uri=default_alarm_uri,
            custom_dir=custom_dir or _DEFAULT_CUSTOM_DIR,
        )


class SoundLibrary:
    """Resolve the sounds available on this device and the default alarm sound."""

    def __init__(self, settings: SoundSettings | None = None) -> None:
        self.settings = settings or SoundSettings.with_defaults()
        self.custom_dir = self.settings.custom_dir

    def custom_sounds(self) -> list[SoundInfo]:
        sounds: list[SoundInfo] = []
        if not self.custom_dir.exists():
            return sounds
        for candidate in sorted(self.custom_dir.glob("*")):
            if not candidate.is_file():
                continue
            if candidate.suffix.lower() not in _ALLOWED_EXTENSIONS:
                continue
            sounds.append(
                SoundInfo(
                    title=candidate.stem.replace("_", " ").replace("-", " ").title(),
                    uri=candidate.resolve().as_uri(),
                )
            )
        return sounds

    def default_alarm_sound(self) -> SoundInfo:
        """Configured default, else the first custom sound, else silence."""
        if self.settings.default_alarm_uri:
            title = self.settings.default_alarm_title or Path(self.settings.default_alarm_uri).stem or "Alarm"
            return SoundInfo(title=title, uri=self.settings.default_alarm_uri)
        custom = self.custom_sounds()
        if custom:
            return custom[0]
        return SILENT_SOUND
