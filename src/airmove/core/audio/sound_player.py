import logging
import shutil
import subprocess
import threading
import time
from pathlib import Path
from typing import Optional, Sequence

import numpy as np

from airmove.utils.config import Config

log = logging.getLogger(__name__)

try:
    import sounddevice as sd
except (ImportError, OSError) as exc:
    # sounddevice raises OSError when the PortAudio library is missing
    sd = None
    log.warning("sounddevice unavailable (%s); fallback beep disabled", exc)


class SoundPlayer:
    """Fire-and-forget alert sounds with a generated beep as fallback."""

    def __init__(
        self,
        sound_dirs: Sequence[str] = Config.SYSTEM_SOUND_DIRS,
        extensions: Sequence[str] = Config.SYSTEM_SOUND_EXTENSIONS,
    ) -> None:
        self.sound_dirs = [Path(d) for d in sound_dirs]
        self.extensions = tuple(extensions)
        self.player_command = self._find_player()

        self.play_stats = {
            'files_played': 0,
            'beeps_played': 0,
            'failures': 0,
        }

    def _find_player(self) -> Optional[str]:
        for command in Config.SOUND_PLAYER_COMMANDS:
            if shutil.which(command):
                log.info("SoundPlayer: using '%s' for alert sounds", command)
                return command
        log.info("SoundPlayer: no command-line player found, beeps only")
        return None

    def resolve(self, name: str) -> Optional[Path]:
        """Map a sound id ("Glass") or a path to an existing sound file."""
        if not name:
            return None
        candidate = Path(name).expanduser()
        if candidate.suffix and candidate.is_file():
            return candidate
        for directory in self.sound_dirs:
            for extension in self.extensions:
                path = directory / f"{name}{extension}"
                if path.is_file():
                    return path
        return None

    def play(self, name: str) -> None:
        """Play the named sound on a background thread; never raises."""
        threading.Thread(target=self._play_blocking, args=(name,), daemon=True).start()

    def _play_blocking(self, name: str) -> None:
        path = self.resolve(name)
        try:
            if path is not None and self.player_command:
                subprocess.run([self.player_command, str(path)], check=True)
                self.play_stats['files_played'] += 1
                return
            log.info("Sound '%s' not found, using fallback beep", name)
        except (OSError, subprocess.CalledProcessError) as exc:
            log.warning("Failed to play '%s' (%s), using fallback beep", name, exc)
        self.beep()

    def beep(self) -> None:
        """Short beep pattern; silent only when no audio output exists at all."""
        if sd is None:
            self.play_stats['failures'] += 1
            log.warning("Cannot play beep: sounddevice not installed")
            # Terminal bell as the last resort
            print("\a", end="", flush=True)
            return

        tone = self.generate_tone(Config.BEEP_FREQUENCY, Config.BEEP_DURATION)
        try:
            for i in range(Config.BEEP_COUNT):
                sd.play(tone, samplerate=Config.BEEP_SAMPLE_RATE, blocking=True)
                if i < Config.BEEP_COUNT - 1:
                    time.sleep(Config.BEEP_GAP)  # Background thread, sleeping is fine
            self.play_stats['beeps_played'] += 1
        except Exception as exc:  # PortAudio raises its own error types
            self.play_stats['failures'] += 1
            log.warning("Failed to play beep with sounddevice: %s", exc)

    @staticmethod
    def generate_tone(frequency: float, duration: float, volume: float = Config.BEEP_VOLUME) -> np.ndarray:
        sample_rate = Config.BEEP_SAMPLE_RATE
        t = np.linspace(0, duration, int(sample_rate * duration), False)
        tone = np.sin(2 * np.pi * frequency * t)

        fade_samples = int(sample_rate * 0.01)
        if len(tone) > fade_samples * 2:
            tone[:fade_samples] *= np.linspace(0, 1, fade_samples)
            tone[-fade_samples:] *= np.linspace(1, 0, fade_samples)
        return (tone * volume).astype(np.float32)

    def get_play_stats(self) -> dict:
        return dict(self.play_stats)
