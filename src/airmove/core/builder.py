"""
Builder that creates every AirMove dependency in one place.

Responsibilities:
- Pick OS backends (event poster, permissions, keyboard hook) for the host
- Load persisted settings
- Inject everything into a MotionController
"""

import logging
import sys
from typing import Optional

from airmove.core.audio.sound_player import SoundPlayer
from airmove.core.hardware.sampler import LineStreamSampler, SamplerService, ScriptedSampler
from airmove.core.input.event_poster import create_event_poster
from airmove.core.input.permissions import PermissionChecker, StaticPermissionChecker
from airmove.core.input.shortcut_recorder import PynputKeyboardHook
from airmove.core.motion_controller import MotionController
from airmove.utils.settings_store import JsonSettingsStore, SettingsStore, SettingsTable

log = logging.getLogger(__name__)


class Builder:
    def __init__(self, dry_run: bool = False, sample_source: str = "synthetic") -> None:
        if sample_source not in ("synthetic", "stdin"):
            raise ValueError(f"Unknown sample source: {sample_source}")
        self.dry_run = dry_run
        self.sample_source = sample_source

    def build_settings(self, store: Optional[SettingsStore] = None) -> SettingsTable:
        return SettingsTable(store or JsonSettingsStore())

    def build_permission_checker(self):
        if self.dry_run:
            return StaticPermissionChecker(trusted=True)
        return PermissionChecker()

    def build_sampler(self) -> SamplerService:
        # Headphone motion is read by an external helper that pipes samples in
        if self.sample_source == "stdin":
            return LineStreamSampler(sys.stdin)
        return ScriptedSampler(mode="synthetic")

    def build_controller(
        self,
        sampler: Optional[SamplerService] = None,
        store: Optional[SettingsStore] = None,
    ) -> MotionController:
        log.info("Building controller (dry_run=%s)", self.dry_run)
        return MotionController(
            sampler=sampler or self.build_sampler(),
            settings=self.build_settings(store),
            event_poster=create_event_poster(dry_run=self.dry_run),
            sound_player=SoundPlayer(),
            permission_checker=self.build_permission_checker(),
            input_hook=PynputKeyboardHook(),
        )
