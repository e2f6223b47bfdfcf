"""
Action dispatch: gesture or alarm -> external side effect.

For a gesture the dispatcher looks up the direction's settings and either
posts the preset's system-control / key-combo event or replays the recorded
shortcut, always as a key-down immediately followed by a key-up. For a
Wake Me alarm it only plays the configured sound.

Failures never propagate. Each call returns a DispatchOutcome and the last
one is kept for the presentation layer:
- DISABLED: direction switched off, nothing posted
- NOTHING_RECORDED: shortcut mode without a recording
- PERMISSION_DENIED: the OS does not trust us to post input; skipped
- FAILED: the backend could not build the event (logged, not retried)
"""

import logging
from enum import Enum
from typing import Callable, Optional

from airmove.core.audio.sound_player import SoundPlayer
from airmove.core.errors import EventSynthesisError
from airmove.core.imu.orientation_sample import GestureDirection
from airmove.core.input.event_poster import EventPoster
from airmove.core.input.key_codes import KeyComboAction, SystemControlAction, preset_target
from airmove.core.input.permissions import PermissionChecker
from airmove.utils.config_sections import ActionMode, DirectionSettings, WakeMeConfig

log = logging.getLogger(__name__)


class DispatchOutcome(Enum):
    DISPATCHED = "dispatched"
    DISABLED = "disabled"
    NOTHING_RECORDED = "nothing_recorded"
    PERMISSION_DENIED = "permission_denied"
    FAILED = "failed"


class ActionDispatcher:
    """Maps gestures to posted input events and alarms to sounds."""

    def __init__(
        self,
        direction_settings: Callable[[GestureDirection], DirectionSettings],
        wake_me_config: Callable[[], WakeMeConfig],
        event_poster: EventPoster,
        sound_player: SoundPlayer,
        permission_checker: PermissionChecker,
    ) -> None:
        self.direction_settings = direction_settings
        self.wake_me_config = wake_me_config
        self.event_poster = event_poster
        self.sound_player = sound_player
        self.permission_checker = permission_checker

        self.last_outcome: Optional[DispatchOutcome] = None
        self.is_permission_granted = permission_checker.is_trusted()

    @property
    def nothing_recorded(self) -> bool:
        return self.last_outcome is DispatchOutcome.NOTHING_RECORDED

    def refresh_permission(self) -> bool:
        self.is_permission_granted = self.permission_checker.is_trusted()
        return self.is_permission_granted

    def dispatch(self, direction: GestureDirection) -> DispatchOutcome:
        outcome = self._dispatch(direction)
        self.last_outcome = outcome
        log.info("Dispatch %s -> %s", direction.value, outcome.value)
        return outcome

    def _dispatch(self, direction: GestureDirection) -> DispatchOutcome:
        settings = self.direction_settings(direction)
        if not settings.is_enabled:
            return DispatchOutcome.DISABLED

        if settings.mode is ActionMode.SHORTCUT and settings.shortcut is None:
            log.info("No shortcut recorded for %s", direction.value)
            return DispatchOutcome.NOTHING_RECORDED

        if not self.refresh_permission():
            log.warning("Accessibility permission missing, skipping %s", direction.value)
            return DispatchOutcome.PERMISSION_DENIED

        try:
            if settings.mode is ActionMode.SHORTCUT:
                shortcut = settings.shortcut
                self._post_key_pair(shortcut.key_code, shortcut.modifier_mask)
                log.debug("Replayed shortcut %s", shortcut.display_string)
            else:
                target = preset_target(settings.preset)
                if isinstance(target, SystemControlAction):
                    self._post_system_pair(target.code)
                elif isinstance(target, KeyComboAction):
                    self._post_key_pair(target.key_code, target.modifier_mask)
                log.debug("Triggered preset %s", settings.preset.value)
        except EventSynthesisError as exc:
            log.warning("Event synthesis failed for %s: %s", direction.value, exc)
            return DispatchOutcome.FAILED
        return DispatchOutcome.DISPATCHED

    def _post_key_pair(self, key_code: int, modifier_mask: int) -> None:
        self.event_poster.post_key(key_code, modifier_mask, True)
        self.event_poster.post_key(key_code, modifier_mask, False)

    def _post_system_pair(self, code: int) -> None:
        self.event_poster.post_system_control(code, True)
        self.event_poster.post_system_control(code, False)

    def dispatch_alarm(self) -> DispatchOutcome:
        """Play the wake-me sound; the player handles its own fallback."""
        sound_id = self.wake_me_config().sound_id
        try:
            self.sound_player.play(sound_id)
        except RuntimeError as exc:
            # Thread start can fail at interpreter shutdown
            log.warning("Could not start alarm sound '%s': %s", sound_id, exc)
            return DispatchOutcome.FAILED
        return DispatchOutcome.DISPATCHED
