"""Global hotkey that toggles listening without focusing the app."""

import logging
from typing import Callable

from airmove.core.errors import InputHookError
from airmove.core.input.event_poster import keyboard
from airmove.utils.config import Config

log = logging.getLogger(__name__)


class HotkeyManager:
    def __init__(self, hotkey: str = Config.TOGGLE_HOTKEY) -> None:
        self.hotkey = hotkey
        self.listener = None

    def register(self, handler: Callable[[], None]) -> None:
        if keyboard is None:
            raise InputHookError("pynput keyboard backend is not available")
        self.unregister()
        self.listener = keyboard.GlobalHotKeys({self.hotkey: handler})
        self.listener.start()
        log.info("Registered toggle hotkey %s", self.hotkey)

    def unregister(self) -> None:
        listener, self.listener = self.listener, None
        if listener is not None:
            listener.stop()
