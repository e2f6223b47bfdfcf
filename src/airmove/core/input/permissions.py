"""
Accessibility permission check for synthetic input.

macOS silently drops posted events unless the process is trusted for
Accessibility. The check is cheap, so the dispatcher runs it before every
dispatch and the presentation layer polls ``is_trusted``.
"""

import logging
import subprocess
from typing import Optional

from airmove.utils.config import PLATFORM, Config

log = logging.getLogger(__name__)


class PermissionChecker:
    """Reports whether this process may synthesize input events."""

    def __init__(self, platform_name: Optional[str] = None) -> None:
        self.platform_name = platform_name or PLATFORM
        self._ax_is_trusted = None
        if self.platform_name == "darwin":
            from ApplicationServices import AXIsProcessTrusted

            self._ax_is_trusted = AXIsProcessTrusted

    def is_trusted(self) -> bool:
        if self._ax_is_trusted is None:
            return True
        return bool(self._ax_is_trusted())

    def open_settings(self) -> None:
        """Open the Accessibility pane of System Settings (macOS only)."""
        if self.platform_name != "darwin":
            log.info("No accessibility settings pane on this platform")
            return
        subprocess.Popen(["open", Config.ACCESSIBILITY_SETTINGS_URL])


class StaticPermissionChecker:
    """Fixed answer; used by dry runs and tests."""

    def __init__(self, trusted: bool = True) -> None:
        self.trusted = trusted

    def is_trusted(self) -> bool:
        return self.trusted
