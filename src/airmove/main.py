#!/usr/bin/env python3
"""
AirMove command-line entry point.

Modes:
- listen: consume head motion and dispatch the configured actions
- demo: synthetic nods and turns through a dry-run poster (no real input)
- record <direction>: capture a shortcut for one direction and save it
- show-config: print the persisted settings

Flow:
1. Session logging
2. Builder creates sampler, settings, dispatcher backends
3. Listen until Ctrl+C (or the toggle hotkey stops listening)
4. Ordered cleanup
"""

import argparse
import json
import logging
import sys
from typing import List, Optional

from airmove.core.builder import Builder
from airmove.core.ctrl_handler import CtrlCHandler
from airmove.core.errors import InputHookError
from airmove.core.hardware.sampler import ConnectionStatus
from airmove.core.imu.orientation_sample import GestureDirection
from airmove.core.input.hotkey_manager import HotkeyManager
from airmove.core.motion_controller import MotionController
from airmove.core.telemetry.session_logger import close_session_logger, get_session_logger
from airmove.utils.config import Config

log = logging.getLogger(__name__)


def _print_banner(title: str) -> None:
    print("=" * 60)
    print(f"AirMove - {title}")
    print("=" * 60)


def _print_change(name: str, value) -> None:
    if name in ("pitch", "yaw"):
        return
    print(f"[STATE] {name} = {getattr(value, 'value', value)}")


def run_listen(controller: MotionController, use_hotkey: bool = True) -> int:
    ctrl_handler = CtrlCHandler()
    controller.add_listener(_print_change)

    if not controller.is_permission_granted:
        print("[WARN] Accessibility permission missing: gestures will be detected but not dispatched")

    hotkeys = HotkeyManager()
    if use_hotkey:
        try:
            hotkeys.register(controller.toggle_listening)
            print(f"[INFO] Toggle listening with {Config.TOGGLE_HOTKEY}")
        except InputHookError as exc:
            print(f"[WARN] Toggle hotkey unavailable: {exc}")

    if not controller.start_listening():
        print("[ERROR] Headphone motion not available")
        hotkeys.unregister()
        return 1

    print("[INFO] Listening. Press Ctrl+C to quit.")
    try:
        while not ctrl_handler.wait(0.5):
            if controller.is_listening and controller.connection_status is ConnectionStatus.DISCONNECTED:
                print("[WARN] Headphone motion disconnected, stopping")
                break
    finally:
        hotkeys.unregister()
        controller.stop_recording()
        controller.stop_listening()
    return 0


def run_record(controller: MotionController, direction: GestureDirection, timeout: float = 30.0) -> int:
    ctrl_handler = CtrlCHandler()
    if not controller.start_recording(direction):
        print("[ERROR] Could not start recording")
        return 1
    print(f"[INFO] Press the key combination for '{direction.value}'...")
    waited = 0.0
    while controller.is_recording and waited < timeout:
        if ctrl_handler.wait(0.1):
            break
        waited += 0.1
    if controller.is_recording:
        controller.stop_recording()
        print("[WARN] Recording cancelled, previous shortcut kept")
        return 1
    shortcut = controller.settings.direction(direction).shortcut
    print(f"[INFO] Recorded: {shortcut.display_string if shortcut else 'None'}")
    return 0


def show_config(controller: MotionController) -> int:
    print(json.dumps(controller.settings.snapshot.to_dict(), indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="airmove", description=__doc__.splitlines()[1])
    parser.add_argument("--verbose", "-v", action="store_true", help="INFO logging on the console")
    sub = parser.add_subparsers(dest="mode")

    listen = sub.add_parser("listen", help="dispatch actions from head gestures")
    listen.add_argument("--dry-run", action="store_true", help="log events instead of posting them")
    listen.add_argument(
        "--source", choices=["stdin", "synthetic"], default="stdin",
        help="where orientation samples come from (default: piped from a motion helper)",
    )
    listen.add_argument("--no-hotkey", action="store_true", help="do not register the toggle hotkey")

    sub.add_parser("demo", help="synthetic gestures, dry-run dispatch")

    record = sub.add_parser("record", help="record a shortcut for a direction")
    record.add_argument("direction", choices=[d.value for d in GestureDirection])

    sub.add_parser("show-config", help="print persisted settings")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    mode = args.mode or "listen"

    session = get_session_logger(verbose=args.verbose)
    _print_banner(mode)
    print(f"[INFO] Session logs: {session.log_dir}")

    try:
        if mode == "demo":
            controller = Builder(dry_run=True).build_controller()
            return run_listen(controller, use_hotkey=False)
        if mode == "record":
            controller = Builder().build_controller()
            return run_record(controller, GestureDirection(args.direction))
        if mode == "show-config":
            return show_config(Builder(dry_run=True).build_controller())

        controller = Builder(
            dry_run=getattr(args, "dry_run", False),
            sample_source=getattr(args, "source", "stdin"),
        ).build_controller()
        return run_listen(controller, use_hotkey=not getattr(args, "no_hotkey", False))
    finally:
        close_session_logger()


if __name__ == "__main__":
    sys.exit(main())
