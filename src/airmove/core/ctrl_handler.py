import signal
import threading


class CtrlCHandler:
    """
    Handle Ctrl+C for a clean shutdown: stop the sampler and release the
    keyboard hook instead of dying mid-dispatch.
    """
    def __init__(self):
        self.stop_event = threading.Event()
        signal.signal(signal.SIGINT, self._signal_handler)

    @property
    def should_stop(self) -> bool:
        return self.stop_event.is_set()

    def _signal_handler(self, sig, frame):
        """Callback executed when Ctrl+C is detected"""
        print("\n[INFO] Interrupt signal detected, closing cleanly...")
        self.stop_event.set()

    def wait(self, timeout=None) -> bool:
        return self.stop_event.wait(timeout)
