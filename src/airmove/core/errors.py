"""Exception hierarchy shared by the AirMove core."""


class AirMoveError(Exception):
    """Base class for every error raised inside AirMove."""


class SettingsError(AirMoveError):
    """Persisted settings could not be parsed into the settings schema."""


class EventSynthesisError(AirMoveError):
    """The OS refused or failed to build a synthetic input event."""


class SensorUnavailableError(AirMoveError):
    """The motion sensor cannot deliver samples (not connected or unsupported)."""


class InputHookError(AirMoveError):
    """The keyboard intercept needed for shortcut recording could not be installed."""
