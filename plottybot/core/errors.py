"""Domain-specific errors for plottybot."""


class PlottybotError(Exception):
    """Base error for plottybot."""


class SettingsError(PlottybotError):
    """Base settings error."""


class SettingsLoadError(SettingsError):
    """Raised when a settings file cannot be read."""


class SettingsValidationError(SettingsError):
    """Raised when a settings file does not conform to schema."""


class DiscoveryError(PlottybotError):
    """Raised when the device list cannot be fetched or parsed."""


class SelectionError(PlottybotError):
    """Raised when a device index or name is not in the directory."""


class TransportError(PlottybotError):
    """Base transport error."""


class TransportConnectError(TransportError):
    """Raised when a WebSocket cannot be opened."""


class TransportSendError(TransportError):
    """Raised when a frame cannot be written to the socket."""
