"""Domain-specific errors for the bridge."""


class BridgeError(Exception):
    """Base error for the bridge."""


class ConfigurationError(BridgeError):
    """Raised when the platform configuration file cannot be read."""


class CacheSealedError(BridgeError):
    """Raised when a record is restored after reconciliation has started."""


class DirectoryError(BridgeError):
    """Base directory client error."""


class DirectoryLoginError(DirectoryError):
    """Raised when the directory rejects or cannot establish a session."""


class DeviceValidationError(DirectoryError):
    """Raised when a reported device payload is structurally invalid."""
