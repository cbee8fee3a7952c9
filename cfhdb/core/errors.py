"""Domain-specific errors for cfhdb."""


class CfhdbError(Exception):
    """Base error for cfhdb."""


class NotFoundError(CfhdbError):
    """Raised when a requested device, profile, or catalog does not exist."""


class DeviceNotFoundError(NotFoundError):
    """Raised when no enumerated device has the requested bus id."""


class ProfileNotFoundError(NotFoundError):
    """Raised when no catalog profile has the requested codename."""


class CatalogUnavailableError(NotFoundError):
    """Raised when the catalog download fails and no cached copy exists."""


class InvalidDataError(CfhdbError):
    """Raised when a collaborator hands back data that cannot be used."""


class EnumerationError(InvalidDataError):
    """Raised when hardware enumeration yields nothing usable."""


class ScriptFailureError(CfhdbError):
    """Raised when a privileged command or generated script exits non-zero."""


class DeviceControlError(ScriptFailureError):
    """Raised when the sysfs helper fails to start/stop/enable/disable a device."""


class ParseFailureError(CfhdbError):
    """Base error for malformed input files."""


class CatalogParseError(ParseFailureError):
    """Raised when the profile catalog is not valid JSON or violates its schema."""


class ConfigError(ParseFailureError):
    """Raised when the configuration file is malformed."""
