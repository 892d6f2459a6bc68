"""Exception types shared across the reporter pipeline.

Provider failures have their own hierarchy in :mod:`.fetchers.base` and never
leave a fetcher; the types here cover configuration and encoding.
"""


class ReporterError(Exception):
    """Base exception for reporter errors."""

    pass


class ConfigurationError(ReporterError):
    """Raised at startup when the reporter cannot run with the given settings."""

    pass


class EncodingError(ReporterError, ValueError):
    """Raised when a price or submission field cannot be encoded on-chain."""

    pass
