"""Exception taxonomy for mpconf-core."""

from typing import Optional


class MpconfError(Exception):
    """Base exception for all mpconf errors."""

    pass


# Settings errors


class ConfigError(MpconfError):
    """Failed to load or validate mpconf settings."""

    pass


# Config source errors


class SourceLoadError(MpconfError):
    """A configuration file could not be read or decoded."""

    def __init__(self, source_id: str, details: str) -> None:
        self.source_id = source_id
        self.details = details
        super().__init__(f"Failed to load config source {source_id}: {details}")


# Resolution control flow


class ResolutionCancelled(MpconfError):
    """Raised by a cancellation token; caught at the resolve boundary."""

    def __init__(self, key: Optional[str] = None) -> None:
        self.key = key
        message = "Resolution cancelled"
        if key:
            message = f"Resolution of {key} cancelled"
        super().__init__(message)
