"""Core custom exceptions for the application."""


class RelayError(Exception):
    """Base exception for upload relay errors."""


class UploadValidationError(RelayError):
    """Exception for rejected upload requests (missing consent, no files)."""


class StorageError(RelayError):
    """Exception for failures while persisting uploaded files."""


class BlacklistLoadError(RelayError):
    """Exception for an unreadable or malformed blacklist file."""
