"""Custom exception hierarchy for taskview."""


class AppError(Exception):
    """Base exception for app-specific failures."""


class ValidationError(ValueError, AppError):
    """Structured input that cannot be normalized."""


class ConfigError(ValueError, AppError):
    """Settings validation errors."""


class StorageError(AppError):
    """Data file load/save failures."""


class ServiceError(AppError):
    """Data service call failures."""


class SessionError(AppError):
    """Operation requires a signed-in user."""
