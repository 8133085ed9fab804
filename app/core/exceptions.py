"""Custom exception types for domain and API layers."""


class AppError(Exception):
    """Base app exception."""


class ValidationError(AppError):
    """Validation failure for user input or stored subscription records."""


class NotFoundError(AppError):
    """Requested user or subscription does not exist."""


class IntegrationError(AppError):
    """External integration call failure."""


class ConflictError(AppError):
    """Write would duplicate an existing record."""
