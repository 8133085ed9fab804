"""External integration adapters."""

from .admin_api import AdminApiClient
from .email import EmailService

__all__ = [
    "AdminApiClient",
    "EmailService",
]
