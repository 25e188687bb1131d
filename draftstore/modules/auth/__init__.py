"""Auth module"""

from .auth import (
    AuthService,
    UserAndService,
    get_reader,
    get_user_and_service,
    get_writer,
)
from .secrets import MIN_SECRET_LENGTH, Secrets, SecretsBuilder

__all__ = [
    "AuthService",
    "UserAndService",
    "get_reader",
    "get_user_and_service",
    "get_writer",
    "MIN_SECRET_LENGTH",
    "Secrets",
    "SecretsBuilder",
]
