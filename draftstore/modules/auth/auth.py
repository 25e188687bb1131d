"""
Caller identity resolution.

Every draft request carries two credentials:
- ``Authorization``: the end user's token (JWT, optionally ``Bearer``-prefixed)
- ``ServiceAuthorization``: the calling service's token (JWT, ``sub`` = service name)

Both are verified with PyJWT. The result is a UserAndService that is passed
explicitly to the service layer and never stored.
"""

import logging
from dataclasses import dataclass, replace
from typing import Any, Dict, Optional

import jwt
from jwt.exceptions import ExpiredSignatureError, PyJWTError
from fastapi import Depends, Header

from draftstore.core.config import config
from draftstore.core.exceptions import AuthenticationError, AuthorizationError, ValidationError
from .secrets import SECRET_HEADER, Secrets, SecretsBuilder

logger = logging.getLogger(__name__)

AUTHORIZATION_HEADER = "Authorization"
SERVICE_HEADER = "ServiceAuthorization"

# Claims checked, in order, for the user id
USER_ID_CLAIMS = ("sub", "user_id", "id")


@dataclass(frozen=True)
class UserAndService:
    """Resolved identity of a single request"""
    user_id: str
    service: str
    secrets: Optional[Secrets] = None

    def with_secrets(self, secrets: Optional[Secrets]) -> "UserAndService":
        return replace(self, secrets=secrets)


class AuthService:
    """
    Resolves raw credential headers to a user id and a service name.
    """

    @staticmethod
    def _strip_bearer(header: str) -> str:
        """Parsed by hand because HTTPBearer rejects tokens sent without the Bearer prefix."""
        token = header.strip()
        if token[:7].lower() == "bearer ":
            token = token[7:].strip()
        return token

    @staticmethod
    def _decode(token: str, secret: str, what: str) -> Dict[str, Any]:
        try:
            return jwt.decode(token, secret, algorithms=[config.jwt_algorithm])
        except ExpiredSignatureError:
            logger.warning(f"Rejected expired {what} token")
            raise AuthenticationError(f"{what.capitalize()} token has expired")
        except PyJWTError as exc:
            logger.warning(f"Rejected {what} token: {exc}")
            raise AuthenticationError(f"Invalid {what} token")

    @staticmethod
    def get_user_id(auth_header: Optional[str]) -> str:
        """
        Resolve the Authorization header to a user id.

        Args:
            auth_header: Raw Authorization header value

        Returns:
            The user id as a string

        Raises:
            AuthenticationError: If the header is missing or the token is invalid
        """
        if not auth_header or not auth_header.strip():
            raise AuthenticationError(f"Missing {AUTHORIZATION_HEADER} header")

        payload = AuthService._decode(
            AuthService._strip_bearer(auth_header), config.jwt_secret, "user"
        )
        for claim in USER_ID_CLAIMS:
            value = payload.get(claim)
            if value is not None and str(value).strip():
                return str(value)

        raise AuthenticationError("User token does not identify a user")

    @staticmethod
    def get_service_name(service_header: Optional[str]) -> str:
        """
        Resolve the ServiceAuthorization header to a service name.

        Raises:
            AuthenticationError: If the header is missing or the token is invalid
            AuthorizationError: If the service is not in ALLOWED_SERVICES
        """
        if not service_header or not service_header.strip():
            raise AuthenticationError(f"Missing {SERVICE_HEADER} header")

        payload = AuthService._decode(
            AuthService._strip_bearer(service_header), config.s2s_secret, "service"
        )
        service = payload.get("sub")
        if not service or not str(service).strip():
            raise AuthenticationError("Service token does not identify a service")

        allowed = config.allowed_service_names
        if allowed and service not in allowed:
            logger.warning(f"Rejected service not on the allow list: {service}")
            raise AuthorizationError(f"Service {service} is not allowed")

        return str(service)

    @staticmethod
    def authenticate(auth_header: Optional[str], service_header: Optional[str]) -> UserAndService:
        return UserAndService(
            user_id=AuthService.get_user_id(auth_header),
            service=AuthService.get_service_name(service_header),
        )


async def get_user_and_service(
    authorization: Optional[str] = Header(None, alias=AUTHORIZATION_HEADER),
    service_authorization: Optional[str] = Header(None, alias=SERVICE_HEADER),
) -> UserAndService:
    """
    Dependency resolving the caller from its credential headers.
    Used on its own by delete operations, which take no secret.
    """
    return AuthService.authenticate(authorization, service_authorization)


async def get_reader(
    secret: Optional[str] = Header(None, alias=SECRET_HEADER),
    caller: UserAndService = Depends(get_user_and_service),
) -> UserAndService:
    """
    Dependency for read operations: the secret header is parsed when present
    but its length is not enforced.
    """
    if secret is None:
        return caller
    return caller.with_secrets(SecretsBuilder.from_header(secret))


async def get_writer(
    secret: Optional[str] = Header(None, alias=SECRET_HEADER),
    caller: UserAndService = Depends(get_user_and_service),
) -> UserAndService:
    """
    Dependency for write operations: the secret header must meet the minimum
    length, and must be present when SECRET_HEADER_REQUIRED is set.

    Raises:
        ValidationError: If the secret is missing (when required) or too short
    """
    if secret is None:
        if config.secret_header_required:
            raise ValidationError(f"Missing {SECRET_HEADER} header")
        return caller

    secrets = SecretsBuilder.ensure_min_length(SecretsBuilder.from_header(secret))
    return caller.with_secrets(secrets)
