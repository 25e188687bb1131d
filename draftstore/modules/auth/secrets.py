"""
Shared-secret header parsing.

The ``Secret`` header carries a primary secret and, optionally, a secondary one
separated by a comma (``primary[,secondary]``). The secondary is present while
callers rotate from one secret to the next.
"""

from dataclasses import dataclass
from typing import Optional

from draftstore.core.exceptions import ValidationError

SECRET_HEADER = "Secret"
MIN_SECRET_LENGTH = 16


@dataclass(frozen=True)
class Secrets:
    primary: str
    secondary: Optional[str] = None

    def __repr__(self) -> str:
        return f"Secrets(primary=***, secondary={'***' if self.secondary else None})"


class SecretsBuilder:
    """Builds a Secrets container from the raw header value."""

    @staticmethod
    def from_header(header: str) -> Secrets:
        """
        Parse ``primary[,secondary]``.

        Raises:
            ValidationError: If the header is blank, the primary part is empty
                or there are more than two parts
        """
        if header is None or not header.strip():
            raise ValidationError(f"{SECRET_HEADER} header must not be empty")

        parts = [part.strip() for part in header.split(",")]
        if len(parts) > 2:
            raise ValidationError(
                f"{SECRET_HEADER} header must contain at most two secrets"
            )

        primary = parts[0]
        secondary = parts[1] if len(parts) == 2 and parts[1] else None
        if not primary:
            raise ValidationError(f"{SECRET_HEADER} header has an empty primary secret")

        return Secrets(primary=primary, secondary=secondary)

    @staticmethod
    def ensure_min_length(secrets: Secrets, min_length: int = MIN_SECRET_LENGTH) -> Secrets:
        """Reject secrets shorter than ``min_length``."""
        for value in (secrets.primary, secrets.secondary):
            if value is not None and len(value) < min_length:
                raise ValidationError(
                    f"{SECRET_HEADER} must be at least {min_length} characters long"
                )
        return secrets
