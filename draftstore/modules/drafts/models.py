"""
Draft Models - one JSON document per owner per document type
"""

import enum
from dataclasses import dataclass
from typing import Any

from sqlalchemy import JSON, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from draftstore.core.db.base import BaseModel


class SaveStatus(str, enum.Enum):
    """Outcome of an upsert"""
    CREATED = "created"
    UPDATED = "updated"


@dataclass(frozen=True)
class OwnershipKey:
    """Scopes exactly one draft: the owner (user + service) and the document type."""
    user_id: str
    service: str
    document_type: str


class Draft(BaseModel):
    """
    Draft model.
    The (user_id, service, document_type) triple is unique: saving a second
    draft of the same type for the same owner overwrites the first.
    """
    __tablename__ = "draft_document"
    __table_args__ = (
        UniqueConstraint(
            "user_id", "service", "document_type", name="uq_draft_document_owner_type"
        ),
        Index("ix_draft_document_owner", "user_id", "service"),
    )

    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    service: Mapped[str] = mapped_column(String(255), nullable=False)
    document_type: Mapped[str] = mapped_column(String(255), nullable=False)
    document: Mapped[Any] = mapped_column(JSON, nullable=False)

    @property
    def key(self) -> OwnershipKey:
        return OwnershipKey(self.user_id, self.service, self.document_type)

    def is_owned_by(self, user_id: str, service: str) -> bool:
        return self.user_id == user_id and self.service == service

    def __repr__(self) -> str:
        return (
            f"<Draft(id={self.id}, user_id='{self.user_id}', service='{self.service}', "
            f"type='{self.document_type}')>"
        )
