"""
Drafts DTOs (Data Transfer Objects)
"""

from pydantic import BaseModel, Field, field_validator
from typing import Any, List
from datetime import datetime

MEDIA_TYPE = "application/vnd.uk.gov.hmcts.draft-store.v3+json"


class SaveDraftDto(BaseModel):
    """DTO for creating or replacing a draft"""
    type: str = Field(..., min_length=1, max_length=255, description="Document type")
    document: Any = Field(..., description="Draft contents, any JSON value")

    @field_validator("type")
    @classmethod
    def type_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("type must not be blank")
        return value

    @field_validator("document")
    @classmethod
    def document_not_null(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("document must not be null")
        return value


class CreateDraftDto(SaveDraftDto):
    """DTO for POST /drafts"""


class UpdateDraftDto(SaveDraftDto):
    """DTO for PUT /drafts/{id}"""


class DraftResponse(BaseModel):
    """Response model for a draft in a listing"""
    id: str
    type: str
    document: Any
    created: datetime
    updated: datetime

    @classmethod
    def from_draft(cls, draft) -> "DraftResponse":
        return cls(
            id=str(draft.id),
            type=draft.document_type,
            document=draft.document,
            created=draft.created_at,
            updated=draft.updated_at,
        )


class DraftListResponse(BaseModel):
    """Response model for GET /drafts"""
    data: List[DraftResponse]
    count: int
