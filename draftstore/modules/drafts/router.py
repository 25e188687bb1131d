"""
Drafts Router - API endpoints for managing a caller's drafts
"""

from email.message import Message
from typing import Any, Optional
from fastapi import APIRouter, Body, Depends, Path, Query, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from draftstore.core.db.engine import get_db_util
from draftstore.core.exceptions import UnsupportedMediaTypeError, ValidationError
from draftstore.core.pagination import DEFAULT_LIMIT, MAX_LIMIT
from draftstore.modules.auth import (
    UserAndService,
    get_reader,
    get_user_and_service,
    get_writer,
)
from .models import SaveStatus
from .schemas import MEDIA_TYPE, CreateDraftDto, DraftListResponse, UpdateDraftDto
from .service import DraftsService

router = APIRouter(prefix="/drafts", tags=["drafts"])


def require_json_body(request: Request) -> None:
    """
    Accept plain JSON and the versioned draft-store media type (any +json
    subtype); both are read the same way.
    """
    content_type = request.headers.get("content-type")
    if not content_type:
        return

    message = Message()
    message["content-type"] = content_type
    subtype = message.get_content_subtype()
    if message.get_content_maintype() != "application" or not (
        subtype == "json" or subtype.endswith("+json")
    ):
        raise UnsupportedMediaTypeError(content_type)


def _location(request: Request, draft_id: int) -> str:
    return str(request.url_for("read_draft", draft_id=str(draft_id)))


def valid_document_type(
    document_type: str = Path(..., min_length=1, max_length=255, description="Document type"),
) -> str:
    """Same rules as the type field of a draft body."""
    if not document_type.strip():
        raise ValidationError("type must not be blank")
    return document_type


@router.get("/{draft_id}", name="read_draft")
async def read_draft(
    draft_id: str,
    db: AsyncSession = Depends(get_db_util),
    caller: UserAndService = Depends(get_reader),
):
    """
    Find draft by ID. Returns the stored document.
    """
    return await DraftsService.read(db, caller, draft_id)


@router.get("", response_model=DraftListResponse)
async def read_all_drafts(
    type: Optional[str] = Query(None, description="Only drafts of this type"),
    after: Optional[int] = Query(None, ge=0, description="Only drafts with a larger id"),
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT, description="Page size"),
    db: AsyncSession = Depends(get_db_util),
    caller: UserAndService = Depends(get_reader),
):
    """
    Find all your drafts.
    Returns an empty list when no drafts were found.
    """
    return await DraftsService.read_all(db, caller, type, after, limit)


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_json_body)],
    openapi_extra={"requestBody": {"content": {MEDIA_TYPE: {}}}},
)
async def create_draft(
    dto: CreateDraftDto,
    request: Request,
    db: AsyncSession = Depends(get_db_util),
    caller: UserAndService = Depends(get_writer),
):
    """
    Create a new draft.
    Saving a type the caller already has a draft of overwrites that draft.
    """
    draft, _ = await DraftsService.create(db, caller, dto)
    return Response(
        status_code=status.HTTP_201_CREATED,
        headers={"Location": _location(request, draft.id)},
    )


@router.put(
    "/{draft_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_json_body)],
)
async def update_draft(
    draft_id: str,
    dto: UpdateDraftDto,
    db: AsyncSession = Depends(get_db_util),
    caller: UserAndService = Depends(get_writer),
):
    """
    Update existing draft.
    """
    await DraftsService.update(db, caller, draft_id, dto)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/{draft_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_draft(
    draft_id: str,
    db: AsyncSession = Depends(get_db_util),
    caller: UserAndService = Depends(get_user_and_service),
):
    """
    Delete draft. Succeeds whether or not the draft existed.
    """
    await DraftsService.delete(db, caller, draft_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def delete_all_drafts(
    db: AsyncSession = Depends(get_db_util),
    caller: UserAndService = Depends(get_user_and_service),
):
    """
    Delete all drafts of the caller.
    """
    await DraftsService.delete_all(db, caller)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put("/types/{document_type}", dependencies=[Depends(require_json_body)])
async def save_draft_by_type(
    request: Request,
    document_type: str = Depends(valid_document_type),
    document: Any = Body(...),
    db: AsyncSession = Depends(get_db_util),
    caller: UserAndService = Depends(get_writer),
):
    """
    Create or replace the caller's draft of the given type.
    201 with a Location when it was created, 204 when it was overwritten.
    """
    draft, save_status = await DraftsService.save_by_type(db, caller, document_type, document)
    if save_status == SaveStatus.CREATED:
        return Response(
            status_code=status.HTTP_201_CREATED,
            headers={"Location": _location(request, draft.id)},
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/types/{document_type}")
async def read_draft_by_type(
    document_type: str = Depends(valid_document_type),
    db: AsyncSession = Depends(get_db_util),
    caller: UserAndService = Depends(get_reader),
):
    """
    Find the caller's draft of the given type. Returns the stored document.
    """
    return await DraftsService.read_by_type(db, caller, document_type)


@router.delete("/types/{document_type}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_draft_by_type(
    document_type: str = Depends(valid_document_type),
    db: AsyncSession = Depends(get_db_util),
    caller: UserAndService = Depends(get_user_and_service),
):
    """
    Delete the caller's draft of the given type. Succeeds whether or not it existed.
    """
    await DraftsService.delete_by_type(db, caller, document_type)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
