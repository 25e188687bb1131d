"""
DraftsService - orchestrates identity, ownership and storage for drafts.
Translates repository outcomes into the errors the API reports.
"""

import logging
from typing import Any, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from draftstore.core.exceptions import AuthorizationError, NotFoundError
from draftstore.core.pagination import DEFAULT_LIMIT, build_paginated_response
from draftstore.modules.auth import UserAndService
from .models import Draft, OwnershipKey, SaveStatus
from .repository import DraftRepository
from .schemas import CreateDraftDto, DraftResponse, UpdateDraftDto

logger = logging.getLogger(__name__)


def to_internal_id(api_id: str) -> Optional[int]:
    """
    Convert the id used in URLs to the storage id.
    Anything that isn't a plain non-negative integer maps to None, which
    callers treat as "no such draft".
    """
    if api_id is None or not api_id.isascii() or not api_id.isdigit():
        return None
    value = int(api_id)
    # Storage ids are signed 64-bit integers
    return value if value < 2 ** 63 else None


def ownership_key(caller: UserAndService, document_type: str) -> OwnershipKey:
    return OwnershipKey(caller.user_id, caller.service, document_type)


def _assert_can_edit(draft: Draft, caller: UserAndService) -> None:
    if not draft.is_owned_by(caller.user_id, caller.service):
        logger.warning(
            f"User {caller.user_id} ({caller.service}) tried to modify draft {draft.id}"
        )
        raise AuthorizationError("Draft belongs to another user or service")


class DraftsService:
    """
    Drafts service. Every method takes the resolved caller explicitly and
    works inside the request's session.
    """

    @staticmethod
    async def create(
        db: AsyncSession, caller: UserAndService, dto: CreateDraftDto
    ) -> Tuple[Draft, SaveStatus]:
        """
        Save a draft for the caller's (user, service, type) slot.

        Args:
            db: Request session
            caller: Resolved identity
            dto: Type and contents

        Returns:
            The stored draft and whether it was created or overwritten

        Raises:
            ConflictError: If a concurrent first write for the same type won
        """
        return await DraftsService.save_by_type(db, caller, dto.type, dto.document)

    @staticmethod
    async def save_by_type(
        db: AsyncSession, caller: UserAndService, document_type: str, document: Any
    ) -> Tuple[Draft, SaveStatus]:
        repository = DraftRepository(db)
        key = ownership_key(caller, document_type)

        status = await repository.upsert(key, document)
        draft = await repository.find(key)
        logger.info(f"Draft {draft.id} {status.value} for {caller.user_id} ({caller.service})")
        return draft, status

    @staticmethod
    async def read(db: AsyncSession, caller: UserAndService, api_id: str) -> Any:
        """
        Contents of one of the caller's drafts.
        A draft owned by somebody else is reported as not found.

        Raises:
            NotFoundError: If the id is malformed, unknown or not the caller's
        """
        draft_id = to_internal_id(api_id)
        draft = None if draft_id is None else await DraftRepository(db).read_by_id(draft_id)

        if draft is None or not draft.is_owned_by(caller.user_id, caller.service):
            raise NotFoundError("Draft", api_id)

        return draft.document

    @staticmethod
    async def read_by_type(db: AsyncSession, caller: UserAndService, document_type: str) -> Any:
        document = await DraftRepository(db).read(ownership_key(caller, document_type))
        if document is None:
            raise NotFoundError("Draft", document_type)
        return document

    @staticmethod
    async def read_all(
        db: AsyncSession,
        caller: UserAndService,
        document_type: Optional[str] = None,
        after: Optional[int] = None,
        limit: int = DEFAULT_LIMIT,
    ) -> dict:
        """
        One page of the caller's drafts; empty when there are none.
        """
        drafts = await DraftRepository(db).list(
            caller.user_id, caller.service, document_type, after, limit
        )
        return build_paginated_response([DraftResponse.from_draft(d) for d in drafts])

    @staticmethod
    async def update(
        db: AsyncSession, caller: UserAndService, api_id: str, dto: UpdateDraftDto
    ) -> None:
        """
        Replace type and contents of an existing draft.

        Raises:
            NotFoundError: If the id is malformed or unknown
            AuthorizationError: If the draft belongs to someone else
            ConflictError: If the caller already has another draft of the new type
        """
        repository = DraftRepository(db)
        draft_id = to_internal_id(api_id)
        draft = None if draft_id is None else await repository.read_by_id(draft_id)
        if draft is None:
            raise NotFoundError("Draft", api_id)

        _assert_can_edit(draft, caller)

        if not await repository.update_by_id(draft_id, dto.type, dto.document):
            # Deleted between the read and the update
            raise NotFoundError("Draft", api_id)
        logger.info(f"Draft {draft_id} updated for {caller.user_id} ({caller.service})")

    @staticmethod
    async def delete(db: AsyncSession, caller: UserAndService, api_id: str) -> None:
        """
        Delete one of the caller's drafts. Unknown or malformed ids are a no-op.

        Raises:
            AuthorizationError: If the draft exists but belongs to someone else
        """
        repository = DraftRepository(db)
        draft_id = to_internal_id(api_id)
        draft = None if draft_id is None else await repository.read_by_id(draft_id)
        if draft is None:
            return

        _assert_can_edit(draft, caller)
        await repository.delete_by_id(draft_id)
        logger.info(f"Draft {draft_id} deleted for {caller.user_id} ({caller.service})")

    @staticmethod
    async def delete_by_type(db: AsyncSession, caller: UserAndService, document_type: str) -> None:
        deleted = await DraftRepository(db).delete(ownership_key(caller, document_type))
        if deleted:
            logger.info(
                f"Draft of type {document_type} deleted for {caller.user_id} ({caller.service})"
            )

    @staticmethod
    async def delete_all(db: AsyncSession, caller: UserAndService) -> None:
        count = await DraftRepository(db).delete_all(caller.user_id, caller.service)
        logger.info(f"Deleted {count} drafts for {caller.user_id} ({caller.service})")
