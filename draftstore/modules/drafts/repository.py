"""
DraftRepository - the only place that reads or writes draft storage.

Absent rows are reported through return values (None / False / SaveStatus),
never by raising. The one exception is a uniqueness violation, which means
another writer claimed the same ownership key first and surfaces as
ConflictError.
"""

import logging
from typing import Any, List, Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from draftstore.core.exceptions import ConflictError
from draftstore.core.pagination import DEFAULT_LIMIT, apply_cursor
from .models import Draft, OwnershipKey, SaveStatus

logger = logging.getLogger(__name__)


def _key_filter(key: OwnershipKey) -> tuple:
    return (
        Draft.user_id == key.user_id,
        Draft.service == key.service,
        Draft.document_type == key.document_type,
    )


class DraftRepository:
    """
    Draft storage scoped by OwnershipKey.
    Every method runs inside the caller's session; committing is the
    session owner's job.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def upsert(self, key: OwnershipKey, document: Any) -> SaveStatus:
        """
        Create or replace the draft for ``key``.

        Tries the UPDATE first and only INSERTs when no row matched, so the
        common overwrite case is a single statement. Two concurrent first
        writes may both reach the INSERT; the unique index lets exactly one win.

        Raises:
            ConflictError: If a concurrent writer inserted the same key first
        """
        result = await self.db.execute(
            update(Draft)
            .where(*_key_filter(key))
            .values(document=document, updated_at=func.now())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 1:
            logger.debug(f"Updated draft for {key}")
            return SaveStatus.UPDATED

        await self.insert(key, document)
        return SaveStatus.CREATED

    async def insert(self, key: OwnershipKey, document: Any) -> Draft:
        """
        Insert a new draft for ``key``; the server assigns the id.

        Raises:
            ConflictError: If a draft already exists for ``key``
        """
        draft = Draft(
            user_id=key.user_id,
            service=key.service,
            document_type=key.document_type,
            document=document,
        )
        self.db.add(draft)
        try:
            await self.db.flush()
        except IntegrityError as exc:
            logger.info(f"Concurrent first write lost for {key}")
            raise ConflictError(
                f"A draft of type '{key.document_type}' already exists"
            ) from exc

        await self.db.refresh(draft)
        logger.debug(f"Inserted draft {draft.id} for {key}")
        return draft

    async def find(self, key: OwnershipKey) -> Optional[Draft]:
        result = await self.db.execute(
            select(Draft)
            .where(*_key_filter(key))
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def read(self, key: OwnershipKey) -> Optional[Any]:
        """Stored document for ``key``, or None when there is no such draft."""
        result = await self.db.execute(select(Draft.document).where(*_key_filter(key)))
        row = result.one_or_none()
        return None if row is None else row.document

    async def delete(self, key: OwnershipKey) -> bool:
        """Delete the draft for ``key``. Returns whether a row was removed."""
        result = await self.db.execute(delete(Draft).where(*_key_filter(key)))
        return result.rowcount > 0

    async def list(
        self,
        user_id: str,
        service: str,
        document_type: Optional[str] = None,
        after: Optional[int] = None,
        limit: int = DEFAULT_LIMIT,
    ) -> List[Draft]:
        """
        Drafts owned by (user_id, service), oldest first.

        Args:
            user_id: Owner user id
            service: Owner service
            document_type: Optional filter by type
            after: Only drafts with a larger id
            limit: Maximum number of drafts

        Returns:
            Possibly empty list of drafts
        """
        query = select(Draft).where(Draft.user_id == user_id, Draft.service == service)
        if document_type is not None:
            query = query.where(Draft.document_type == document_type)

        result = await self.db.execute(apply_cursor(query, Draft.id, after, limit))
        return list(result.scalars().all())

    async def delete_all(self, user_id: str, service: str) -> int:
        """Delete every draft owned by (user_id, service). Returns the count."""
        result = await self.db.execute(
            delete(Draft).where(Draft.user_id == user_id, Draft.service == service)
        )
        return result.rowcount

    async def read_by_id(self, draft_id: int) -> Optional[Draft]:
        """
        Plain lookup by surrogate id. No ownership filtering is applied:
        callers must check ownership before exposing or mutating the draft.
        """
        return await self.db.get(Draft, draft_id, populate_existing=True)

    async def update_by_id(self, draft_id: int, document_type: str, document: Any) -> bool:
        """
        Overwrite type and contents of a draft. Returns whether it existed.

        Raises:
            ConflictError: If the owner already has another draft of ``document_type``
        """
        try:
            result = await self.db.execute(
                update(Draft)
                .where(Draft.id == draft_id)
                .values(document_type=document_type, document=document, updated_at=func.now())
                .execution_options(synchronize_session=False)
            )
        except IntegrityError as exc:
            raise ConflictError(
                f"A draft of type '{document_type}' already exists"
            ) from exc
        return result.rowcount == 1

    async def delete_by_id(self, draft_id: int) -> bool:
        result = await self.db.execute(delete(Draft).where(Draft.id == draft_id))
        return result.rowcount > 0
