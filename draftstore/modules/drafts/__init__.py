"""Drafts module"""

from .models import Draft, OwnershipKey, SaveStatus
from .repository import DraftRepository
from .service import DraftsService
from .router import router

__all__ = ["Draft", "OwnershipKey", "SaveStatus", "DraftRepository", "DraftsService", "router"]
