import logging
from typing import Optional

from roadblock.core.settings import settings
from .base import IncidentRepository, verification_key
from .memory import MemoryRepository

logger = logging.getLogger(__name__)

_repository: Optional[IncidentRepository] = None


def get_repository() -> IncidentRepository:
    """
    Resolve the active repository based on settings.

    Rules:
    - STORAGE_BACKEND='memory': process-local dictionaries.
    - Anything else: Firestore (requires Firebase credentials).
    """
    global _repository
    if _repository is not None:
        return _repository

    backend = (settings.STORAGE_BACKEND or "firestore").lower()
    if backend == "memory":
        _repository = MemoryRepository()
    else:
        from .firestore import FirestoreRepository
        _repository = FirestoreRepository()

    logger.info(f"Storage backend initialized: {backend}")
    return _repository


def set_repository(repository: Optional[IncidentRepository]) -> None:
    """Replace the active repository (tests, scripts)."""
    global _repository
    _repository = repository


__all__ = [
    "IncidentRepository",
    "MemoryRepository",
    "get_repository",
    "set_repository",
    "verification_key",
]
