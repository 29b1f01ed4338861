"""
Document Store Registry.

Selects the store implementation from settings:
- USE_MOCK_DB=true  → in-memory store (no credentials needed)
- otherwise         → Firestore
"""

from urbanfix.core.settings import settings
from urbanfix.services.storage.base import DocumentStore
from typing import Optional
import logging

logger = logging.getLogger(__name__)

# Global store instance (singleton)
_store: Optional[DocumentStore] = None


def build_document_store() -> DocumentStore:
    if settings.USE_MOCK_DB:
        from urbanfix.services.storage.memory_store import MemoryDocumentStore
        logger.info("[STORE] USING IN-MEMORY DOCUMENT STORE")
        return MemoryDocumentStore()

    from urbanfix.config.firebase import get_db
    from urbanfix.services.storage.firestore_store import FirestoreDocumentStore
    logger.info("[STORE] USING FIRESTORE")
    return FirestoreDocumentStore(get_db())


def get_document_store() -> DocumentStore:
    """Get or create the configured DocumentStore singleton."""
    global _store
    if _store is None:
        _store = build_document_store()
    return _store


def set_document_store(store: Optional[DocumentStore]) -> None:
    """Replace the singleton (None resets it)."""
    global _store
    _store = store
