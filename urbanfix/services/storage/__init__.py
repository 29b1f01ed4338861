"""
Document storage layer.

One contract, two backends: Firestore for deployments and an in-memory
store for local development and tests.
"""

from urbanfix.services.storage.base import DocumentStore, Sequence
from urbanfix.services.storage.memory_store import MemoryDocumentStore
from urbanfix.services.storage.registry import get_document_store, set_document_store

__all__ = [
    "DocumentStore",
    "Sequence",
    "MemoryDocumentStore",
    "get_document_store",
    "set_document_store",
]
