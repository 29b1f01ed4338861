"""
Document Store Base Interface.

Defines the contract the lifecycle services persist through.
All atomicity guarantees (sequence allocation, read-check-write) live
behind this interface so services never do a read-then-write race.
"""

from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Optional
import logging

logger = logging.getLogger(__name__)

ISSUES_COLLECTION = "issues"
COMMENTS_COLLECTION = "comments"
TEAMS_COLLECTION = "teams"
NOTIFICATIONS_COLLECTION = "notifications"
COUNTERS_COLLECTION = "counters"

# Receives the current document (with "id"), returns the fields to update.
# Raising aborts the mutation; returning an empty dict is a no-op.
Mutator = Callable[[Dict], Optional[Dict]]


class Sequence:
    """
    A per-collection monotonic counter.

    The allocated value is written to `field` of the created document and a
    claim document keyed by the value is created in `claims_collection` in the
    same atomic step, so a value can never be handed out twice.
    """

    def __init__(self, name: str, field: str, start: int):
        self.name = name
        self.field = field
        self.start = start

    @property
    def claims_collection(self) -> str:
        return f"{self.name}_numbers"

    def next_value(self, last: Optional[int]) -> int:
        return self.start if last is None else last + 1


class DocumentStore(ABC):
    """
    Abstract base class for document stores.

    Documents are plain dicts. Every returned document carries its id under "id".
    """

    @abstractmethod
    def create(self, collection: str, data: Dict, sequence: Optional[Sequence] = None) -> Dict:
        """
        Insert a new document with a generated id.

        If `sequence` is given, the next value is allocated and stored in the
        same atomic step as the insert.

        Raises:
            ConflictError: sequence value already claimed
            StorageError: persistence failure
        """
        pass

    @abstractmethod
    def get(self, collection: str, doc_id: str) -> Optional[Dict]:
        """Fetch one document, or None if absent."""
        pass

    @abstractmethod
    def mutate(self, collection: str, doc_id: str, mutator: Mutator) -> Dict:
        """
        Atomically read a document, let `mutator` validate it and compute
        updates, and write the updates.

        Raises:
            NotFoundError: document absent
            LifecycleError: whatever the mutator raises (nothing is written)
            StorageError: persistence failure
        """
        pass

    @abstractmethod
    def delete(self, collection: str, doc_id: str) -> bool:
        """Delete a document. Returns False if it did not exist."""
        pass

    @abstractmethod
    def query(self, collection: str, filters: Optional[Dict] = None) -> List[Dict]:
        """Return all documents whose fields equal every value in `filters`."""
        pass

    @abstractmethod
    def ping(self) -> Dict:
        """Connectivity check for health endpoints."""
        pass
