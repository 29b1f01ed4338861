"""
In-memory Document Store.

Used when USE_MOCK_DB is set (local development without Firebase
credentials) and by the test-suite. A single process lock serialises every
write, which gives the same atomicity the Firestore transactions give.
"""

from urbanfix.core.errors import ConflictError, NotFoundError
from urbanfix.services.storage.base import (
    COUNTERS_COLLECTION,
    DocumentStore,
    Mutator,
    Sequence,
)
from collections import defaultdict
from typing import Dict, List, Optional
import copy
import logging
import secrets
import string
import threading

logger = logging.getLogger(__name__)

_ID_ALPHABET = string.ascii_letters + string.digits
_ID_LENGTH = 20  # Same shape as Firestore auto-ids


def generate_document_id() -> str:
    return "".join(secrets.choice(_ID_ALPHABET) for _ in range(_ID_LENGTH))


class MemoryDocumentStore(DocumentStore):
    """Thread-safe dict-of-dicts store. Documents are deep-copied in and out."""

    def __init__(self):
        self._collections: Dict[str, Dict[str, Dict]] = defaultdict(dict)
        self._lock = threading.RLock()
        logger.info("✅ In-memory document store initialized")

    def create(self, collection: str, data: Dict, sequence: Optional[Sequence] = None) -> Dict:
        with self._lock:
            docs = self._collections[collection]
            doc_id = generate_document_id()
            while doc_id in docs:
                doc_id = generate_document_id()

            record = copy.deepcopy(data)
            record.pop("id", None)

            if sequence is not None:
                counter = self._collections[COUNTERS_COLLECTION].get(sequence.name, {})
                number = sequence.next_value(counter.get("value"))
                claims = self._collections[sequence.claims_collection]
                if str(number) in claims:
                    raise ConflictError(
                        f"{sequence.field} {number} is already taken",
                        {"field": sequence.field, "value": number},
                    )
                self._collections[COUNTERS_COLLECTION][sequence.name] = {"value": number}
                claims[str(number)] = {"id": doc_id}
                record[sequence.field] = number

            docs[doc_id] = record
            return self._with_id(doc_id, record)

    def get(self, collection: str, doc_id: str) -> Optional[Dict]:
        with self._lock:
            record = self._collections[collection].get(doc_id)
            if record is None:
                return None
            return self._with_id(doc_id, record)

    def mutate(self, collection: str, doc_id: str, mutator: Mutator) -> Dict:
        with self._lock:
            record = self._collections[collection].get(doc_id)
            if record is None:
                raise NotFoundError(f"{collection} document {doc_id} not found")

            updates = mutator(self._with_id(doc_id, record))
            if updates:
                updated = copy.deepcopy(record)
                updated.update(copy.deepcopy(updates))
                updated.pop("id", None)
                self._collections[collection][doc_id] = updated
                record = updated
            return self._with_id(doc_id, record)

    def delete(self, collection: str, doc_id: str) -> bool:
        with self._lock:
            return self._collections[collection].pop(doc_id, None) is not None

    def query(self, collection: str, filters: Optional[Dict] = None) -> List[Dict]:
        filters = filters or {}
        with self._lock:
            return [
                self._with_id(doc_id, record)
                for doc_id, record in self._collections[collection].items()
                if all(record.get(field) == value for field, value in filters.items())
            ]

    def ping(self) -> Dict:
        with self._lock:
            return {"database": "memory", "collections_count": len(self._collections)}

    @staticmethod
    def _with_id(doc_id: str, record: Dict) -> Dict:
        result = copy.deepcopy(record)
        result["id"] = doc_id
        return result
