"""
Firestore Document Store.

Sequence allocation and read-check-write mutations run inside Firestore
transactions, which retry on contention (optimistic concurrency). Domain
errors raised inside a transaction roll it back and propagate unchanged.
"""

from firebase_admin import firestore
from google.api_core import exceptions as gcp_exceptions
from urbanfix.core.errors import ConflictError, LifecycleError, NotFoundError, StorageError
from urbanfix.services.storage.base import (
    COUNTERS_COLLECTION,
    DocumentStore,
    Mutator,
    Sequence,
)
from urbanfix.utils.firestore_helpers import snapshot_to_dict, where_filter
from typing import Dict, List, Optional
import logging

logger = logging.getLogger(__name__)


class FirestoreDocumentStore(DocumentStore):
    """DocumentStore backed by a firebase_admin Firestore client."""

    def __init__(self, db: firestore.Client):
        self.db = db

    def create(self, collection: str, data: Dict, sequence: Optional[Sequence] = None) -> Dict:
        doc_ref = self.db.collection(collection).document()
        payload = dict(data)
        payload.pop("id", None)

        if sequence is None:
            try:
                doc_ref.set(payload)
            except gcp_exceptions.GoogleAPICallError as e:
                logger.error(f"Failed to create {collection} document: {e}", exc_info=True)
                raise StorageError(f"Failed to create {collection} document") from e
            return dict(payload, id=doc_ref.id)

        counter_ref = self.db.collection(COUNTERS_COLLECTION).document(sequence.name)

        @firestore.transactional
        def allocate_and_create(transaction) -> Dict:
            counter = counter_ref.get(transaction=transaction)
            last = (counter.to_dict() or {}).get("value") if counter.exists else None
            number = sequence.next_value(last)

            claim_ref = self.db.collection(sequence.claims_collection).document(str(number))
            record = dict(payload)
            record[sequence.field] = number

            transaction.set(counter_ref, {"value": number})
            # create() fails at commit if the number was ever claimed before
            transaction.create(claim_ref, {"id": doc_ref.id})
            transaction.set(doc_ref, record)
            return record

        try:
            record = allocate_and_create(self.db.transaction())
        except gcp_exceptions.AlreadyExists as e:
            logger.warning(f"Sequence collision on {sequence.name}: {e}")
            raise ConflictError(
                f"{sequence.field} already taken, retry the request",
                {"field": sequence.field},
            ) from e
        except gcp_exceptions.GoogleAPICallError as e:
            logger.error(f"Failed to create numbered {collection} document: {e}", exc_info=True)
            raise StorageError(f"Failed to create {collection} document") from e
        except ValueError as e:
            # Raised by the transaction wrapper once its retry attempts are exhausted
            logger.error(f"Numbering transaction on {sequence.name} gave up: {e}")
            raise ConflictError(f"Concurrent {sequence.name} numbering, retry the request") from e

        return dict(record, id=doc_ref.id)

    def get(self, collection: str, doc_id: str) -> Optional[Dict]:
        try:
            snapshot = self.db.collection(collection).document(doc_id).get()
        except gcp_exceptions.GoogleAPICallError as e:
            logger.error(f"Failed to read {collection}/{doc_id}: {e}", exc_info=True)
            raise StorageError(f"Failed to read {collection} document") from e
        if not snapshot.exists:
            return None
        return snapshot_to_dict(snapshot)

    def mutate(self, collection: str, doc_id: str, mutator: Mutator) -> Dict:
        doc_ref = self.db.collection(collection).document(doc_id)

        @firestore.transactional
        def read_check_write(transaction) -> Dict:
            snapshot = doc_ref.get(transaction=transaction)
            if not snapshot.exists:
                raise NotFoundError(f"{collection} document {doc_id} not found")
            current = snapshot_to_dict(snapshot)
            updates = mutator(dict(current))
            if updates:
                transaction.update(doc_ref, updates)
                current.update(updates)
            return current

        try:
            return read_check_write(self.db.transaction())
        except LifecycleError:
            raise
        except gcp_exceptions.GoogleAPICallError as e:
            logger.error(f"Failed to update {collection}/{doc_id}: {e}", exc_info=True)
            raise StorageError(f"Failed to update {collection} document") from e
        except ValueError as e:
            # Raised by the transaction wrapper once its retry attempts are exhausted
            logger.error(f"Transaction on {collection}/{doc_id} gave up: {e}")
            raise ConflictError(f"Concurrent updates on {collection} document, retry the request") from e

    def delete(self, collection: str, doc_id: str) -> bool:
        doc_ref = self.db.collection(collection).document(doc_id)
        try:
            if not doc_ref.get().exists:
                return False
            doc_ref.delete()
        except gcp_exceptions.GoogleAPICallError as e:
            logger.error(f"Failed to delete {collection}/{doc_id}: {e}", exc_info=True)
            raise StorageError(f"Failed to delete {collection} document") from e
        return True

    def query(self, collection: str, filters: Optional[Dict] = None) -> List[Dict]:
        query = self.db.collection(collection)
        for field, value in (filters or {}).items():
            query = where_filter(query, field, "==", value)
        try:
            return [snapshot_to_dict(doc) for doc in query.stream()]
        except gcp_exceptions.GoogleAPICallError as e:
            logger.error(f"Failed to query {collection}: {e}", exc_info=True)
            raise StorageError(f"Failed to query {collection}") from e

    def ping(self) -> Dict:
        collections = list(self.db.collections())
        return {"database": "firestore", "collections_count": len(collections)}
