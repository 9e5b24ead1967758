# SPDX-License-Identifier: Apache-2.0

"""
In-process document store for local development and tests.

This module mirrors the MongoDBService interface (create, point read,
field update, equality query with ordering and limit, count) over plain
dictionaries, so services can run without a MongoDB server.
"""

import copy
import logging
from typing import List, Dict, Optional, Any
from bson import ObjectId

from .mongodb import DuplicateDocumentError, USERS_COLLECTION

logger = logging.getLogger(__name__)

DEFAULT_UNIQUE_FIELDS = {USERS_COLLECTION: ("email",)}


class InMemoryDocumentStore:
    """
    Document store held in process memory.

    Documents are copied on the way in and out, so callers never share
    state with the store. Ties in the sort field are broken by insertion
    order, newest first when sorting descending.
    """

    def __init__(self, unique_fields: Optional[Dict[str, tuple]] = None):
        self._collections: Dict[str, Dict[str, Dict]] = {}
        self.unique_fields = DEFAULT_UNIQUE_FIELDS if unique_fields is None else unique_fields
        self.database_name = "memory"
        logger.info("In-memory document store initialized")

    def _collection(self, name: str) -> Dict[str, Dict]:
        return self._collections.setdefault(name, {})

    @staticmethod
    def _matches(document: Dict, filters: Optional[Dict]) -> bool:
        if not filters:
            return True
        return all(document.get(field) == value for field, value in filters.items())

    @staticmethod
    def _externalize(doc_id: str, document: Dict) -> Dict:
        result = copy.deepcopy(document)
        result["id"] = doc_id
        return result

    def create(self, collection: str, document: Dict) -> str:
        """Insert a document and return its generated ID."""
        documents = self._collection(collection)
        document = copy.deepcopy(document)
        doc_id = str(document.pop("_id", None) or ObjectId())

        for field in self.unique_fields.get(collection, ()):
            value = document.get(field)
            if any(existing.get(field) == value for existing in documents.values()):
                logger.error(f"Duplicate key error in {collection}: {field}={value}")
                raise DuplicateDocumentError("Document with this identifier already exists")

        documents[doc_id] = document
        logger.info(f"Created document in {collection}: {doc_id}")
        return doc_id

    def find_one_by_id(self, collection: str, doc_id: str) -> Optional[Dict]:
        """Point read by document ID."""
        document = self._collection(collection).get(doc_id)
        if document is None:
            logger.debug(f"Document {doc_id} not found in {collection}")
            return None
        return self._externalize(doc_id, document)

    def update_by_id(self, collection: str, doc_id: str, updates: Dict) -> bool:
        """Set fields on a document; False when no document matched."""
        document = self._collection(collection).get(doc_id)
        if document is None:
            logger.warning(f"No document updated for {doc_id} in {collection}")
            return False
        document.update(copy.deepcopy(updates))
        logger.info(f"Updated document {doc_id} in {collection}")
        return True

    def find(self, collection: str, filters: Dict = None, sort_by: str = None,
             sort_order: int = -1, limit: int = None) -> List[Dict]:
        """Equality query with optional ordering and limit."""
        matches = [
            self._externalize(doc_id, document)
            for doc_id, document in self._collection(collection).items()
            if self._matches(document, filters)
        ]

        if sort_by:
            if sort_order < 0:
                matches.reverse()
            present = [doc for doc in matches if doc.get(sort_by) is not None]
            missing = [doc for doc in matches if doc.get(sort_by) is None]
            present.sort(key=lambda doc: doc[sort_by], reverse=sort_order < 0)
            # MongoDB orders missing fields lowest
            matches = present + missing if sort_order < 0 else missing + present

        if limit:
            matches = matches[:limit]

        logger.debug(f"Found {len(matches)} documents in {collection}")
        return matches

    def count(self, collection: str, filters: Dict = None) -> int:
        """Count documents matching an equality filter."""
        return sum(1 for document in self._collection(collection).values()
                   if self._matches(document, filters))

    def create_indexes(self) -> None:
        """Indexes are implicit; unique fields are enforced on insert."""
        logger.debug("In-memory store does not maintain indexes")

    def health_check(self) -> Dict[str, Any]:
        """Report collection sizes."""
        return {
            'status': 'healthy',
            'database': self.database_name,
            'collections': {name: len(docs) for name, docs in self._collections.items()}
        }

    def close_connection(self) -> None:
        """Nothing to release."""
        logger.debug("In-memory store closed")
