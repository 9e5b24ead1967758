# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
MongoDB document store for visitor records, audit entries and operators.

The client is created lazily on first use and shared by every collection.
Documents leave the store with a string ``id`` in place of ``_id``; malformed
IDs behave like unknown ones.
"""

import os
import logging
from typing import List, Dict, Optional, Any
from pymongo import MongoClient, ASCENDING, DESCENDING
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import (
    ConnectionFailure,
    ServerSelectionTimeoutError,
    DuplicateKeyError,
    PyMongoError
)
from bson import ObjectId
from bson.errors import InvalidId

logger = logging.getLogger(__name__)

VISITORS_COLLECTION = "visitors"
LOGS_COLLECTION = "logs"
USERS_COLLECTION = "users"

INDEXES = {
    VISITORS_COLLECTION: [
        ([("cpf", ASCENDING), ("createdAt", DESCENDING)], {}),
        ([("room", ASCENDING), ("status", ASCENDING)], {}),
        ([("status", ASCENDING), ("createdAt", DESCENDING)], {}),
    ],
    LOGS_COLLECTION: [
        ([("timestamp", DESCENDING)], {}),
    ],
    USERS_COLLECTION: [
        ([("email", ASCENDING)], {"unique": True}),
    ],
}


class DuplicateDocumentError(ValueError):
    """Raised when an insert violates a unique index."""
    pass


def _externalize(document: Dict) -> Dict:
    """Replace the ObjectId ``_id`` with a string ``id``."""
    if "_id" in document:
        document["id"] = str(document.pop("_id"))
    return document


def _object_id(doc_id: str) -> Optional[ObjectId]:
    try:
        return ObjectId(doc_id)
    except (InvalidId, TypeError):
        logger.warning("Malformed document ID", extra={"doc_id": doc_id})
        return None


class MongoDBService:
    """MongoDB document store used by the visitor directory, audit log and identity provider."""

    def __init__(self, connection_string: str = None, database_name: str = None,
                 max_pool_size: int = None, server_selection_timeout_ms: int = None):
        """
        Initialize the store; no connection is opened until first use.

        Args:
            connection_string: MongoDB URI (defaults to MONGODB_URI)
            database_name: Database holding the portaria collections
            max_pool_size: Connection pool ceiling
            server_selection_timeout_ms: How long to wait for a reachable server
        """
        self.connection_string = connection_string or os.getenv(
            'MONGODB_URI',
            'mongodb://localhost:27017/portaria_dev'
        )
        self.database_name = database_name or os.getenv('MONGODB_DATABASE', 'portaria_dev')
        self.max_pool_size = max_pool_size or int(os.getenv('MONGODB_MAX_POOL_SIZE', '10'))
        self.server_selection_timeout_ms = server_selection_timeout_ms or int(
            os.getenv('MONGODB_SERVER_SELECTION_TIMEOUT_MS', '5000')
        )
        self._client: Optional[MongoClient] = None
        self._database: Optional[Database] = None

        logger.info(f"Document store configured for database: {self.database_name}")

    @property
    def client(self) -> MongoClient:
        """Shared client, connected and pinged on first access."""
        if self._client is None:
            client = MongoClient(
                self.connection_string,
                maxPoolSize=self.max_pool_size,
                serverSelectionTimeoutMS=self.server_selection_timeout_ms,
                tz_aware=True
            )
            try:
                client.admin.command('ping')
            except (ConnectionFailure, ServerSelectionTimeoutError) as e:
                logger.error(
                    "MongoDB unreachable",
                    extra={"database": self.database_name, "error": str(e)}
                )
                client.close()
                raise
            self._client = client
            logger.info("MongoDB connection established", extra={"database": self.database_name})

        return self._client

    @property
    def database(self) -> Database:
        if self._database is None:
            self._database = self.client[self.database_name]
        return self._database

    def get_collection(self, collection_name: str) -> Collection:
        return self.database[collection_name]

    def close_connection(self) -> None:
        """Close the pooled client, if one was opened."""
        if self._client is None:
            return
        self._client.close()
        self._client = None
        self._database = None
        logger.info("MongoDB connection closed")

    def health_check(self) -> Dict[str, Any]:
        """Ping the server and report collection sizes."""
        try:
            self.client.admin.command('ping')
            collections = {
                name: self.get_collection(name).estimated_document_count()
                for name in INDEXES
            }
        except PyMongoError as e:
            logger.error(f"Document store health check failed: {e}")
            return {
                'status': 'unhealthy',
                'error': str(e),
                'database': self.database_name
            }

        return {
            'status': 'healthy',
            'database': self.database_name,
            'collections': collections,
            'max_pool_size': self.max_pool_size
        }

    # Document operations

    def create(self, collection: str, document: Dict) -> str:
        """Insert a document and return its generated ID."""
        document = dict(document)
        document.setdefault("_id", ObjectId())

        try:
            result = self.get_collection(collection).insert_one(document)
        except DuplicateKeyError as e:
            logger.error(f"Duplicate key error in {collection}: {e}")
            raise DuplicateDocumentError("Document with this identifier already exists")
        except PyMongoError as e:
            logger.error(f"Insert into {collection} failed: {e}")
            raise

        doc_id = str(result.inserted_id)
        logger.info(f"Created document in {collection}: {doc_id}")
        return doc_id

    def find_one_by_id(self, collection: str, doc_id: str) -> Optional[Dict]:
        """Point read by document ID."""
        object_id = _object_id(doc_id)
        if object_id is None:
            return None

        document = self.get_collection(collection).find_one({"_id": object_id})
        if document is None:
            logger.debug(f"Document {doc_id} not found in {collection}")
            return None
        return _externalize(document)

    def update_by_id(self, collection: str, doc_id: str, updates: Dict) -> bool:
        """Set fields on a document; False when no document matched."""
        object_id = _object_id(doc_id)
        if object_id is None:
            return False

        try:
            result = self.get_collection(collection).update_one(
                {"_id": object_id}, {"$set": updates}
            )
        except PyMongoError as e:
            logger.error(f"Update of {doc_id} in {collection} failed: {e}")
            raise

        if result.matched_count == 0:
            logger.warning(f"No document updated for {doc_id} in {collection}")
            return False

        logger.info(f"Updated document {doc_id} in {collection}")
        return True

    def find(self, collection: str, filters: Dict = None, sort_by: str = None,
             sort_order: int = DESCENDING, limit: int = None) -> List[Dict]:
        """Equality query with optional ordering and limit."""
        cursor = self.get_collection(collection).find(filters or {})
        if sort_by:
            # ObjectIds grow with insertion time and break millisecond ties
            cursor = cursor.sort([(sort_by, sort_order), ("_id", sort_order)])
        if limit:
            cursor = cursor.limit(limit)

        documents = [_externalize(doc) for doc in cursor]
        logger.debug(f"Found {len(documents)} documents in {collection}")
        return documents

    def count(self, collection: str, filters: Dict = None) -> int:
        """Count documents matching an equality filter."""
        return self.get_collection(collection).count_documents(filters or {})

    def create_indexes(self) -> None:
        """Create the query and uniqueness indexes for every collection."""
        for name, indexes in INDEXES.items():
            target = self.get_collection(name)
            for keys, options in indexes:
                target.create_index(keys, **options)
        logger.info("MongoDB indexes ensured", extra={"collections": list(INDEXES)})
