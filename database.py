"""
MongoDB access.

``Store`` owns the one client of the process: the app factory builds it,
the lifespan connects and closes it, and handlers reach collections
through it. The module-level helpers wrap the few collection operations
the API needs and turn driver failures into ``StoreError``.
"""

import logging
from typing import Any, Dict, List, Optional, Union

from bson import ObjectId
from bson.errors import BSONError
from pydantic import BaseModel
from pymongo import MongoClient, ReturnDocument
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import PyMongoError
from pymongo.server_api import ServerApi

from errors import ResolutionError, StoreError

logger = logging.getLogger(__name__)

# bson encoding failures (oversized ints, unencodable values) are not PyMongoErrors
DRIVER_ERRORS = (PyMongoError, BSONError, OverflowError)


class Store:
    def __init__(self, uri: str, database_name: str, timeout_ms: int = 5000,
                 client: Optional[MongoClient] = None):
        self.uri = uri
        self.database_name = database_name
        self.timeout_ms = timeout_ms
        self.client = client
        self.db: Optional[Database] = None

    @property
    def connected(self) -> bool:
        return self.db is not None

    def connect(self) -> None:
        """Open the client and check the server answers. Raises ``StoreError`` otherwise."""
        try:
            if self.client is None:
                self.client = MongoClient(
                    self.uri,
                    server_api=ServerApi("1"),
                    serverSelectionTimeoutMS=self.timeout_ms,
                )
            self.client.admin.command("ping")
        except PyMongoError as exc:
            logger.error("MongoDB connection error: %s", exc)
            raise StoreError("MongoDB connection failed") from exc
        self.db = self.client[self.database_name]
        logger.info("Connected to MongoDB database %s", self.database_name)

    def collection(self, name: str) -> Collection:
        if self.db is None:
            raise ResolutionError(f"Store not connected, cannot bind collection {name!r}")
        return self.db[name]

    def close(self) -> None:
        if self.client is not None:
            self.client.close()
            logger.info("MongoDB connection closed")
        self.client = None
        self.db = None


def serialize_document(value: Any) -> Any:
    """Render ObjectIds as hex strings, recursively."""
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, dict):
        return {key: serialize_document(item) for key, item in value.items()}
    if isinstance(value, list):
        return [serialize_document(item) for item in value]
    return value


def get_documents(collection: Collection, filter_dict: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
    try:
        documents = list(collection.find(filter_dict or {}))
    except DRIVER_ERRORS as exc:
        raise StoreError(f"Failed to read {collection.name}") from exc
    return [serialize_document(doc) for doc in documents]


def create_document(collection: Collection, data: Union[BaseModel, dict]) -> str:
    if isinstance(data, BaseModel):
        data_dict = data.model_dump()
    else:
        data_dict = dict(data)
    try:
        result = collection.insert_one(data_dict)
    except DRIVER_ERRORS as exc:
        raise StoreError(f"Failed to insert into {collection.name}") from exc
    return str(result.inserted_id)


def update_document(collection: Collection, filter_dict: Dict[str, Any], patch: Dict[str, Any]) -> Dict[str, Any]:
    """Merge ``patch`` into the first document matching ``filter_dict``."""
    try:
        result = collection.update_one(filter_dict, {"$set": patch})
    except DRIVER_ERRORS as exc:
        raise StoreError(f"Failed to update {collection.name}") from exc
    return {
        "acknowledged": result.acknowledged,
        "modifiedCount": result.modified_count,
        "upsertedId": serialize_document(result.upserted_id),
        "upsertedCount": 0 if result.upserted_id is None else 1,
        "matchedCount": result.matched_count,
    }


def next_sequence(collection: Collection, name: str) -> int:
    """Atomically increment and return the counter called ``name``."""
    try:
        counter = collection.find_one_and_update(
            {"_id": name},
            {"$inc": {"seq": 1}},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
    except DRIVER_ERRORS as exc:
        raise StoreError(f"Failed to allocate {name}") from exc
    return int(counter["seq"])
