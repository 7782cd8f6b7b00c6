"""
Pytest configuration and fixtures for the lesson booking API tests.

The MongoDB client is replaced by a small in-memory fake that supports
the handful of operations the API performs, injected through
``create_app(settings, client=...)``.
"""

import copy
import os
import tempfile

import bson
import pytest
from bson import ObjectId
from fastapi.testclient import TestClient
from pymongo.errors import InvalidName, OperationFailure, ServerSelectionTimeoutError
from pymongo.results import InsertOneResult, UpdateResult

# Keep the module-level app in main.py from creating ./images
os.environ.setdefault("IMAGES_DIR", tempfile.mkdtemp(prefix="lessons_test_images_"))

from config import Settings
from main import create_app

_MISSING = object()


def _matches(document, filter_dict):
    return all(document.get(key, _MISSING) == value for key, value in filter_dict.items())


class FakeCollection:
    """In-memory collection; arguments go through bson.encode as pymongo sends them."""

    def __init__(self, name):
        self.name = name
        self.documents = []
        self.fail = False

    def _check(self):
        if self.fail:
            raise OperationFailure(f"simulated failure on {self.name}")

    def find(self, filter_dict=None):
        self._check()
        bson.encode(filter_dict or {})
        return [copy.deepcopy(doc) for doc in self.documents if _matches(doc, filter_dict or {})]

    def insert_one(self, document):
        self._check()
        bson.encode(document)
        document.setdefault("_id", ObjectId())
        self.documents.append(copy.deepcopy(document))
        return InsertOneResult(document["_id"], True)

    def update_one(self, filter_dict, update):
        self._check()
        bson.encode(filter_dict)
        bson.encode(update)
        patch = update["$set"]
        for doc in self.documents:
            if _matches(doc, filter_dict):
                changed = any(doc.get(key, _MISSING) != value for key, value in patch.items())
                doc.update(copy.deepcopy(patch))
                return UpdateResult({"n": 1, "nModified": int(changed)}, True)
        return UpdateResult({"n": 0, "nModified": 0}, True)

    def find_one_and_update(self, filter_dict, update, upsert=False, return_document=None):
        self._check()
        doc = next((d for d in self.documents if _matches(d, filter_dict)), None)
        if doc is None:
            if not upsert:
                return None
            doc = dict(filter_dict)
            self.documents.append(doc)
        for key, amount in update.get("$inc", {}).items():
            doc[key] = doc.get(key, 0) + amount
        return copy.deepcopy(doc)


class FakeDatabase:
    def __init__(self, name):
        self.name = name
        self.collections = {}

    def __getitem__(self, name):
        if not name or "$" in name:
            raise InvalidName(f"collection name {name!r} is invalid")
        return self.collections.setdefault(name, FakeCollection(name))


class FakeAdmin:
    def __init__(self, client):
        self.client = client

    def command(self, name):
        if self.client.down:
            raise ServerSelectionTimeoutError("no servers available")
        return {"ok": 1}


class FakeMongoClient:
    def __init__(self, down=False):
        self.down = down
        self.closed = False
        self.databases = {}
        self.admin = FakeAdmin(self)

    def __getitem__(self, name):
        return self.databases.setdefault(name, FakeDatabase(name))

    def close(self):
        self.closed = True


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url="mongodb://fake-host:27017/",
        database_name="Webstore",
        images_dir=str(tmp_path / "images"),
        cors_origins="https://errolee.github.io",
    )


@pytest.fixture
def mongo():
    return FakeMongoClient()


@pytest.fixture
def db(mongo, settings):
    return mongo[settings.database_name]


@pytest.fixture
def app(settings, mongo):
    return create_app(settings, client=mongo)


@pytest.fixture
def client(app):
    """Test client with the lifespan running, so the store is connected."""
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client


@pytest.fixture
def lessons(db):
    """Two lessons already stored in the Lessons collection."""
    docs = [
        {"_id": ObjectId(), "topic": "Math", "price": 100, "space": 5, "location": "London"},
        {"_id": ObjectId(), "topic": "Music", "price": 80, "space": 3, "location": "Oxford"},
    ]
    db["Lessons"].documents.extend(copy.deepcopy(docs))
    return docs


@pytest.fixture
def order_body():
    return {
        "name": "A",
        "phone": "123",
        "lessons": [{"lessonID": "L1", "availability": 2}],
        "totalPrice": 40,
    }
