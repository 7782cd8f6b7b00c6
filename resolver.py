"""
Binding of resource names to MongoDB collections.

Routes either name their collection up front (``bind_collection("Lessons")``)
or take it from the ``{collection_name}`` path segment
(``collection_from_path``). Both resolve through the app's
``CollectionResolver`` and leave the handle on ``request.state.collection``.
"""

import logging
from functools import lru_cache, partial
from typing import Callable

from fastapi import Request
from pymongo.collection import Collection
from pymongo.errors import InvalidName

from database import Store
from errors import ResolutionError, ValidationError

logger = logging.getLogger(__name__)

LESSONS = "Lessons"
ORDERS = "Orders"
COUNTERS = "Counters"

# names come from request paths; at most this many accessors are kept
ACCESSOR_CACHE_SIZE = 128


class CollectionResolver:
    """Maps collection names to live handles of the store's database.

    Names are exact and case-sensitive. Accessors are created the first
    time a name is asked for, so any collection can be addressed without
    listing it here; the least recently used ones are dropped past
    ``ACCESSOR_CACHE_SIZE``.
    """

    def __init__(self, store: Store):
        self.store = store
        self._accessor = lru_cache(maxsize=ACCESSOR_CACHE_SIZE)(self._make_accessor)

    def _make_accessor(self, name: str) -> Callable[[], Collection]:
        if name.startswith("system."):
            raise InvalidName(f"collection name {name!r} is reserved")
        return partial(self.store.collection, name)

    def resolve(self, name: str) -> Collection:
        if not self.store.connected:
            raise ResolutionError(f"Cannot resolve collection {name!r} before the store is connected")
        try:
            return self._accessor(name)()
        except InvalidName as exc:
            raise ValidationError(f"Invalid collection name: {name}") from exc


def get_resolver(request: Request) -> CollectionResolver:
    return request.app.state.resolver


def _bind(request: Request, name: str) -> Collection:
    collection = get_resolver(request).resolve(name)
    request.state.collection = collection
    logger.info("Bound collection %s", collection.name)
    return collection


def bind_collection(name: str):
    """Dependency that binds the fixed collection ``name``."""

    def dependency(request: Request) -> Collection:
        return _bind(request, name)

    return dependency


def collection_from_path(collection_name: str, request: Request) -> Collection:
    return _bind(request, collection_name)
