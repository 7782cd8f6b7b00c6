import logging
import re
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from bson import ObjectId
from bson.errors import InvalidId
from fastapi import APIRouter, Body, Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from pydantic import ValidationError as PydanticValidationError
from pymongo import MongoClient
from pymongo.collection import Collection
from starlette.concurrency import run_in_threadpool

from config import Settings, settings as default_settings
from database import Store, create_document, get_documents, next_sequence, update_document
from errors import InvalidIdentity, NotFound, ValidationError, register_exception_handlers
from logging_config import configure_logging
from pretty_json import PrettyJSONResponse
from resolver import COUNTERS, LESSONS, ORDERS, CollectionResolver, bind_collection, collection_from_path
from schemas import InsertResponse, Order, OrderIn, UpdateResponse

logger = logging.getLogger(__name__)

ALLOWED_METHODS = ["GET", "POST", "PUT"]

router = APIRouter()

# ---------- Helpers ----------

# Leading integer, read the way the storefront's parseInt reads it ("12abc" -> 12).
_LEADING_INT = re.compile(r"\s*([+-]?[0-9]+)")

# BSON stores integers in at most 8 bytes
INT64_MIN, INT64_MAX = -2 ** 63, 2 ** 63 - 1


def parse_order_number(value: str) -> Optional[int]:
    """Leading integer of ``value``, or None when there is none or it cannot be stored."""
    match = _LEADING_INT.match(value)
    if not match:
        return None
    number = int(match.group(1))
    if not INT64_MIN <= number <= INT64_MAX:
        return None
    return number


def parse_object_id(value: str) -> ObjectId:
    try:
        return ObjectId(value)
    except (InvalidId, TypeError) as exc:
        raise InvalidIdentity() from exc


def check_patch(patch: Dict[str, Any]) -> None:
    if not patch:
        raise ValidationError("Update body must not be empty")
    if "_id" in patch:
        raise ValidationError("_id cannot be updated")


def _update_lesson(lesson_id: str, patch: Dict[str, Any], lessons: Collection, label: str) -> Dict[str, Any]:
    object_id = parse_object_id(lesson_id)
    check_patch(patch)
    result = update_document(lessons, {"_id": object_id}, patch)
    if result["matchedCount"] == 0:
        raise NotFound(f"{label} not found")
    logger.info("Updated %s %s", label.lower(), lesson_id)
    return result

# ---------- Routes ----------

@router.get("/")
def root():
    return {"message": "Lesson booking backend running"}


@router.get("/lessons")
def list_lessons(lessons: Collection = Depends(bind_collection(LESSONS))):
    docs = get_documents(lessons)
    logger.info("Retrieved %d lessons", len(docs))
    return docs


@router.put("/lessons/{lesson_id}", response_model=UpdateResponse)
def update_lesson(lesson_id: str, patch: Dict[str, Any] = Body(...),
                  lessons: Collection = Depends(bind_collection(LESSONS))):
    return _update_lesson(lesson_id, patch, lessons, "Lesson")


@router.put("/programs/{program_id}", response_model=UpdateResponse)
def update_program(program_id: str, patch: Dict[str, Any] = Body(...),
                   lessons: Collection = Depends(bind_collection(LESSONS))):
    return _update_lesson(program_id, patch, lessons, "Program")


@router.get("/orders")
def list_orders(orders: Collection = Depends(bind_collection(ORDERS))):
    docs = get_documents(orders)
    logger.info("Retrieved %d orders", len(docs))
    return docs


@router.post("/order", response_model=InsertResponse)
def create_order(payload: Dict[str, Any] = Body(...),
                 orders: Collection = Depends(bind_collection(ORDERS)),
                 counters: Collection = Depends(bind_collection(COUNTERS))):
    try:
        order_in = OrderIn.model_validate(payload)
    except PydanticValidationError as exc:
        logger.warning("Rejected order payload: %s", exc.errors())
        raise ValidationError("Failed to create order") from exc

    order_no = next_sequence(counters, "orderNo")
    inserted_id = create_document(orders, Order.from_request(order_no, order_in))
    logger.info("Posted order %d as %s", order_no, inserted_id)
    return {"insertedId": inserted_id, "orderNo": order_no}


@router.put("/order/{order_no}", response_model=UpdateResponse)
def update_order(order_no: str, patch: Dict[str, Any] = Body(...),
                 orders: Collection = Depends(bind_collection(ORDERS))):
    number = parse_order_number(order_no)
    if number is None:
        # not a storable number, so no order can match it
        raise NotFound("Order not found")
    check_patch(patch)
    result = update_document(orders, {"orderNo": number}, patch)
    if result["matchedCount"] == 0:
        raise NotFound("Order not found")
    logger.info("Updated order %d", number)
    return result


@router.get("/collections/{collection_name}")
def list_collection(collection: Collection = Depends(collection_from_path)):
    docs = get_documents(collection)
    logger.info("Retrieved %d documents from %s", len(docs), collection.name)
    return docs

# ---------- App ----------

async def log_requests(request: Request, call_next):
    target = request.url.path
    if request.url.query:
        target = f"{target}?{request.url.query}"
    logger.info("%s %s - %s", request.method, target, datetime.now(timezone.utc).isoformat())
    return await call_next(request)


def create_app(app_settings: Optional[Settings] = None, client: Optional[MongoClient] = None) -> FastAPI:
    """Build the API around one ``Store``.

    ``client`` replaces the MongoClient the store would otherwise open
    from the settings' connection string.
    """
    app_settings = app_settings or default_settings
    configure_logging(app_settings)

    store = Store(app_settings.database_uri, app_settings.database_name,
                  timeout_ms=app_settings.db_timeout_ms, client=client)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # a failed connection aborts startup, so nothing is served without a store
        await run_in_threadpool(store.connect)
        yield
        logger.info("Shutting down gracefully...")
        await run_in_threadpool(store.close)

    app = FastAPI(title=app_settings.project_name, lifespan=lifespan,
                  default_response_class=PrettyJSONResponse)
    app.state.settings = app_settings
    app.state.store = store
    app.state.resolver = CollectionResolver(store)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.allowed_origins,
        allow_methods=ALLOWED_METHODS,
        allow_headers=["Content-Type"],
    )
    app.middleware("http")(log_requests)
    register_exception_handlers(app)

    images_dir = Path(app_settings.images_dir).resolve()
    images_dir.mkdir(parents=True, exist_ok=True)
    app.mount("/images", StaticFiles(directory=images_dir), name="images")

    app.include_router(router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=default_settings.port)
