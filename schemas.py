"""
Database Schemas

Pydantic models for the documents this API writes and the payloads it
accepts. Lessons are stored as-is and only ever patched, so they have
no model here.
- Order -> "Orders" collection
"""

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from typing import Optional, List, Union


class LessonRef(BaseModel):
    """
    One lesson entry of an incoming order.
    Deployments name the quantity field "availability" or "spaces";
    both are accepted and read as requestedQuantity.
    """
    model_config = ConfigDict(coerce_numbers_to_str=True)

    lessonID: str = Field(..., description="Lesson _id as string")
    requestedQuantity: int = Field(
        ...,
        validation_alias=AliasChoices("requestedQuantity", "availability", "spaces"),
        description="Number of places requested",
    )


class OrderIn(BaseModel):
    """
    Body of POST /order
    """
    model_config = ConfigDict(coerce_numbers_to_str=True)

    name: Optional[str] = Field(None, description="Customer name")
    phone: Optional[str] = Field(None, description="Customer phone number")
    lessons: List[LessonRef] = Field(..., description="Lessons being booked")
    totalPrice: Optional[Union[int, float]] = Field(None, description="Total as computed by the client")


class OrderLesson(BaseModel):
    """
    Embedded lesson line of a stored order (not a collection)
    """
    lessonID: str
    requestedQuantity: int


class Order(BaseModel):
    """
    Orders placed from the storefront
    Collection: Orders
    """
    orderNo: int = Field(..., ge=1, description="Sequential order number")
    name: Optional[str] = Field(None, description="Customer name")
    phone: Optional[str] = Field(None, description="Customer phone number")
    lessons: List[OrderLesson] = Field(..., description="Normalized lesson lines")
    totalPrice: Optional[Union[int, float]] = Field(None, description="Total as submitted, not recomputed")

    @classmethod
    def from_request(cls, order_no: int, payload: OrderIn) -> "Order":
        return cls(
            orderNo=order_no,
            name=payload.name,
            phone=payload.phone,
            lessons=[OrderLesson(**lesson.model_dump()) for lesson in payload.lessons],
            totalPrice=payload.totalPrice,
        )


class InsertResponse(BaseModel):
    insertedId: str
    orderNo: int


class UpdateResponse(BaseModel):
    acknowledged: bool
    modifiedCount: int
    upsertedId: Optional[str] = None
    upsertedCount: int
    matchedCount: int
