"""Helpers shared by the document-backed services."""

from datetime import datetime, timezone
from typing import List, Optional, Type, TypeVar

from bson import ObjectId
from pydantic import BaseModel, ValidationError

from app.core.exceptions import NotFoundException, ValidationException

ModelT = TypeVar("ModelT", bound=BaseModel)


def utcnow() -> datetime:
    return datetime.utcnow()


def as_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Motor returns naive UTC datetimes, so inbound values are stored the same way."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def parse_object_id(value: str, not_found_message: str) -> ObjectId:
    """Malformed ids are reported as missing records, not as bad requests."""
    if not isinstance(value, str) or not ObjectId.is_valid(value):
        raise NotFoundException(not_found_message)
    return ObjectId(value)


def serialize(doc: dict) -> dict:
    """Swap Mongo's _id for a string id."""
    doc["id"] = str(doc.pop("_id"))
    return doc


def format_validation_errors(exc: ValidationError) -> List[str]:
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()))
        message = error["msg"].removeprefix("Value error, ")
        messages.append(f"{location}: {message}" if location else message)
    return messages


def validate_model(model: Type[ModelT], data: dict) -> ModelT:
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise ValidationException(format_validation_errors(e))


def validate_merged(model: Type[ModelT], existing: dict, changes: dict) -> ModelT:
    """
    Apply a partial update over the stored document and validate the result.

    Cross-field rules (max > min, end after start) only hold if they are
    checked against the merged record rather than the patch alone.
    """
    merged = {key: value for key, value in existing.items() if key in model.model_fields}
    merged.update(changes)
    return validate_model(model, merged)
