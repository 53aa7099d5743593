"""
Conversion of records to store documents and to JSON.

Only the persistable fields of a record are ever written: the fields its
pydantic model declares plus extra fields assigned at runtime. Private
attributes never leave the process.
"""
import datetime
import json
from collections.abc import Mapping
from decimal import Decimal
from enum import Enum
from typing import Any, TYPE_CHECKING
from bson import DBRef, Decimal128, ObjectId
from pydantic_core import PydanticSerializationError, to_jsonable_python
from structlog import get_logger
from .exceptions import SerializationError

if TYPE_CHECKING:  # pragma: no cover
    from .record import Record

log = get_logger()

ID_KEYS = ("_id", "$id")


def to_bson(value: Any) -> Any:
    """
    Convert values pydantic accepts but BSON can't encode.
    """
    if isinstance(value, Enum):
        return to_bson(value.value)
    if isinstance(value, Decimal):
        return Decimal128(value)
    if isinstance(value, datetime.date) and not isinstance(value, datetime.datetime):
        return datetime.datetime.combine(value, datetime.time())
    if isinstance(value, Mapping):
        return {key: to_bson(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_bson(item) for item in value]
    return value


def to_document(record: "Record") -> dict[str, Any]:
    """
    Return the persistable fields of record, with _id first if it has one.
    """
    document: dict[str, Any] = {}
    if record.id is not None:
        document["_id"] = record.id
    document.update(record.model_dump(exclude={"id"}))
    # a plain "id" key loaded from a document is kept as an extra
    extra = record.__pydantic_extra__ or {}
    if "id" in extra:
        document["id"] = extra["id"]
    return to_bson(document)


def clean_ids(value: Any) -> Any:
    """
    Stringify ObjectIds and every value stored under an id key, at any depth.

    Decimal128 values become decimal strings, which JSON can hold exactly.
    """
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, Decimal128):
        return str(value.to_decimal())
    if isinstance(value, DBRef):
        value = dict(value.as_doc())
    if isinstance(value, Mapping):
        return {
            key: str(item) if key in ID_KEYS else clean_ids(item)
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [clean_ids(item) for item in value]
    return value


def _encode(data: Any) -> str:
    try:
        return json.dumps(to_jsonable_python(clean_ids(data)), sort_keys=True)
    except (TypeError, ValueError, PydanticSerializationError) as e:
        raise SerializationError(str(e)) from e


def to_json(data: Any) -> str | None:
    """
    Encode a document (or list of documents) as JSON with sorted keys.

    Returns None instead of raising if something can't be encoded.
    """
    try:
        return _encode(data)
    except SerializationError as e:
        log.error("json encoding failed", exception=str(e))
        return None
