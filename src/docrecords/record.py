import datetime
from typing import Any, ClassVar, Mapping, Sequence
from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, ValidationError
from pymongo.collection import Collection
from pymongo.cursor import Cursor
from pymongo.errors import PyMongoError
from structlog import get_logger
from . import serialize
from ._models import IdStrategy, SearchOptions, UpdateOptions
from .exceptions import (
    DocumentNotFound,
    StoreConnectionError,
    StoreOperationError,
)
from .ids import DEFAULT_RANDOM_ID_LENGTH, allocate_id, resolve_strategy
from .iterator import RecordIterator
from .store import Store

log = get_logger()


class Record(BaseModel):
    """
    Base class for records that are stored as documents in a collection.

    Subclasses declare their fields like any pydantic model, plus:

        collection_name: name of the collection (required)
        use_sequence_id: use incrementing integer ids from a counter
        use_random_id: use random numeric string ids
        random_id_length: digits in a random id (5 means 10000 to 99999)

    Declared fields and extra attributes assigned at runtime are persisted,
    private attributes are not.
    """

    model_config = ConfigDict(
        extra="allow", arbitrary_types_allowed=True, populate_by_name=True
    )

    collection_name: ClassVar[str | None] = None
    use_sequence_id: ClassVar[bool] = False
    use_random_id: ClassVar[bool] = False
    random_id_length: ClassVar[int] = DEFAULT_RANDOM_ID_LENGTH

    id: Any = Field(default=None, alias="_id")
    _store: Store | None = PrivateAttr(None)

    def __init__(self, store: Store | None = None, /, **data: Any):
        """
        Create a new, unsaved record. Use load() for stored records.

        Without a store the record only validates its fields; any operation
        that needs the store raises StoreConnectionError.
        """
        super().__init__(**data)
        self._store = store
        if store is not None:
            # fail early on a missing collection_name or connection
            store.collection(type(self))

    @classmethod
    def _empty(cls, store: Store) -> "Record":
        # fields are filled from a document, so skip validation
        record = cls.model_construct()
        record._store = store
        store.collection(cls)
        return record

    @classmethod
    def load(cls, store: Store, id_: Any) -> "Record":
        """
        Load the record with the given id.

        Raises DocumentNotFound if there is no such document.
        """
        if (record := cls._load(store, id_)) is None:
            raise DocumentNotFound(
                f"no document with id {id_!r} in {cls.collection_name}"
            )
        return record

    @property
    def store(self) -> Store:
        if self._store is None:
            raise StoreConnectionError(
                f"{type(self).__name__} is not bound to a store"
            )
        return self._store

    @property
    def created_at(self) -> datetime.datetime | None:
        """
        Creation time of the record, if its id is an ObjectId.
        """
        if isinstance(self.id, ObjectId):
            return self.id.generation_time
        return None

    @classmethod
    def coerce_id(cls, id_: Any) -> Any:
        """
        Convert 24 character hex strings to ObjectIds for store assigned ids.
        """
        if (
            isinstance(id_, str)
            and len(id_) == 24
            and resolve_strategy(cls) is IdStrategy.opaque
            and ObjectId.is_valid(id_)
        ):
            return ObjectId(id_)
        return id_

    # section: collection ######################################################

    @classmethod
    def collection(cls, store: Store) -> Collection:
        return store.collection(cls)

    @classmethod
    def count(cls, store: Store, query: Mapping[str, Any] | None = None) -> int:
        return cls.collection(store).count_documents(query or {})

    @classmethod
    def find(
        cls,
        store: Store,
        query: Mapping[str, Any] | None = None,
        fields: Mapping[str, Any] | Sequence[str] | None = None,
    ) -> Cursor:
        return cls.collection(store).find(query or {}, fields)

    @classmethod
    def ensure_index(cls, store: Store, keys: Any, **kwargs: Any) -> str:
        return cls.collection(store).create_index(keys, **kwargs)

    # section: loading #########################################################

    def retrieve_document(self, query: Mapping[str, Any]) -> bool:
        """
        Load the first document matching query into this record.

        Returns False if nothing matched.
        """
        document = self.collection(self.store).find_one(query)
        if document is None:
            return False
        try:
            validated = dict(type(self).model_validate(document))
        except ValidationError as e:
            # keep the raw values, the store is not schema checked
            log.warning(
                "document does not match model",
                record=type(self).__name__,
                id=str(document.get("_id")),
                errors=e.error_count(),
            )
            validated = {}
        for key, value in document.items():
            if key == "_id":
                self.id = value
            elif key.startswith("_") or key == "id":
                # not settable as an attribute, but still part of the document
                self.__pydantic_extra__[key] = value  # type: ignore[index]
            else:
                setattr(self, key, validated.get(key, value))
        return True

    @classmethod
    def _load(cls, store: Store, id_: Any) -> "Record | None":
        record = cls._empty(store)
        if record.retrieve_document({"_id": cls.coerce_id(id_)}):
            return record
        return None

    @classmethod
    def search(
        cls,
        store: Store,
        query: Mapping[str, Any] | None = None,
        sort: Any = None,
        *,
        skip: int = 0,
        limit: int = 0,
    ) -> RecordIterator:
        """
        Find the ids of all matching documents and iterate over them lazily.

        Only ids are read here, each record is loaded when the iterator
        reaches it.
        """
        options = SearchOptions(query=query, sort=sort, skip=skip, limit=limit)
        cursor = cls.collection(store).find(options.query, {"_id": 1})
        if options.sort:
            cursor = cursor.sort(options.sort)
        if options.skip:
            cursor = cursor.skip(options.skip)
        if options.limit:
            cursor = cursor.limit(options.limit)
        return RecordIterator(store, cls, [doc["_id"] for doc in cursor])

    @classmethod
    def search_one(cls, store: Store, query: Mapping[str, Any]) -> "Record":
        """
        Load the first record matching query.

        If the query matches several documents the store just returns the
        first one; this can't be detected here.
        """
        record = cls._empty(store)
        if not record.retrieve_document(query) or record.id is None:
            raise DocumentNotFound(
                f"no document matching {dict(query)!r} in {cls.collection_name}"
            )
        return record

    # section: writing #########################################################

    def update(self, *, force_insert: bool = False, preserve_id: bool = False) -> bool:
        """
        Save this record, inserting it if it has no id yet.

        Args:
            force_insert: Insert even though the record already has an id.
            preserve_id: On insert, keep the current id instead of allocating one.

        Existing documents are replaced entirely. A failed replace is reported
        through the store's write error hook and returns False instead of
        raising; True only means the store accepted the write.
        """
        options = UpdateOptions(force_insert=force_insert, preserve_id=preserve_id)
        document = self.to_document()

        if self.id is None or options.force_insert:
            if not options.preserve_id:
                new_id = allocate_id(self.store, type(self))
                if new_id is None:
                    document.pop("_id", None)
                else:
                    document["_id"] = new_id
            result = self.collection(self.store).insert_one(document)
            self.id = result.inserted_id
            log.debug("inserted", record=type(self).__name__, id=str(self.id))
            return True
        return self.update_document(document)

    def update_document(self, data: Mapping[str, Any], *, upsert: bool = False) -> bool:
        """
        Write data to the document with this record's id.

        A mapping of update operators ($set, $inc, ...) is applied atomically,
        anything else replaces the document. Returns False if the write failed.
        """
        collection = self.collection(self.store)
        where = {"_id": self.id}
        try:
            if data and all(str(key).startswith("$") for key in data):
                result = collection.update_one(where, data, upsert=upsert)
            else:
                result = collection.replace_one(where, data, upsert=upsert)
        except PyMongoError as e:
            error = StoreOperationError(f"update of {self.id!r} failed: {e}")
            error.__cause__ = e
            self.store.report_write_error(self, error)
            return False
        log.debug("updated", record=type(self).__name__, id=str(self.id))
        return result.acknowledged

    def delete(self) -> bool:
        """
        Remove this record's document.

        Returns False without touching the store if the record has no id.
        The record keeps its (now stale) id.
        """
        if self.id is None:
            return False
        try:
            result = self.collection(self.store).delete_one({"_id": self.id})
        except PyMongoError as e:
            log.error(
                "delete failed",
                record=type(self).__name__,
                id=str(self.id),
                exception=repr(e),
            )
            return False
        return result.acknowledged and result.deleted_count > 0

    # section: serialization ###################################################

    def to_document(self) -> dict[str, Any]:
        return serialize.to_document(self)

    def to_json(self) -> str | None:
        return serialize.to_json(self.to_document())
