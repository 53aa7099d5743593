import threading
from typing import Any, Callable, TYPE_CHECKING
from pymongo.collection import Collection
from structlog import get_logger
from .exceptions import ConfigurationError, StoreConnectionError

if TYPE_CHECKING:  # pragma: no cover
    from .record import Record

log = get_logger()

WriteErrorHook = Callable[["Record", Exception], Any]


class Store:
    """
    A connection to one database, shared by any number of record types.

    Collection handles are bound lazily per record type and cached for the
    lifetime of the store.
    """

    def __init__(
        self,
        database: Any,
        *,
        counter_collection: str = "counter",
        on_write_error: WriteErrorHook | None = None,
    ):
        self.database = database
        self.counter_collection = counter_collection
        self.on_write_error = on_write_error
        self._collections: dict[type, Collection] = {}
        self._lock = threading.Lock()

    def __repr__(self) -> str:
        name = getattr(self.database, "name", None)
        return f"Store({name})"

    def _check_database(self) -> None:
        if self.database is None or not callable(
            getattr(self.database, "get_collection", None)
        ):
            raise StoreConnectionError(
                f"records need a database connection, got {self.database!r}"
            )

    def collection(self, record_cls: type["Record"]) -> Collection:
        """
        Return the collection bound to record_cls, binding it on first use.
        """
        # fast path, bindings are never replaced once made
        if (coll := self._collections.get(record_cls)) is not None:
            return coll
        with self._lock:
            if (coll := self._collections.get(record_cls)) is not None:
                return coll
            name = getattr(record_cls, "collection_name", None)
            if not name:
                raise ConfigurationError(
                    f"collection_name undefined in {record_cls.__name__}"
                )
            self._check_database()
            coll = self.database.get_collection(name)
            self._collections[record_cls] = coll
            log.debug("bound collection", record=record_cls.__name__, collection=name)
            return coll

    def counters(self) -> Collection:
        self._check_database()
        return self.database.get_collection(self.counter_collection)

    def report_write_error(self, record: "Record", exc: Exception) -> None:
        """
        Record a write failure that was absorbed instead of raised.
        """
        log.error(
            "write failed",
            record=type(record).__name__,
            id=str(record.id),
            exception=repr(exc),
        )
        if self.on_write_error is not None:
            self.on_write_error(record, exc)
