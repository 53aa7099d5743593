from typing import Any, Iterator, Sequence, TYPE_CHECKING
from structlog import get_logger
from . import serialize

if TYPE_CHECKING:  # pragma: no cover
    from .record import Record
    from .store import Store

log = get_logger()


class RecordIterator:
    """
    Iterate over a fixed list of ids, loading each record when reached.

    Records whose document was deleted after the ids were listed are
    skipped. Iteration is forward only; call rewind() to start over, which
    reloads the documents for the same ids.
    """

    def __init__(
        self, store: "Store", record_cls: type["Record"], ids: Sequence[Any]
    ):
        self.store = store
        self.record_cls = record_cls
        self._ids = list(ids)
        self._position = 0

    def __repr__(self) -> str:
        return (
            f"RecordIterator({self.record_cls.__name__}, "
            f"{self._position}/{len(self._ids)})"
        )

    def __len__(self) -> int:
        return len(self._ids)

    @property
    def ids(self) -> tuple[Any, ...]:
        return tuple(self._ids)

    def rewind(self) -> None:
        self._position = 0

    def valid(self) -> bool:
        return self._position < len(self._ids)

    def key(self) -> Any | None:
        return self._ids[self._position] if self.valid() else None

    def advance(self) -> None:
        self._position += 1

    def current(self) -> "Record | None":
        """
        Load the record at the current position.

        Vanished documents are skipped, moving the position forward.
        Returns None once the ids are exhausted.
        """
        while self.valid():
            id_ = self._ids[self._position]
            if (record := self.record_cls._load(self.store, id_)) is not None:
                return record
            log.warning(
                "document vanished", record=self.record_cls.__name__, id=str(id_)
            )
            self.advance()
        return None

    def __iter__(self) -> Iterator["Record"]:
        return self

    def __next__(self) -> "Record":
        record = self.current()
        if record is None:
            raise StopIteration
        self.advance()
        return record

    def to_json(self) -> str | None:
        """
        Encode all records that still exist as a JSON array.

        Independent of the current position.
        """
        documents = []
        for id_ in self._ids:
            if (record := self.record_cls._load(self.store, id_)) is not None:
                documents.append(record.to_document())
        return serialize.to_json(documents)
