import random
from typing import Any, TYPE_CHECKING
from pymongo import ReturnDocument
from pymongo.collection import Collection
from structlog import get_logger
from ._models import IdStrategy
from .exceptions import ConfigurationError

if TYPE_CHECKING:  # pragma: no cover
    from .record import Record
    from .store import Store

log = get_logger()

DEFAULT_RANDOM_ID_LENGTH = 6


def resolve_strategy(record_cls: type["Record"]) -> IdStrategy:
    """
    Determine the id strategy a record type declares.

    If both use_sequence_id and use_random_id are set, sequential wins.
    """
    if getattr(record_cls, "use_sequence_id", False):
        return IdStrategy.sequential
    if getattr(record_cls, "use_random_id", False):
        return IdStrategy.random
    return IdStrategy.opaque


def next_sequence_id(store: "Store", key: str) -> int:
    """
    Atomically increment and return the counter for key.

    The counter document is created on first use, so the first id is 1.
    """
    counter = store.counters().find_one_and_update(
        {"_id": key},
        {"$inc": {"seq": 1}},
        upsert=True,
        return_document=ReturnDocument.AFTER,
    )
    return int(counter["seq"])


def random_id(collection: Collection, length: int = DEFAULT_RANDOM_ID_LENGTH) -> str:
    """
    Draw random ids of the given digit length until one is not yet taken.

    The check and the later insert are not atomic: only use this where a
    single writer inserts into the collection or collisions are improbable.
    """
    if length < 1:
        raise ConfigurationError(f"random_id_length must be positive, got {length}")
    low, high = 10 ** (length - 1), 10**length - 1
    while True:
        candidate = str(random.randint(low, high))
        if collection.find_one({"_id": candidate}, {"_id": 1}) is None:
            return candidate
        log.debug("random id collision", id=candidate, collection=collection.name)


def allocate_id(store: "Store", record_cls: type["Record"]) -> Any | None:
    """
    Return a new id for record_cls, or None to let the store assign one.
    """
    strategy = resolve_strategy(record_cls)
    if strategy is IdStrategy.sequential:
        new_id: Any = next_sequence_id(store, record_cls.collection_name)
    elif strategy is IdStrategy.random:
        new_id = random_id(
            store.collection(record_cls),
            getattr(record_cls, "random_id_length", DEFAULT_RANDOM_ID_LENGTH),
        )
    else:
        return None
    log.debug(
        "allocated id",
        record=record_cls.__name__,
        strategy=strategy.value,
        id=new_id,
    )
    return new_id
