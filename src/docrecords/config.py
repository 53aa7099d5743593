import logging
import structlog
import pydantic
from pymongo import MongoClient
from pymongo.errors import PyMongoError
from pydantic_settings import BaseSettings, SettingsConfigDict
from .exceptions import StoreConnectionError
from .store import Store


class Config(BaseSettings):
    mongo_url: str = pydantic.Field(
        "mongodb://localhost:27017",
        description="MongoDB connection string.",
    )
    database: str = pydantic.Field(
        "docrecords",
        description="Name of the database holding the record collections.",
    )
    counter_collection: str = pydantic.Field(
        "counter",
        description="Collection holding the counters for sequential ids.",
    )
    log_level: str = pydantic.Field(
        "info",
        description="Logging level.",
    )
    log_file: str = pydantic.Field(
        "STDOUT",
        description="Path to the log file.",
    )
    log_format: str = pydantic.Field(
        "text",
        description="Log format.",
    )
    model_config = SettingsConfigDict(env_prefix="docrecords_")


def load_config(**overrides) -> Config:
    config = Config(**overrides)
    # configure log output
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(),
    ]
    if config.log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    if config.log_file == "STDOUT":
        factory = structlog.PrintLoggerFactory()
    else:
        factory = structlog.PrintLoggerFactory(file=open(config.log_file, "a"))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(config.log_level.upper())
        ),
        logger_factory=factory,
    )
    return config


def connect(config: Config, *, check: bool = True) -> Store:
    """
    Connect to the configured database and return a Store for it.

    With check, the server is pinged and StoreConnectionError is raised if it
    can't be reached.
    """
    client: MongoClient = MongoClient(config.mongo_url)
    if check:
        try:
            client.admin.command("ping")
        except PyMongoError as e:
            client.close()
            raise StoreConnectionError(f"can't reach {config.mongo_url}: {e}") from e
    return Store(
        client.get_database(config.database),
        counter_collection=config.counter_collection,
    )
