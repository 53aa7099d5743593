import pytest
import structlog
from docrecords import Config, Store, StoreConnectionError, connect, load_config


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    structlog.reset_defaults()


def test_defaults(monkeypatch):
    monkeypatch.delenv("DOCRECORDS_DATABASE", raising=False)
    config = Config()
    assert config.mongo_url == "mongodb://localhost:27017"
    assert config.database == "docrecords"
    assert config.counter_collection == "counter"
    assert config.log_level == "info"


def test_env(monkeypatch):
    monkeypatch.setenv("DOCRECORDS_DATABASE", "from_env")
    monkeypatch.setenv("DOCRECORDS_COUNTER_COLLECTION", "sequences")
    config = Config()
    assert config.database == "from_env"
    assert config.counter_collection == "sequences"


def test_load_config_overrides():
    config = load_config(database="override", log_level="warning")
    assert config.database == "override"
    assert config.log_level == "warning"


def test_load_config_json_log(tmp_path, capsys):
    log_file = tmp_path / "log.json"
    load_config(log_format="json", log_file=str(log_file))
    structlog.get_logger().info("hello", answer=42)
    structlog.get_logger().debug("hidden")
    # PrintLoggerFactory flushes after every line
    contents = log_file.read_text()
    assert '"event": "hello"' in contents
    assert '"answer": 42' in contents
    assert "hidden" not in contents


def test_connect_without_check():
    config = Config(database="lazy")
    store = connect(config, check=False)
    assert isinstance(store, Store)
    assert store.database.name == "lazy"
    assert store.counter_collection == "counter"
    store.database.client.close()


def test_connect_unreachable():
    config = Config(mongo_url="mongodb://localhost:1/?serverSelectionTimeoutMS=50")
    with pytest.raises(StoreConnectionError):
        connect(config)
