import uuid
import mongomock
import pytest
from docrecords import Store


@pytest.fixture
def database():
    client = mongomock.MongoClient()
    db = client.get_database(f"test_{uuid.uuid4().hex}")
    yield db
    client.drop_database(db.name)


@pytest.fixture
def store(database):
    return Store(database)
