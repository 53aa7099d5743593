import datetime
import json
from decimal import Decimal
from bson import DBRef, Decimal128, ObjectId
from docrecords.serialize import clean_ids, to_bson, to_document, to_json
from testdata import Customer, Issue, Person, Status, Ticket


def test_to_document_public_fields_only(store):
    p = Person(store, name="Foo Bar")
    p.set_secret("hidden")
    assert to_document(p) == {"name": "Foo Bar", "age": None}


def test_to_document_independent_of_values(store):
    p = Person(store)
    assert set(to_document(p)) == {"name", "age"}


def test_to_document_includes_extras(store):
    p = Person(store, name="Foo Bar")
    p.foo = "bar"
    assert to_document(p)["foo"] == "bar"


def test_to_document_id_first(store):
    p = Person(store, name="Foo Bar")
    p.update()
    document = to_document(p)
    assert list(document)[0] == "_id"
    assert document["_id"] == p.id


def test_to_document_nested_model(store):
    c = Customer(store, name="Acme", address={"street": "Main", "city": "X"})
    assert to_document(c)["address"] == {"street": "Main", "city": "X"}


def test_to_json_sorted_keys(store):
    p = Person(store, name="Foo Bar")
    p.foo = "bar"
    p.update()
    data = json.loads(p.to_json())
    assert list(data) == sorted(data)
    assert data["foo"] == "bar"
    assert data["name"] == "Foo Bar"


def test_to_json_stringifies_ids(store):
    p = Person(store, name="Foo Bar")
    p.update()
    data = json.loads(p.to_json())
    assert data["_id"] == str(p.id)


def test_to_json_integer_id(store):
    t = Ticket(store)
    t.update()
    assert json.loads(t.to_json())["_id"] == "1"


def test_to_json_excludes_private(store):
    p = Person(store, name="Foo Bar")
    p.set_secret("hidden")
    assert "_secret" not in p.to_json()
    assert "hidden" not in p.to_json()


def test_to_json_dates(store):
    p = Person(store)
    p.seen = datetime.datetime(2020, 1, 2, 3, 4, 5)
    assert json.loads(p.to_json())["seen"] == "2020-01-02T03:04:05"


def test_to_json_failure_returns_none(store):
    p = Person(store)
    p.blob = object()
    assert p.to_json() is None


def test_clean_ids_nested():
    oid = ObjectId()
    cleaned = clean_ids(
        {
            "_id": oid,
            "children": [{"_id": 5, "name": "x"}],
            "parent": {"$ref": "people", "$id": oid},
        }
    )
    assert cleaned == {
        "_id": str(oid),
        "children": [{"_id": "5", "name": "x"}],
        "parent": {"$ref": "people", "$id": str(oid)},
    }


def test_clean_ids_dbref():
    oid = ObjectId()
    assert clean_ids({"owner": DBRef("people", oid)}) == {
        "owner": {"$ref": "people", "$id": str(oid)}
    }


def test_to_json_list():
    assert to_json([{"b": 1, "_id": 2}, {"a": 3}]) == '[{"_id": "2", "b": 1}, {"a": 3}]'


def test_to_json_bare_object_ids(store):
    owner = Person(store, name="Owner")
    owner.update()
    p = Person(store, name="Pet")
    p.owner = owner.id
    p.friends = [owner.id, {"best": owner.id}]
    data = json.loads(p.to_json())
    assert data["owner"] == str(owner.id)
    assert data["friends"] == [str(owner.id), {"best": str(owner.id)}]


def test_clean_ids_bare_object_id():
    oid = ObjectId()
    assert clean_ids({"owner": oid, "seen_by": [oid]}) == {
        "owner": str(oid),
        "seen_by": [str(oid)],
    }


def test_to_document_enum_and_set(store):
    i = Issue(store, title="broken", status=Status.closed, labels={"bug"})
    document = to_document(i)
    assert document["status"] == "closed"
    assert document["labels"] == ["bug"]


def test_to_bson_decimal_and_date():
    converted = to_bson({"price": Decimal("1.50"), "due": datetime.date(2020, 1, 2)})
    assert converted["price"] == Decimal128("1.50")
    assert converted["due"] == datetime.datetime(2020, 1, 2)


def test_to_json_decimal(store):
    p = Person(store)
    p.price = Decimal("1.50")
    assert json.loads(p.to_json())["price"] == "1.50"
