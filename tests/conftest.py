import copy
import pytest
from unittest.mock import AsyncMock, MagicMock
from starlette.testclient import TestClient

from app.main import app
from app.models.field_spec import FieldSpec, RawField, TableSchema, LinkedTable
from app.models.record import Record
from app.models.session import ConnectionParams, SessionContext
from app.utils.auth import get_current_user
from app.utils.dependencies import get_client_factory, get_form_store

CONNECTION_HEADERS = {"X-Api-Key": "key123", "X-Base-Id": "app123"}

RAW_FIELDS = [
    {"id": "fld1", "name": "Email", "type": "singleLineText"},
    {"id": "fld2", "name": "Score", "type": "number", "options": {"precision": 0}},
    {"id": "fld3", "name": "Status", "type": "singleSelect", "options": {"choices": [
        {"id": "sel1", "name": "Open", "color": "blueLight2"},
        {"id": "sel2", "name": "Closed", "color": "redLight2"},
    ]}},
    {"id": "fld4", "name": "Total", "type": "formula", "options": {"formula": "{Score} * 2", "result": {"type": "number"}}},
    {"id": "fld5", "name": "Owners", "type": "multipleRecordLinks", "options": {"linkedTableId": "tblPeople"}},
    {"id": "fld6", "name": "Sum", "type": "rollup", "options": {"rollup": {"fields": ["Score"], "function": "SUM(values)"}}},
]


class FakeDB:
    """In-memory stand-in for db_ops with Mongo-style equality filters"""

    def __init__(self):
        self.collections = {}

    @staticmethod
    def _get(doc, dotted):
        value = doc
        for part in dotted.split("."):
            if not isinstance(value, dict):
                return None
            value = value.get(part)
        return value

    def _matches(self, doc, query):
        return all(self._get(doc, k) == v for k, v in (query or {}).items())

    def _docs(self, name):
        return self.collections.setdefault(name, [])

    async def create(self, name, document):
        document["_id"] = f"oid{len(self._docs(name)) + 1}"
        self._docs(name).append(copy.deepcopy(document))
        return document

    async def get_one(self, name, query):
        for doc in self._docs(name):
            if self._matches(doc, query):
                return copy.deepcopy(doc)
        return None

    async def get_all(self, name, query=None, skip=0, limit=100, sort=None):
        docs = [copy.deepcopy(d) for d in self._docs(name) if self._matches(d, query)]
        if sort:
            key, direction = sort[0]
            docs.sort(key=lambda d: self._get(d, key), reverse=direction < 0)
        return docs[skip:skip + limit]

    async def update_one(self, name, query, update):
        for doc in self._docs(name):
            if self._matches(doc, query):
                doc.update(update)
                return copy.deepcopy(doc)
        return None

    async def delete_one(self, name, query):
        for i, doc in enumerate(self._docs(name)):
            if self._matches(doc, query):
                del self._docs(name)[i]
                return True
        return False

    async def count(self, name, query=None):
        return len([d for d in self._docs(name) if self._matches(d, query)])


@pytest.fixture
def raw_fields():
    return [RawField.from_source(f) for f in RAW_FIELDS]


@pytest.fixture
def specs(raw_fields):
    return [FieldSpec.from_raw(r) for r in raw_fields]


@pytest.fixture
def schema(raw_fields):
    return TableSchema(
        id="tblOrders",
        name="Orders",
        fields=raw_fields,
        linkedTables=[LinkedTable(id="tblOrders", name="Orders"), LinkedTable(id="tblPeople", name="People")],
    )


@pytest.fixture
def context():
    return SessionContext(connection=ConnectionParams(apiKey="key123", baseId="app123"), owner_id="alice")


@pytest.fixture
def fake_db(monkeypatch):
    db = FakeDB()
    monkeypatch.setattr("app.services.form_store.db_ops", db)
    return db


@pytest.fixture
def upstream(schema):
    """Mocked Airtable client shared by every route in a test"""
    source = MagicMock()
    source.list_tables = AsyncMock(return_value=["Orders", "People"])
    source.get_schema = AsyncMock(return_value=schema)
    source.get_schema_by_id = AsyncMock(return_value=schema)
    source.rename_table = AsyncMock(return_value={"id": "tblOrders", "name": "Sales"})
    source.rename_field = AsyncMock(return_value=True)
    source.list_records = AsyncMock(return_value=[
        Record(id="rec1", fields={"Email": "a@b.com", "Total": 4}),
        Record(id="rec2", fields={"Email": "c@d.com", "Total": 10}),
    ])
    source.create_record = AsyncMock(side_effect=lambda table, fields: Record(id="recNew", fields=fields))
    return source


# Mock Current User
def override_get_current_user():
    return {"sub": "alice", "user_id": "test_user_id"}


@pytest.fixture
def client(upstream, fake_db):
    from app.services.form_store import FormStore

    app.dependency_overrides[get_current_user] = override_get_current_user
    app.dependency_overrides[get_client_factory] = lambda: (lambda connection: upstream)
    app.dependency_overrides[get_form_store] = lambda: FormStore()
    # no lifespan: the database is faked
    yield TestClient(app)
    app.dependency_overrides.clear()
