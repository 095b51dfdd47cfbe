# In-memory stand-ins for Firestore and the score document store.
import copy

import pytest

from services.game_state.browser import BrowserContext


class FakeSnapshot:
    def __init__(self, doc_id, data):
        self.id = doc_id
        self._data = copy.deepcopy(data)

    @property
    def exists(self):
        return self._data is not None

    def to_dict(self):
        return copy.deepcopy(self._data)


class FakeDocumentRef:
    def __init__(self, db, collection, doc_id):
        self._db = db
        self._collection = collection
        self.id = doc_id

    def get(self):
        return FakeSnapshot(self.id, self._db.data.get(self._collection, {}).get(self.id))

    def set(self, data, merge=False):
        docs = self._db.data.setdefault(self._collection, {})
        if merge and self.id in docs:
            docs[self.id].update(copy.deepcopy(data))
        else:
            docs[self.id] = copy.deepcopy(data)


class FakeCollection:
    def __init__(self, db, name):
        self._db = db
        self._name = name

    def document(self, doc_id):
        return FakeDocumentRef(self._db, self._name, doc_id)

    def stream(self):
        docs = self._db.data.get(self._name, {})
        return [FakeSnapshot(doc_id, data) for doc_id, data in docs.items()]


class FakeBatch:
    def __init__(self, db):
        self._db = db
        self._writes = []

    def set(self, ref, data, merge=False):
        self._writes.append((ref, data, merge))

    def commit(self):
        for ref, data, merge in self._writes:
            ref.set(data, merge=merge)
        self._db.commits += 1
        self._writes = []


class FakeFirestore:
    """Sync Firestore client subset used by services.catalog and upload_movies."""

    def __init__(self, data=None):
        self.data = copy.deepcopy(data) if data else {}
        self.commits = 0

    def collection(self, name):
        return FakeCollection(self, name)

    def batch(self):
        return FakeBatch(self)


class FakeDocumentStore:
    """Async document store; set `fail = True` to make every call raise."""

    def __init__(self):
        self.docs = {}
        self.writes = []
        self.fail = False

    async def get(self, collection, doc_id):
        if self.fail:
            raise ConnectionError("store unavailable")
        doc = self.docs.get((collection, doc_id))
        return copy.deepcopy(doc) if doc is not None else None

    async def set(self, collection, doc_id, data, merge=False):
        if self.fail:
            raise ConnectionError("store unavailable")
        self.writes.append({"collection": collection, "id": doc_id, "data": copy.deepcopy(data), "merge": merge})
        key = (collection, doc_id)
        if merge and key in self.docs:
            self.docs[key].update(copy.deepcopy(data))
        else:
            self.docs[key] = copy.deepcopy(data)


@pytest.fixture
def browser():
    return BrowserContext()


@pytest.fixture
def window(browser):
    return browser.open_window()


@pytest.fixture
def doc_store():
    return FakeDocumentStore()


@pytest.fixture
def fake_db(monkeypatch):
    from services import catalog
    db = FakeFirestore()
    monkeypatch.setattr(catalog, "get_db", lambda: db)
    return db


@pytest.fixture
def client(fake_db):
    from app import create_app
    app = create_app({"TESTING": True})
    return app.test_client()
