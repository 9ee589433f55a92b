"""In-memory stand-in for the parts of the Firestore client the app uses."""
import copy
import itertools
import uuid

from google.api_core.exceptions import FailedPrecondition

_clock = itertools.count(1)


class FakeWriteOption:
    def __init__(self, last_update_time=None):
        self.last_update_time = last_update_time


class FakeSnapshot:
    def __init__(self, doc_id, data, update_time):
        self.id = doc_id
        self._data = data
        self.update_time = update_time

    @property
    def exists(self):
        return self._data is not None

    def to_dict(self):
        return copy.deepcopy(self._data)


class FakeDocRef:
    def __init__(self, db, collection, doc_id):
        self._db = db
        self._collection = collection
        self.id = doc_id

    @property
    def _store(self):
        return self._db.data.setdefault(self._collection, {})

    def get(self):
        entry = self._store.get(self.id)
        if entry is None:
            return FakeSnapshot(self.id, None, None)
        return FakeSnapshot(self.id, entry["data"], entry["update_time"])

    def set(self, data):
        self._db.check_write()
        self._store[self.id] = {"data": copy.deepcopy(data), "update_time": next(_clock)}

    def update(self, updates, option=None):
        self._db.check_write()
        entry = self._store.get(self.id)
        if entry is None:
            raise KeyError(self.id)
        if option is not None and option.last_update_time != entry["update_time"]:
            raise FailedPrecondition("Document was updated after the given last_update_time")
        entry["data"].update(copy.deepcopy(updates))
        entry["update_time"] = next(_clock)


class FakeQuery:
    def __init__(self, db, collection, filters=()):
        self._db = db
        self._collection = collection
        self._filters = tuple(filters)

    def where(self, filter):
        assert filter.op_string == "==", "only equality filters are supported"
        return FakeQuery(self._db, self._collection, self._filters + ((filter.field_path, filter.value),))

    def stream(self):
        for doc_id, entry in list(self._db.data.get(self._collection, {}).items()):
            data = entry["data"]
            if all(data.get(f) == v for f, v in self._filters):
                yield FakeSnapshot(doc_id, data, entry["update_time"])


class FakeCollection(FakeQuery):
    def document(self, doc_id=None):
        return FakeDocRef(self._db, self._collection, doc_id or uuid.uuid4().hex[:20])

    def add(self, data):
        ref = self.document()
        ref.set(data)
        return next(_clock), ref


class FakeFirestore:
    def __init__(self):
        self.data = {}
        self.fail_writes = None

    def collection(self, name):
        return FakeCollection(self, name)

    def write_option(self, last_update_time=None):
        return FakeWriteOption(last_update_time)

    def check_write(self):
        if self.fail_writes is not None:
            raise self.fail_writes
