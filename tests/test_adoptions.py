from pupmatch.adoptions import AdoptionBook
from pupmatch.catalog import Catalog
from pupmatch.models import Dog
from pupmatch.remote import RemoteError
from pupmatch.storage import LocalStore


class FakeRemote:
    def __init__(self, fail=False):
        self.fail = fail
        self.payloads = []

    def create_adoption(self, payload):
        if self.fail:
            raise RemoteError("POST /api/adoptions failed: offline")
        self.payloads.append(payload)
        return {"id": "remote-adoption"}


def test_submit_persists_record():
    store = LocalStore({})
    book = AdoptionBook(store)

    record = book.submit("dog-1", "Rex", "Ada Lovelace", "2026-10-20T10:00", "Has a yard")

    assert record.id
    assert record.created_at
    reloaded = AdoptionBook(store)
    assert [entry.to_dict() for entry in reloaded.list()] == [record.to_dict()]
    assert reloaded.list()[0].remarks == "Has a yard"


def test_adoption_survives_dog_deletion():
    store = LocalStore({})
    catalog = Catalog(store)
    book = AdoptionBook(store)
    dog = catalog.add(Dog(name="Rex", breed="Lab"))

    book.submit(dog.id, dog.name, "Ada Lovelace", "2026-10-20T10:00")
    catalog.remove_by_id(dog.id)

    assert catalog.get(dog.id) is None
    records = AdoptionBook(store).list()
    assert len(records) == 1
    assert records[0].dog_id == dog.id
    assert records[0].dog_name == "Rex"


def test_submit_mirrors_to_remote_and_tolerates_failures():
    remote = FakeRemote()
    book = AdoptionBook(LocalStore({}), remote=remote)
    book.submit("dog-1", "Rex", "Ada", "2026-10-20T10:00")

    assert remote.payloads == [
        {
            "dogId": "dog-1",
            "dogName": "Rex",
            "fullName": "Ada",
            "pickupTime": "2026-10-20T10:00",
            "remarks": None,
        }
    ]

    offline = AdoptionBook(LocalStore({}), remote=FakeRemote(fail=True))
    offline.submit("dog-1", "Rex", "Ada", "2026-10-20T10:00")
    assert len(offline.list()) == 1
