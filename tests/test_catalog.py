from datetime import date

from diskcache import Cache

from pupmatch.catalog import Catalog
from pupmatch.models import Dog
from pupmatch.remote import RemoteError
from pupmatch.storage import LocalStore


class FakeRemote:
    def __init__(self, rows=None, fail=False):
        self.rows = rows or []
        self.fail = fail
        self.created = []
        self.deleted = []
        self.list_calls = 0

    def list_dogs(self):
        self.list_calls += 1
        if self.fail:
            raise RemoteError("GET /api/dogs failed: offline")
        return list(self.rows)

    def create_dog(self, payload):
        if self.fail:
            raise RemoteError("POST /api/dogs failed: offline")
        self.created.append(payload)
        return {"id": f"remote-{len(self.created)}", "created_at": "2026-10-18T09:30:00+00:00"}

    def delete_dog(self, dog_id):
        if self.fail:
            raise RemoteError("DELETE /api/dogs failed: offline")
        self.deleted.append(dog_id)


def test_add_then_remove_persists(tmp_path):
    store = LocalStore(Cache(str(tmp_path)))
    catalog = Catalog(store)
    catalog.load()
    first = catalog.add(Dog(name="Rex", breed="Lab", description="friendly"))
    second = catalog.add(Dog(name="Luna", breed="Husky", description="vocal"))

    assert [dog.name for dog in catalog.list()] == ["Luna", "Rex"]

    catalog.remove_by_id(first.id)

    reloaded = Catalog(store)
    reloaded.load()
    assert [dog.id for dog in reloaded.list()] == [second.id]
    assert reloaded.get(first.id) is None
    store.close()


def test_load_treats_corrupt_or_wrong_shape_as_empty():
    assert Catalog(LocalStore({"pupmatch.dogs": "[{"})).load() == []
    assert Catalog(LocalStore({"pupmatch.dogs": '{"id": "x"}'})).load() == []


def test_load_skips_non_object_entries():
    store = LocalStore({})
    store.write("pupmatch.dogs", ["junk", {"id": "a", "name": "Rex", "breed": "Lab"}])

    dogs = Catalog(store).load()

    assert [dog.id for dog in dogs] == ["a"]


def test_list_returns_a_copy():
    catalog = Catalog(LocalStore({}))
    catalog.add(Dog(name="Rex", breed="Lab"))

    catalog.list().clear()

    assert len(catalog.list()) == 1


def test_remote_write_through_adopts_remote_id():
    remote = FakeRemote()
    store = LocalStore({})
    catalog = Catalog(store, remote=remote, sync_ttl_seconds=300, clock=lambda: 1000.0)

    dog = catalog.add(Dog(name="Rex", breed="Lab", description="friendly", image_id="img-1"))
    catalog.remove_by_id(dog.id)

    assert dog.id == "remote-1"
    assert dog.created_at == "2026-10-18T09:30:00+00:00"
    assert "imageId" not in remote.created[0]
    assert remote.deleted == ["remote-1"]
    assert catalog.list() == []


def test_remote_failure_keeps_local_copy():
    catalog = Catalog(LocalStore({}), remote=FakeRemote(fail=True))

    catalog.load()
    dog = catalog.add(Dog(name="Rex", breed="Lab"))

    assert catalog.get(dog.id) == dog


def test_refresh_keeps_local_registry_ids_and_honors_ttl():
    store = LocalStore({})
    store.write(
        "pupmatch.dogs",
        [{"id": "remote-1", "name": "Rex", "breed": "Lab", "imageId": "img-1"}],
    )
    remote = FakeRemote(
        rows=[
            {"id": "remote-2", "name": "Luna", "breed": "Husky", "created_at": "2026-10-18"},
            {"id": "remote-1", "name": "Rex", "breed": "Lab", "image_url": None},
        ]
    )
    now = [1000.0]
    catalog = Catalog(store, remote=remote, sync_ttl_seconds=60, clock=lambda: now[0])

    dogs = catalog.load()

    assert [dog.id for dog in dogs] == ["remote-2", "remote-1"]
    assert catalog.get("remote-1").image_id == "img-1"
    assert remote.list_calls == 1

    now[0] = 1030.0
    catalog.load()
    assert remote.list_calls == 1

    now[0] = 1061.0
    catalog.load()
    assert remote.list_calls == 2


def test_refresh_if_stale_picks_up_new_remote_dogs():
    remote = FakeRemote(rows=[{"id": "remote-1", "name": "Rex", "breed": "Lab"}])
    now = [1000.0]
    catalog = Catalog(LocalStore({}), remote=remote, sync_ttl_seconds=10, clock=lambda: now[0])
    catalog.load()
    remote.rows.insert(0, {"id": "remote-2", "name": "Luna", "breed": "Husky"})

    assert catalog.refresh_if_stale() is False
    assert len(catalog.list()) == 1

    now[0] = 1060.0
    assert catalog.refresh_if_stale() is True
    assert [dog.id for dog in catalog.list()] == ["remote-2", "remote-1"]


def test_refresh_if_stale_without_remote_is_a_no_op():
    catalog = Catalog(LocalStore({}), clock=lambda: 10_000.0)
    catalog.add(Dog(name="Rex", breed="Lab"))

    assert catalog.refresh_if_stale() is False
    assert len(catalog.list()) == 1


def test_clear_drops_local_dogs():
    catalog = Catalog(LocalStore({}))
    catalog.add(Dog(name="Rex", breed="Lab"))

    assert catalog.clear() == []


def test_migrate_legacy_ages_backfills_birthdates():
    store = LocalStore({})
    store.write(
        "pupmatch.dogs",
        [
            {"id": "a", "name": "Rex", "breed": "Lab", "age": "2 years 3 months"},
            {"id": "b", "name": "Luna", "breed": "Husky", "birthdate": "2025-01-01"},
        ],
    )
    catalog = Catalog(store)
    catalog.load()

    assert catalog.migrate_legacy_ages(today=date(2026, 10, 18)) == 1
    assert catalog.get("a").birthdate == "2024-07-18"
    assert catalog.get("b").birthdate == "2025-01-01"
    assert store.read("pupmatch.dogs")[0]["birthdate"] == "2024-07-18"
    assert catalog.migrate_legacy_ages(today=date(2026, 10, 18)) == 0
