"""The catalog of adoptable dogs.

The list lives in the local record store. When a remote mirror is
configured it is authoritative: mutations are written through to it and
``load`` or ``refresh_if_stale`` pull the remote list again once the local
copy is older than the sync TTL.
"""

from __future__ import annotations

import logging
import time
from dataclasses import replace
from datetime import date

from .ages import approximate_birthdate
from .config import STORAGE_KEYS, SYNC_KEY_SUFFIX
from .models import Dog
from .remote import RemoteError, RemoteRecords
from .storage import LocalStore

logger = logging.getLogger(__name__)


class Catalog:
    def __init__(
        self,
        store: LocalStore,
        remote: RemoteRecords | None = None,
        sync_ttl_seconds: int = 0,
        clock=time.time,
    ):
        self.store = store
        self.remote = remote
        self.sync_ttl_seconds = sync_ttl_seconds
        self.clock = clock
        self.dogs: list[Dog] = []

    @property
    def _key(self) -> str:
        return STORAGE_KEYS["dogs"]

    def _read_local(self) -> list[Dog]:
        raw = self.store.read(self._key, [])
        if not isinstance(raw, list):
            logger.error(f"Ignoring {self._key}: expected a list, got {type(raw).__name__}")
            return []
        dogs = []
        for entry in raw:
            if not isinstance(entry, dict):
                continue
            try:
                dogs.append(Dog.from_dict(entry))
            except (TypeError, ValueError) as exc:
                logger.warning(f"Skipping unreadable dog record: {exc}")
        return dogs

    def _is_stale(self) -> bool:
        synced_at = self.store.read(self._key + SYNC_KEY_SUFFIX, 0)
        try:
            age = self.clock() - float(synced_at or 0)
        except (TypeError, ValueError):
            return True
        return age >= self.sync_ttl_seconds

    def _refresh_from_remote(self, local: list[Dog]) -> list[Dog]:
        rows = self.remote.list_dogs()
        local_by_id = {dog.id: dog for dog in local}
        refreshed = []
        for row in rows:
            dog = Dog.from_dict(row)
            known = local_by_id.get(dog.id)
            if known is not None:
                # Registry ids are local-only; keep them across refreshes.
                dog = replace(dog, image_id=known.image_id, gif_id=known.gif_id)
            refreshed.append(dog)
        self.store.write(self._key + SYNC_KEY_SUFFIX, self.clock())
        logger.info(f"Refreshed {len(refreshed)} dogs from remote store.")
        return refreshed

    def load(self) -> list[Dog]:
        """Rebuild the dog list from storage; absent or corrupt data is empty."""
        self.dogs = self._read_local()
        if self.remote is not None and self._is_stale():
            try:
                self.dogs = self._refresh_from_remote(self.dogs)
            except RemoteError as exc:
                logger.warning(f"Using local dogs; remote refresh failed: {exc}")
            else:
                self.save()
        logger.debug(f"Loaded {len(self.dogs)} dogs.")
        return self.list()

    def refresh_if_stale(self) -> bool:
        """Reload from the remote mirror once the sync TTL has passed.

        Returns:
            True when a reload ran.
        """
        if self.remote is None or not self._is_stale():
            return False
        self.load()
        return True

    def save(self) -> None:
        self.store.write(self._key, [dog.to_dict() for dog in self.dogs])

    def add(self, dog: Dog) -> Dog:
        """Prepend ``dog`` and persist it, adopting the remote id when mirrored."""
        if self.remote is not None:
            try:
                row = self.remote.create_dog(dog.to_api_payload())
            except RemoteError as exc:
                logger.warning(f"Saving {dog.name} locally only: {exc}")
            else:
                dog = replace(
                    dog,
                    id=str(row.get("id") or dog.id),
                    created_at=str(row.get("created_at") or "") or dog.created_at,
                )
        self.dogs.insert(0, dog)
        self.save()
        return dog

    def remove_by_id(self, dog_id: str) -> None:
        if self.remote is not None:
            try:
                self.remote.delete_dog(dog_id)
            except RemoteError as exc:
                logger.warning(f"Removing dog {dog_id} locally only: {exc}")
        self.dogs = [dog for dog in self.dogs if dog.id != dog_id]
        self.save()

    def list(self) -> list[Dog]:
        return list(self.dogs)

    def get(self, dog_id: str | None) -> Dog | None:
        for dog in self.dogs:
            if dog.id == dog_id:
                return dog
        return None

    def clear(self) -> list[Dog]:
        """Drop the locally stored dogs and reload.

        With a remote mirror the reload pulls the authoritative list again.
        """
        self.store.remove(self._key)
        self.store.remove(self._key + SYNC_KEY_SUFFIX)
        return self.load()

    def migrate_legacy_ages(self, today: date | None = None) -> int:
        """Backfill birthdates for dogs that only carry free-text ages.

        Returns:
            Number of dogs updated.
        """
        updated = 0
        migrated = []
        for dog in self.dogs:
            if not dog.birthdate and dog.age:
                dog = replace(dog, birthdate=approximate_birthdate(dog.age, today))
                updated += 1
            migrated.append(dog)
        if updated:
            self.dogs = migrated
            self.save()
            logger.info(f"Backfilled birthdates for {updated} legacy dogs.")
        return updated
