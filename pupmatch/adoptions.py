"""Append-only log of adoption requests."""

from __future__ import annotations

import logging

from .config import STORAGE_KEYS
from .models import AdoptionRecord
from .remote import RemoteError, RemoteRecords
from .storage import LocalStore

logger = logging.getLogger(__name__)


class AdoptionBook:
    def __init__(self, store: LocalStore, remote: RemoteRecords | None = None):
        self.store = store
        self.remote = remote
        self.adoptions: list[AdoptionRecord] = []
        self.load()

    def load(self) -> list[AdoptionRecord]:
        raw = self.store.read(STORAGE_KEYS["adoptions"], [])
        if not isinstance(raw, list):
            logger.error("Ignoring stored adoptions: expected a list")
            raw = []
        self.adoptions = [AdoptionRecord.from_dict(entry) for entry in raw if isinstance(entry, dict)]
        return self.list()

    def save(self) -> None:
        self.store.write(
            STORAGE_KEYS["adoptions"], [record.to_dict() for record in self.adoptions]
        )

    def submit(
        self,
        dog_id: str,
        dog_name: str,
        full_name: str,
        pickup_time: str,
        remarks: str = "",
    ) -> AdoptionRecord:
        """Record an adoption request with a fresh id and timestamp.

        Args:
            dog_id: Identifier of the requested dog.
            dog_name: Dog name at the time of the request.
            full_name: Adopter full name.
            pickup_time: Requested pickup time as entered.
            remarks: Optional free-text remarks.

        Returns:
            The stored record.
        """
        record = AdoptionRecord(
            dog_id=dog_id,
            dog_name=dog_name,
            full_name=full_name,
            pickup_time=pickup_time,
            remarks=remarks,
        )
        if self.remote is not None:
            try:
                self.remote.create_adoption(record.to_api_payload())
            except RemoteError as exc:
                logger.warning(f"Adoption {record.id} saved locally only: {exc}")
        self.adoptions.append(record)
        self.save()
        logger.info(f"Adoption request {record.id} for {dog_name} ({dog_id})")
        return record

    def list(self) -> list[AdoptionRecord]:
        return list(self.adoptions)
