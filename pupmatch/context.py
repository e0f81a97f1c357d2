"""Application context shared by pages and request handlers."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Callable

from . import config
from .adoptions import AdoptionBook
from .catalog import Catalog
from .image_resolver import ImageResolver
from .images import ImageRegistry
from .remote import RemoteRecords
from .storage import LocalStore

logger = logging.getLogger(__name__)


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


@dataclass
class AppContext:
    catalog: Catalog
    adoptions: AdoptionBook
    images: ImageRegistry
    resolver: ImageResolver
    today: Callable[[], date] = field(default=utc_today)

    def export_payload(self) -> dict:
        """Return the backup document with current dogs and adoptions."""
        return {
            "dogs": [dog.to_dict() for dog in self.catalog.list()],
            "adoptions": [record.to_dict() for record in self.adoptions.list()],
        }

    def export_filename(self) -> str:
        return f"pupmatch-data-{self.today().isoformat()}.json"


def build_context(store: LocalStore | None = None) -> AppContext:
    """Wire the stores from environment configuration and load the catalog."""
    store = store or LocalStore()
    base_url = config.api_url()
    remote = RemoteRecords(base_url) if base_url else None
    if remote is not None:
        logger.info(f"Mirroring records to {base_url}")
    catalog = Catalog(store, remote=remote, sync_ttl_seconds=config.sync_ttl_seconds())
    catalog.load()
    catalog.migrate_legacy_ages()
    return AppContext(
        catalog=catalog,
        adoptions=AdoptionBook(store, remote=remote),
        images=ImageRegistry(store),
        resolver=ImageResolver(probe=config.check_image_urls()),
    )
