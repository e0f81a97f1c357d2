"""View models projected from catalog entries.

These are plain data for the HTML templates in ``pages``; nothing here
touches storage.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date

from .ages import format_age
from .config import (
    ATTRIBUTE_LABELS,
    ATTRIBUTE_NAMES,
    MAX_ATTRIBUTE_SCORE,
    PARENT_PLACEHOLDER_DATA_URI,
    PLACEHOLDER_DATA_URI,
)
from .images import ImageRegistry
from .models import Dog, ParentRecord

logger = logging.getLogger(__name__)


@dataclass
class ImageSlot:
    """An image source with a single-shot placeholder fallback.

    ``fail`` is applied server side when no source resolves; in the browser
    the inline ``onerror`` guard in ``pages`` makes the same one-way swap
    keyed on ``data-fallback-applied``.
    """

    src: str
    alt: str
    fallback_src: str = PLACEHOLDER_DATA_URI
    fallback_alt: str = ""
    fallback_applied: bool = False

    def fail(self) -> bool:
        """Swap to the placeholder after a load failure.

        Returns:
            True when the swap happened, False when it was already applied.
        """
        if self.fallback_applied:
            return False
        logger.debug(f"Using placeholder for {self.alt!r}")
        self.fallback_applied = True
        self.src = self.fallback_src
        if self.fallback_alt:
            self.alt = self.fallback_alt
        return True


@dataclass(frozen=True)
class AttributeRow:
    name: str
    label: str
    score: int

    @property
    def bones(self) -> list[bool]:
        return bones(self.score)


@dataclass(frozen=True)
class ParentCard:
    label: str
    name: str
    breed: str
    image: ImageSlot


@dataclass
class DogCard:
    dog_id: str
    name: str
    breed: str
    age_text: str
    image: ImageSlot
    attributes: list[AttributeRow]
    hover_src: str = ""
    can_delete: bool = False

    @property
    def subtitle(self) -> str:
        return f"{self.breed} • {self.age_text}" if self.age_text else self.breed


@dataclass
class DogDetail:
    card: DogCard
    description: str
    parents: list[ParentCard] = field(default_factory=list)


def bones(count: int) -> list[bool]:
    """Return filled/empty flags for the 1..5 bone indicator."""
    return [index <= count for index in range(1, MAX_ATTRIBUTE_SCORE + 1)]


def resolve_image(url: str | None, image_id: str | None, images: ImageRegistry) -> str:
    """Prefer a registry payload, falling back to the plain URL."""
    if image_id:
        payload = images.resolve(image_id)
        if payload:
            return payload
    return url or ""


def attribute_rows(dog: Dog) -> list[AttributeRow]:
    return [
        AttributeRow(name=name, label=ATTRIBUTE_LABELS[name], score=dog.attributes.score(name))
        for name in ATTRIBUTE_NAMES
    ]


def build_card(
    dog: Dog,
    images: ImageRegistry,
    owner_mode: bool = False,
    today: date | None = None,
) -> DogCard:
    """Project a dog into the grid card shown on the index page.

    Args:
        dog: Catalog entry.
        images: Registry used to resolve uploaded image ids.
        owner_mode: Whether the delete action is exposed.
        today: Reference date for the displayed age.

    Returns:
        Card view model.
    """
    src = resolve_image(dog.image_url, dog.image_id, images)
    image = ImageSlot(
        src=src,
        alt=f"{dog.name} the {dog.breed}",
        fallback_alt=f"Placeholder for {dog.name}",
    )
    if not src:
        image.fail()
    return DogCard(
        dog_id=dog.id,
        name=dog.name,
        breed=dog.breed,
        age_text=format_age(dog.birthdate, dog.age or "", today),
        image=image,
        attributes=attribute_rows(dog),
        hover_src=resolve_image(dog.gif_url, dog.gif_id, images),
        can_delete=owner_mode,
    )


def _parent_card(label: str, parent: ParentRecord, images: ImageRegistry) -> ParentCard:
    src = resolve_image(parent.image_url, parent.image_id, images)
    image = ImageSlot(src=src, alt=f"{label} image", fallback_src=PARENT_PLACEHOLDER_DATA_URI)
    if not src:
        image.fail()
    return ParentCard(
        label=label,
        name=parent.name or "—",
        breed=parent.breed or "",
        image=image,
    )


def build_detail(
    dog: Dog,
    images: ImageRegistry,
    owner_mode: bool = False,
    today: date | None = None,
) -> DogDetail:
    """Project a dog into the detail view, including parent cards."""
    parents = []
    if dog.mother is not None:
        parents.append(_parent_card("Mother", dog.mother, images))
    if dog.father is not None:
        parents.append(_parent_card("Father", dog.father, images))
    return DogDetail(
        card=build_card(dog, images, owner_mode=owner_mode, today=today),
        description=dog.description,
        parents=parents,
    )
