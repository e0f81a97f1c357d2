"""Parsing and validation for the add-dog and adoption forms."""

from __future__ import annotations

from dataclasses import dataclass

from .config import ATTRIBUTE_NAMES, DEFAULT_ATTRIBUTES
from .image_resolver import ImageResolver
from .images import ImageRegistry
from .models import Dog, DogAttributes, ParentRecord, clamp_score


class FormError(ValueError):
    """Raised with a user-facing message when a form cannot be accepted."""


@dataclass(frozen=True)
class AdoptionRequest:
    dog_id: str
    full_name: str
    pickup_time: str
    remarks: str = ""


def _text(form: dict, key: str) -> str:
    return " ".join(str(form.get(key) or "").split()).strip()


def _multiline(form: dict, key: str) -> str:
    return str(form.get(key) or "").strip()


def _registered(images: ImageRegistry, image_id: str) -> str | None:
    return image_id if image_id and images.get(image_id) is not None else None


def _parent(form: dict, prefix: str, images: ImageRegistry) -> ParentRecord | None:
    parent = ParentRecord(
        name=_text(form, f"{prefix}Name") or None,
        breed=_text(form, f"{prefix}Breed") or None,
        image_url=_text(form, f"{prefix}ImageUrl") or None,
        image_id=_registered(images, _text(form, f"{prefix}ImageId")),
    )
    return None if parent.is_empty() else parent


def parse_dog_form(form: dict, images: ImageRegistry, resolver: ImageResolver) -> Dog:
    """Build a new dog from submitted owner form fields.

    Args:
        form: Flattened form fields.
        images: Registry used to confirm uploaded image ids.
        resolver: URL checker for image and GIF URLs.

    Returns:
        The new dog, not yet added to the catalog.

    Raises:
        FormError: If required fields are missing or an image URL is rejected.
    """
    name = _text(form, "name")
    breed = _text(form, "breed")
    description = _multiline(form, "description")
    if not name or not breed or not description:
        raise FormError("Name, breed and description are required.")

    image_id = _registered(images, _text(form, "imageId"))
    gif_id = _registered(images, _text(form, "gifId"))
    image_url = _text(form, "imageUrl")
    gif_url = _text(form, "gifUrl")
    if not image_id and not image_url:
        raise FormError("Please upload an image or provide an image URL.")
    if image_url and not resolver.is_image(image_url):
        raise FormError(
            f"Invalid image URL. Please use a direct link to an image. Current URL: {image_url}"
        )
    if gif_url and not resolver.is_image(gif_url):
        raise FormError(
            f"Invalid GIF URL. Please use a direct link to an image. Current URL: {gif_url}"
        )

    scores = {
        attribute: clamp_score(form.get(attribute), DEFAULT_ATTRIBUTES[attribute])
        for attribute in ATTRIBUTE_NAMES
    }
    return Dog(
        name=name,
        breed=breed,
        description=description,
        birthdate=_text(form, "birthdate") or None,
        image_url="" if image_id else image_url,
        gif_url="" if gif_id else gif_url,
        image_id=image_id,
        gif_id=gif_id,
        attributes=DogAttributes.from_dict(scores),
        mother=_parent(form, "mother", images),
        father=_parent(form, "father", images),
    )


def parse_adoption_form(form: dict) -> AdoptionRequest | None:
    """Return the adoption request, or None when a required field is blank."""
    dog_id = _text(form, "dog_id")
    full_name = _text(form, "fullName")
    pickup_time = _text(form, "pickupTime")
    if not dog_id or not full_name or not pickup_time:
        return None
    return AdoptionRequest(
        dog_id=dog_id,
        full_name=full_name,
        pickup_time=pickup_time,
        remarks=_multiline(form, "remarks"),
    )
