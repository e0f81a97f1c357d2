import io

import pytest

from pupmatch.forms import FormError, parse_adoption_form, parse_dog_form
from pupmatch.images import ImageRegistry, Upload
from pupmatch.storage import LocalStore


class FakeResolver:
    def __init__(self, valid=()):
        self.valid = set(valid)
        self.checked = []

    def is_image(self, url):
        self.checked.append(url)
        return url in self.valid


def _form(**overrides):
    form = {
        "name": "  Rex  ",
        "breed": "Lab",
        "description": "Loves fetch.\nGood with cats.",
        "imageUrl": "https://example.com/rex.jpg",
    }
    form.update(overrides)
    return form


def test_parse_dog_form_builds_dog():
    registry = ImageRegistry(LocalStore({}))
    resolver = FakeResolver(valid={"https://example.com/rex.jpg"})

    dog = parse_dog_form(
        _form(friendliness="9", energy="0", trainability="x", birthdate="2025-08-01"),
        registry,
        resolver,
    )

    assert dog.name == "Rex"
    assert dog.description == "Loves fetch.\nGood with cats."
    assert dog.birthdate == "2025-08-01"
    assert dog.image_url == "https://example.com/rex.jpg"
    assert dog.attributes.to_dict() == {
        "friendliness": 5,
        "energy": 1,
        "trainability": 4,
        "kidFriendly": 5,
        "size": 3,
    }
    assert dog.mother is None and dog.father is None
    assert resolver.checked == ["https://example.com/rex.jpg"]


def test_parse_dog_form_requires_core_fields_and_an_image():
    registry = ImageRegistry(LocalStore({}))
    resolver = FakeResolver()

    with pytest.raises(FormError, match="required"):
        parse_dog_form(_form(description="  "), registry, resolver)
    with pytest.raises(FormError, match="Please upload an image"):
        parse_dog_form(_form(imageUrl=""), registry, resolver)


def test_parse_dog_form_rejects_non_image_urls():
    registry = ImageRegistry(LocalStore({}))
    resolver = FakeResolver(valid={"https://example.com/rex.jpg"})

    with pytest.raises(FormError, match="Invalid image URL"):
        parse_dog_form(_form(imageUrl="https://example.com/page.html"), registry, resolver)
    with pytest.raises(FormError, match="Invalid GIF URL"):
        parse_dog_form(_form(gifUrl="https://example.com/page.html"), registry, resolver)


def test_uploaded_image_wins_over_url_and_unknown_ids_are_ignored():
    registry = ImageRegistry(LocalStore({}))
    image_id = registry.store(Upload("rex.png", "image/png", io.BytesIO(b"png"))).result()
    resolver = FakeResolver(valid={"https://example.com/rex.jpg"})

    dog = parse_dog_form(_form(imageId=image_id, gifId="not-registered"), registry, resolver)

    assert dog.image_id == image_id
    assert dog.image_url == ""
    assert dog.gif_id is None


def test_parse_dog_form_builds_parents():
    registry = ImageRegistry(LocalStore({}))
    resolver = FakeResolver(valid={"https://example.com/rex.jpg"})

    dog = parse_dog_form(
        _form(
            motherName="Bella",
            motherBreed="Lab",
            motherImageUrl="https://example.com/bella.jpg",
            fatherName="",
            fatherBreed="",
        ),
        registry,
        resolver,
    )

    assert dog.mother.name == "Bella"
    assert dog.mother.image_url == "https://example.com/bella.jpg"
    assert dog.father is None
    assert dog.has_parents


def test_parse_adoption_form():
    assert parse_adoption_form({"dog_id": "dog-1", "fullName": "Ada", "pickupTime": ""}) is None
    request = parse_adoption_form(
        {"dog_id": "dog-1", "fullName": " Ada  Lovelace ", "pickupTime": "2026-10-20T10:00"}
    )

    assert request.full_name == "Ada Lovelace"
    assert request.remarks == ""
