from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from .config import (
    ATTRIBUTE_NAMES,
    DEFAULT_ATTRIBUTES,
    MAX_ATTRIBUTE_SCORE,
    MIN_ATTRIBUTE_SCORE,
)


def new_id() -> str:
    return str(uuid.uuid4())


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def clamp_score(value, default: int) -> int:
    """Coerce an attribute score to an int within the 1..5 range."""
    try:
        score = int(value)
    except (TypeError, ValueError):
        return default
    return max(MIN_ATTRIBUTE_SCORE, min(MAX_ATTRIBUTE_SCORE, score))


def _pick(data: dict, *keys: str):
    for key in keys:
        value = data.get(key)
        if value not in (None, ""):
            return value
    return None


@dataclass(frozen=True)
class DogAttributes:
    friendliness: int = DEFAULT_ATTRIBUTES["friendliness"]
    energy: int = DEFAULT_ATTRIBUTES["energy"]
    trainability: int = DEFAULT_ATTRIBUTES["trainability"]
    kid_friendly: int = DEFAULT_ATTRIBUTES["kidFriendly"]
    size: int = DEFAULT_ATTRIBUTES["size"]

    def __post_init__(self) -> None:
        """Clamp every score into the supported range."""
        for name in ("friendliness", "energy", "trainability", "kid_friendly", "size"):
            default = DEFAULT_ATTRIBUTES["kidFriendly" if name == "kid_friendly" else name]
            object.__setattr__(self, name, clamp_score(getattr(self, name), default))

    @classmethod
    def from_dict(cls, data: dict | None) -> "DogAttributes":
        data = data if isinstance(data, dict) else {}
        merged = {**DEFAULT_ATTRIBUTES}
        for name in ATTRIBUTE_NAMES:
            value = data.get(name)
            if value is None and name == "kidFriendly":
                value = data.get("kid_friendly")
            if value is not None:
                merged[name] = value
        return cls(
            friendliness=merged["friendliness"],
            energy=merged["energy"],
            trainability=merged["trainability"],
            kid_friendly=merged["kidFriendly"],
            size=merged["size"],
        )

    def to_dict(self) -> dict[str, int]:
        return {
            "friendliness": self.friendliness,
            "energy": self.energy,
            "trainability": self.trainability,
            "kidFriendly": self.kid_friendly,
            "size": self.size,
        }

    def score(self, name: str) -> int:
        """Return a score by its serialized name (``kidFriendly`` etc.)."""
        return self.to_dict()[name]


@dataclass(frozen=True)
class ParentRecord:
    name: Optional[str] = None
    breed: Optional[str] = None
    image_url: Optional[str] = None
    image_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict | None) -> Optional["ParentRecord"]:
        if not isinstance(data, dict):
            return None
        parent = cls(
            name=_pick(data, "name"),
            breed=_pick(data, "breed"),
            image_url=_pick(data, "imageUrl", "image_url"),
            image_id=_pick(data, "imageId", "image_id"),
        )
        return None if parent.is_empty() else parent

    def is_empty(self) -> bool:
        return not any((self.name, self.breed, self.image_url, self.image_id))

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "breed": self.breed,
            "imageUrl": self.image_url,
            "imageId": self.image_id,
        }


@dataclass(frozen=True)
class Dog:
    name: str
    breed: str
    description: str = ""
    id: str = field(default_factory=new_id)

    birthdate: Optional[str] = None
    # Free-text age kept for records created before birthdates existed.
    age: Optional[str] = None

    image_url: str = ""
    gif_url: str = ""
    image_id: Optional[str] = None
    gif_id: Optional[str] = None

    attributes: DogAttributes = field(default_factory=DogAttributes)
    mother: Optional[ParentRecord] = None
    father: Optional[ParentRecord] = None
    created_at: Optional[str] = None

    @property
    def has_parents(self) -> bool:
        return self.mother is not None or self.father is not None

    @classmethod
    def from_dict(cls, data: dict) -> "Dog":
        """Build a dog from a stored record or a database row.

        Both the camelCase keys of stored/exported records and the
        snake_case column names of database rows are accepted.
        """
        parents = data.get("parents") if isinstance(data.get("parents"), dict) else {}
        birthdate = data.get("birthdate")
        if hasattr(birthdate, "isoformat"):
            birthdate = birthdate.isoformat()
        created_at = _pick(data, "createdAt", "created_at")
        if hasattr(created_at, "isoformat"):
            created_at = created_at.isoformat()
        return cls(
            id=str(data.get("id") or new_id()),
            name=str(data.get("name") or ""),
            breed=str(data.get("breed") or ""),
            description=str(data.get("description") or ""),
            birthdate=str(birthdate) if birthdate else None,
            age=data.get("age") or None,
            image_url=str(_pick(data, "imageUrl", "image_url") or ""),
            gif_url=str(_pick(data, "gifUrl", "gif_url") or ""),
            image_id=_pick(data, "imageId", "image_id"),
            gif_id=_pick(data, "gifId", "gif_id"),
            attributes=DogAttributes.from_dict(data.get("attributes")),
            mother=ParentRecord.from_dict(parents.get("mother")),
            father=ParentRecord.from_dict(parents.get("father")),
            created_at=str(created_at) if created_at else None,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "breed": self.breed,
            "birthdate": self.birthdate,
            "age": self.age,
            "description": self.description,
            "imageUrl": self.image_url,
            "gifUrl": self.gif_url,
            "imageId": self.image_id,
            "gifId": self.gif_id,
            "attributes": self.attributes.to_dict(),
            "parents": {
                "mother": self.mother.to_dict() if self.mother else None,
                "father": self.father.to_dict() if self.father else None,
            },
            "createdAt": self.created_at,
        }

    def to_api_payload(self) -> dict:
        """Return the request body accepted by the dogs handler.

        Registry ids only live in the local store, so only URL references
        are sent to the remote table.
        """
        parents = None
        if self.has_parents:
            parents = {
                "mother": self.mother.to_dict() if self.mother else None,
                "father": self.father.to_dict() if self.father else None,
            }
        return {
            "name": self.name,
            "breed": self.breed,
            "birthdate": self.birthdate,
            "age": self.age,
            "description": self.description,
            "imageUrl": self.image_url or None,
            "gifUrl": self.gif_url or None,
            "attributes": self.attributes.to_dict(),
            "parents": parents,
        }


@dataclass(frozen=True)
class AdoptionRecord:
    dog_id: str
    dog_name: str
    full_name: str
    pickup_time: str
    remarks: str = ""
    id: str = field(default_factory=new_id)
    created_at: str = field(default_factory=utc_now_iso)

    @classmethod
    def from_dict(cls, data: dict) -> "AdoptionRecord":
        return cls(
            id=str(data.get("id") or new_id()),
            dog_id=str(_pick(data, "dogId", "dog_id") or ""),
            dog_name=str(_pick(data, "dogName", "dog_name") or ""),
            full_name=str(_pick(data, "fullName", "full_name") or ""),
            pickup_time=str(_pick(data, "pickupTime", "pickup_time") or ""),
            remarks=str(data.get("remarks") or ""),
            created_at=str(_pick(data, "createdAt", "created_at") or utc_now_iso()),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "dogId": self.dog_id,
            "dogName": self.dog_name,
            "fullName": self.full_name,
            "pickupTime": self.pickup_time,
            "remarks": self.remarks,
            "createdAt": self.created_at,
        }

    def to_api_payload(self) -> dict:
        return {
            "dogId": self.dog_id,
            "dogName": self.dog_name,
            "fullName": self.full_name,
            "pickupTime": self.pickup_time,
            "remarks": self.remarks or None,
        }


@dataclass(frozen=True)
class StoredImage:
    id: str
    data: str
    filename: str = ""
    size: int = 0
    type: str = ""
    uploaded_at: str = field(default_factory=utc_now_iso)

    @classmethod
    def from_dict(cls, data: dict) -> "StoredImage":
        return cls(
            id=str(data.get("id") or ""),
            data=str(data.get("data") or ""),
            filename=str(data.get("filename") or ""),
            size=int(data.get("size") or 0),
            type=str(data.get("type") or ""),
            uploaded_at=str(data.get("uploadedAt") or utc_now_iso()),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "data": self.data,
            "filename": self.filename,
            "size": self.size,
            "type": self.type,
            "uploadedAt": self.uploaded_at,
        }
