"""Registry of uploaded images kept as embedded data URLs.

Images are referenced from dogs and parent records by registry id. The
registry also hosts the preset-based crop/fit transform used by the image
editor, rendered to a fixed-size canvas with Pillow.
"""

from __future__ import annotations

import base64
import concurrent.futures
import io
import logging
import mimetypes
import time
from dataclasses import dataclass
from typing import BinaryIO
from urllib.parse import unquote_to_bytes

from PIL import Image

from .config import (
    EDIT_CANVAS_SIZE,
    IMAGE_PRESETS,
    MAX_UPLOAD_BYTES,
    STORAGE_KEYS,
    THUMBNAIL_SIZE,
)
from .models import StoredImage, new_id, utc_now_iso
from .storage import LocalStore

logger = logging.getLogger(__name__)


class ImageReadError(Exception):
    """Raised when an uploaded file cannot be read into the registry."""


@dataclass(frozen=True)
class Upload:
    filename: str
    content_type: str
    stream: BinaryIO


def to_data_url(content: bytes, content_type: str) -> str:
    encoded = base64.b64encode(content).decode("ascii")
    return f"data:{content_type};base64,{encoded}"


def decode_data_url(data_url: str) -> tuple[str, bytes]:
    """Split a ``data:`` URL into its MIME type and raw bytes.

    Args:
        data_url: Embedded payload such as ``data:image/png;base64,...``.

    Returns:
        Tuple of MIME type and decoded bytes.

    Raises:
        ValueError: If the text is not a data URL.
    """
    if not data_url.startswith("data:") or "," not in data_url:
        raise ValueError("not a data URL")
    header, payload = data_url[5:].split(",", 1)
    parts = header.split(";")
    content_type = parts[0] or "text/plain"
    if "base64" in parts[1:]:
        try:
            return content_type, base64.b64decode(payload, validate=True)
        except (ValueError, TypeError) as exc:
            raise ValueError(f"invalid base64 payload: {exc}") from exc
    return content_type, unquote_to_bytes(payload)


def render_preset(image: Image.Image, preset: str, size: int) -> Image.Image:
    """Draw ``image`` onto a transparent ``size`` x ``size`` canvas.

    ``center`` and ``fit`` scale the whole image inside the canvas, ``fill``
    covers the canvas and crops the overflow, ``original`` keeps the native
    size unless it would overflow.
    """
    if preset not in IMAGE_PRESETS:
        raise ValueError(f"Unknown preset='{preset}'. Options: {list(IMAGE_PRESETS)}")
    width, height = image.size
    if preset == "fill":
        scale = max(size / width, size / height)
    elif preset == "original":
        scale = min(size / width, size / height, 1)
    else:
        scale = min(size / width, size / height)
    scaled_width = max(1, round(width * scale))
    scaled_height = max(1, round(height * scale))
    resized = image.convert("RGBA").resize((scaled_width, scaled_height))
    canvas = Image.new("RGBA", (size, size), (0, 0, 0, 0))
    x = round((size - scaled_width) / 2)
    y = round((size - scaled_height) / 2)
    canvas.paste(resized, (x, y), resized)
    return canvas


def _png_bytes(image: Image.Image) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


class ImageRegistry:
    def __init__(self, store: LocalStore, executor=None):
        self.local_store = store
        self.executor = executor or concurrent.futures.ThreadPoolExecutor(
            max_workers=2, thread_name_prefix="pupmatch-upload"
        )
        self.images: dict[str, StoredImage] = {}
        self.load()

    def load(self) -> dict[str, StoredImage]:
        raw = self.local_store.read(STORAGE_KEYS["uploaded_images"], {})
        images: dict[str, StoredImage] = {}
        if isinstance(raw, dict):
            for image_id, entry in raw.items():
                if not isinstance(entry, dict):
                    continue
                try:
                    images[str(image_id)] = StoredImage.from_dict({**entry, "id": image_id})
                except (TypeError, ValueError) as exc:
                    logger.warning(f"Skipping unreadable image {image_id}: {exc}")
        self.images = images
        return self.images

    def save(self) -> None:
        self.local_store.write(
            STORAGE_KEYS["uploaded_images"],
            {image_id: image.to_dict() for image_id, image in self.images.items()},
        )

    def _read_upload(self, upload: Upload) -> str:
        try:
            content = upload.stream.read()
        except OSError as exc:
            raise ImageReadError(f"Could not read {upload.filename}: {exc}") from exc
        if not isinstance(content, bytes) or not content:
            raise ImageReadError(f"{upload.filename or 'Upload'} is empty.")
        if len(content) > MAX_UPLOAD_BYTES:
            raise ImageReadError(f"{upload.filename} is larger than {MAX_UPLOAD_BYTES} bytes.")
        content_type = (
            upload.content_type
            or mimetypes.guess_type(upload.filename)[0]
            or "application/octet-stream"
        )
        image = StoredImage(
            id=new_id(),
            data=to_data_url(content, content_type),
            filename=upload.filename,
            size=len(content),
            type=content_type,
        )
        self.images[image.id] = image
        self.save()
        logger.info(f"Stored image {image.id} ({upload.filename}, {len(content)} bytes)")
        return image.id

    def store(self, upload: Upload) -> concurrent.futures.Future:
        """Read an upload in the background and register it.

        Args:
            upload: Uploaded file metadata and readable stream.

        Returns:
            A future resolving to the new image id, or raising
            ``ImageReadError`` when the read fails.
        """
        return self.executor.submit(self._read_upload, upload)

    def resolve(self, image_id: str | None) -> str:
        image = self.images.get(image_id) if image_id else None
        return image.data if image else ""

    def get(self, image_id: str | None) -> StoredImage | None:
        return self.images.get(image_id) if image_id else None

    def remove(self, image_id: str | None) -> None:
        if image_id and self.images.pop(image_id, None) is not None:
            self.save()

    def all(self) -> list[StoredImage]:
        return list(self.images.values())

    def _open(self, image_id: str) -> Image.Image:
        stored = self.images.get(image_id)
        if stored is None:
            raise KeyError(image_id)
        _, content = decode_data_url(stored.data)
        image = Image.open(io.BytesIO(content))
        image.load()
        return image

    def preview(self, image_id: str, preset: str) -> bytes:
        """Return a thumbnail PNG of ``preset`` applied to a stored image."""
        return _png_bytes(render_preset(self._open(image_id), preset, THUMBNAIL_SIZE))

    def apply_preset(self, image_id: str, preset: str) -> StoredImage:
        """Replace a stored image with its ``preset`` rendering on the edit canvas."""
        rendered = render_preset(self._open(image_id), preset, EDIT_CANVAS_SIZE)
        data_url = to_data_url(_png_bytes(rendered), "image/png")
        edited = StoredImage(
            id=image_id,
            data=data_url,
            filename=f"edited_{int(time.time() * 1000)}.png",
            size=len(data_url),
            type="image/png",
            uploaded_at=utc_now_iso(),
        )
        self.images[image_id] = edited
        self.save()
        logger.info(f"Applied '{preset}' preset to image {image_id}")
        return edited
