import io

import pytest
from PIL import Image

from pupmatch.images import (
    ImageReadError,
    ImageRegistry,
    Upload,
    decode_data_url,
    render_preset,
    to_data_url,
)
from pupmatch.storage import LocalStore


def _png(width: int, height: int, color=(200, 40, 40, 255)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGBA", (width, height), color).save(buffer, format="PNG")
    return buffer.getvalue()


def _alpha(image: Image.Image, x: int, y: int) -> int:
    return image.getpixel((x, y))[3]


def test_fit_and_center_letterbox_inside_canvas():
    source = Image.new("RGBA", (200, 100), (0, 0, 255, 255))

    for preset in ("fit", "center"):
        canvas = render_preset(source, preset, 400)
        assert canvas.size == (400, 400)
        assert _alpha(canvas, 0, 0) == 0
        assert _alpha(canvas, 200, 200) == 255
        assert _alpha(canvas, 200, 99) == 0
        assert _alpha(canvas, 200, 100) == 255


def test_fill_covers_canvas():
    canvas = render_preset(Image.new("RGBA", (200, 100), (0, 0, 255, 255)), "fill", 400)

    assert _alpha(canvas, 0, 0) == 255
    assert _alpha(canvas, 399, 399) == 255


def test_original_does_not_upscale():
    canvas = render_preset(Image.new("RGBA", (200, 100), (0, 0, 255, 255)), "original", 400)

    assert _alpha(canvas, 99, 200) == 0
    assert _alpha(canvas, 100, 150) == 255
    assert _alpha(canvas, 299, 249) == 255
    assert _alpha(canvas, 300, 200) == 0


def test_unknown_preset_is_rejected():
    with pytest.raises(ValueError):
        render_preset(Image.new("RGBA", (10, 10)), "stretch", 100)


def test_decode_data_url_handles_base64_and_plain_payloads():
    assert decode_data_url(to_data_url(b"abc", "image/png")) == ("image/png", b"abc")
    assert decode_data_url("data:image/svg+xml;utf8,%3Csvg%3E") == ("image/svg+xml", b"<svg>")
    with pytest.raises(ValueError):
        decode_data_url("https://example.com/a.png")


def test_store_registers_upload_and_persists():
    store = LocalStore({})
    registry = ImageRegistry(store)

    image_id = registry.store(Upload("rex.png", "image/png", io.BytesIO(_png(20, 10)))).result()

    stored = registry.get(image_id)
    assert stored.filename == "rex.png"
    assert stored.type == "image/png"
    assert registry.resolve(image_id).startswith("data:image/png;base64,")
    assert ImageRegistry(store).get(image_id) == stored


def test_store_guesses_type_from_filename():
    registry = ImageRegistry(LocalStore({}))

    image_id = registry.store(Upload("rex.png", "", io.BytesIO(_png(4, 4)))).result()

    assert registry.get(image_id).type == "image/png"


def test_store_rejects_empty_upload():
    registry = ImageRegistry(LocalStore({}))

    future = registry.store(Upload("empty.png", "image/png", io.BytesIO(b"")))

    with pytest.raises(ImageReadError):
        future.result()
    assert registry.all() == []


def test_store_reports_unreadable_stream():
    class BrokenStream:
        def read(self):
            raise OSError("connection reset")

    registry = ImageRegistry(LocalStore({}))

    with pytest.raises(ImageReadError, match="connection reset"):
        registry.store(Upload("rex.png", "image/png", BrokenStream())).result()


def test_preview_and_apply_preset():
    registry = ImageRegistry(LocalStore({}))
    image_id = registry.store(Upload("rex.jpg", "image/png", io.BytesIO(_png(300, 150)))).result()

    thumbnail = Image.open(io.BytesIO(registry.preview(image_id, "fill")))
    assert thumbnail.size == (120, 120)

    edited = registry.apply_preset(image_id, "fit")
    assert edited.id == image_id
    assert edited.filename.startswith("edited_") and edited.filename.endswith(".png")
    assert edited.type == "image/png"
    _, content = decode_data_url(registry.resolve(image_id))
    assert Image.open(io.BytesIO(content)).size == (400, 400)


def test_preview_unknown_id_raises_key_error():
    registry = ImageRegistry(LocalStore({}))

    with pytest.raises(KeyError):
        registry.preview("missing", "fit")


def test_remove_drops_image():
    store = LocalStore({})
    registry = ImageRegistry(store)
    image_id = registry.store(Upload("rex.png", "image/png", io.BytesIO(_png(4, 4)))).result()

    registry.remove(image_id)
    registry.remove("missing")

    assert registry.resolve(image_id) == ""
    assert ImageRegistry(store).all() == []


def test_unreadable_entries_are_skipped_on_load():
    store = LocalStore(
        {
            "pupmatch.uploaded_images": (
                '{"bad": {"data": "x", "size": "big"}, "good": {"data": "data:,ok", "size": 2}, "odd": 3}'
            )
        }
    )

    registry = ImageRegistry(store)

    assert [image.id for image in registry.all()] == ["good"]
    assert registry.resolve("good") == "data:,ok"
