"""Server-rendered PupMatch application.

This module provides the HTTP server for browsing adoptable dogs, filing
adoption requests, owner-mode catalog edits, image uploads and the JSON
record handlers.
"""

from __future__ import annotations

import argparse
import io
import json
import logging
import os
from http.cookies import CookieError, SimpleCookie
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from urllib.parse import parse_qs, unquote, urlencode, urlparse

from .auth import decode_owner_value, encode_owner_value, normalize_next_path, pin_matches
from .catalog import Catalog
from .config import (
    DEFAULT_IMAGE_PRESET,
    IMAGE_PRESETS,
    OWNER_COOKIE_MAX_AGE_SECONDS,
    OWNER_COOKIE_NAME,
    STATIC_DIR,
)
from .context import AppContext, build_context
from .forms import FormError, parse_adoption_form, parse_dog_form
from .handlers import handle_adoptions, handle_dogs
from .images import ImageReadError, Upload, decode_data_url
from .pages import (
    render_adopt_page,
    render_detail,
    render_image_editor,
    render_index,
    render_not_found,
    render_owner_page,
)
from .storage import LocalStore

logger = logging.getLogger(__name__)

API_HANDLERS = {
    "/api/dogs": handle_dogs,
    "/api/adoptions": handle_adoptions,
}
NO_STORE = "no-store, no-cache, must-revalidate, max-age=0"


def _first(query: dict[str, list[str]], key: str, default: str = "") -> str:
    return query.get(key, [default])[0]


class AppHandler(SimpleHTTPRequestHandler):
    """HTTP handler for PupMatch pages, owner actions and record APIs."""

    context: AppContext | None = None

    def __init__(self, *args, **kwargs):
        super().__init__(*args, directory=str(STATIC_DIR), **kwargs)

    @property
    def ctx(self) -> AppContext:
        if self.context is None:
            raise RuntimeError("AppHandler.context is not configured")
        return self.context

    def _catalog(self) -> Catalog:
        """Return the catalog, pulling the remote list first when it is stale."""
        catalog = self.ctx.catalog
        catalog.refresh_if_stale()
        return catalog

    def _send_body(
        self,
        status: int,
        body: bytes,
        content_type: str,
        extra_headers: dict[str, str] | None = None,
    ) -> None:
        self.send_response(status)
        self.send_header("Content-Type", content_type)
        self.send_header("Cache-Control", NO_STORE)
        for name, value in (extra_headers or {}).items():
            self.send_header(name, value)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        if self.command != "HEAD":
            self.wfile.write(body)

    def _send_json(self, status: int, payload) -> None:
        """Write a JSON response.

        Args:
            status: HTTP status code.
            payload: JSON-serializable response payload.
        """
        self._send_body(status, json.dumps(payload).encode("utf-8"), "application/json")

    def _send_html(self, status: int, body: bytes) -> None:
        self._send_body(status, body, "text/html; charset=utf-8")

    def _redirect(self, location: str, cookie: str | None = None) -> None:
        self.send_response(303)
        if cookie:
            self.send_header("Set-Cookie", cookie)
        self.send_header("Location", location)
        self.send_header("Content-Length", "0")
        self.end_headers()

    def _redirect_with_message(self, path: str, message: str, **params: str) -> None:
        query = urlencode({**params, "msg": message})
        self._redirect(f"{path}?{query}")

    def _read_body(self) -> bytes:
        length = int(self.headers.get("Content-Length") or 0)
        return self.rfile.read(length) if length else b""

    def _read_form(self) -> dict[str, str]:
        """Read a urlencoded body into a flat field dict (first value wins)."""
        raw = self._read_body().decode("utf-8", errors="replace")
        parsed = parse_qs(raw, keep_blank_values=True)
        return {key: values[0] for key, values in parsed.items()}

    def _owner_cookie(self, value: str, max_age: int) -> str:
        parts = [
            f"{OWNER_COOKIE_NAME}={value}",
            "Path=/",
            "HttpOnly",
            "SameSite=Lax",
            f"Max-Age={max_age}",
        ]
        if (self.headers.get("X-Forwarded-Proto") or "").lower() == "https":
            parts.append("Secure")
        return "; ".join(parts)

    def _owner_cookie_header(self) -> str:
        return self._owner_cookie(encode_owner_value(), OWNER_COOKIE_MAX_AGE_SECONDS)

    def _clear_owner_cookie_header(self) -> str:
        return self._owner_cookie("", 0)

    def _owner_mode(self) -> bool:
        jar = SimpleCookie()
        try:
            jar.load(self.headers.get("Cookie") or "")
        except CookieError:
            return False
        morsel = jar.get(OWNER_COOKIE_NAME)
        return decode_owner_value(morsel.value if morsel else None)

    def _require_owner_page(self, path: str) -> bool:
        """Redirect to the PIN prompt unless owner mode is on."""
        if self._owner_mode():
            return True
        self._redirect_with_message("/owner", "Enter the owner PIN to continue.", next=path)
        return False

    def _dispatch_api(self, parsed) -> None:
        """Run a record handler and copy its response onto the wire."""
        handler = API_HANDLERS[parsed.path]
        body = self._read_body()
        event = {
            "httpMethod": self.command,
            "path": parsed.path,
            "headers": {key: value for key, value in self.headers.items()},
            "queryStringParameters": {
                key: values[0] for key, values in parse_qs(parsed.query).items()
            },
            "body": body.decode("utf-8", errors="replace") if body else None,
        }
        response = handler(event)
        data = (response.get("body") or "").encode("utf-8")
        self.send_response(response["statusCode"])
        for name, value in response.get("headers", {}).items():
            self.send_header(name, value)
        self.send_header("Content-Length", str(len(data)))
        self.end_headers()
        if data:
            self.wfile.write(data)

    def do_OPTIONS(self):
        parsed = urlparse(self.path)
        if parsed.path in API_HANDLERS:
            return self._dispatch_api(parsed)
        self.send_response(204)
        self.send_header("Allow", "GET, HEAD, POST")
        self.end_headers()

    def do_DELETE(self):
        parsed = urlparse(self.path)
        if parsed.path in API_HANDLERS:
            return self._dispatch_api(parsed)
        return self._send_json(405, {"error": "Method Not Allowed"})

    do_PUT = do_DELETE
    do_PATCH = do_DELETE

    def do_GET(self):
        """Handle GET requests for pages, APIs, and static assets."""
        parsed = urlparse(self.path)
        query = parse_qs(parsed.query)
        message = _first(query, "msg") or None
        owner_mode = self._owner_mode()

        if parsed.path in API_HANDLERS:
            return self._dispatch_api(parsed)

        if parsed.path == "/api/health":
            return self._send_json(
                200,
                {
                    "ok": True,
                    "dogs": len(self._catalog().list()),
                    "mirrored": self.ctx.catalog.remote is not None,
                },
            )

        if parsed.path in ("/", "/index.html"):
            self._catalog()
            return self._send_html(200, render_index(self.ctx, owner_mode=owner_mode, message=message))

        if parsed.path.startswith("/dogs/"):
            dog = self._catalog().get(unquote(parsed.path[len("/dogs/"):]))
            if dog is None:
                return self._send_html(404, render_not_found())
            return self._send_html(
                200, render_detail(self.ctx, dog, owner_mode=owner_mode, message=message)
            )

        if parsed.path == "/adopt":
            dog = self._catalog().get(_first(query, "dog"))
            if dog is None:
                return self._send_html(404, render_not_found())
            return self._send_html(
                200, render_adopt_page(dog, message=message, owner_mode=owner_mode)
            )

        if parsed.path == "/owner":
            next_path = normalize_next_path(_first(query, "next", "/"))
            if owner_mode:
                return self._redirect(next_path)
            return self._send_html(200, render_owner_page(message=message, next_path=next_path))

        if parsed.path == "/export":
            if not self._require_owner_page("/export"):
                return
            self._catalog()
            body = json.dumps(self.ctx.export_payload(), indent=2).encode("utf-8")
            return self._send_body(
                200,
                body,
                "application/json",
                {"Content-Disposition": f'attachment; filename="{self.ctx.export_filename()}"'},
            )

        if parsed.path == "/images/edit":
            if not self._require_owner_page(f"{parsed.path}?{parsed.query}"):
                return
            image = self.ctx.images.get(_first(query, "id"))
            if image is None:
                return self._send_html(404, render_not_found("That image is no longer available."))
            return self._send_html(
                200,
                render_image_editor(
                    image,
                    image_type=_first(query, "type", "image"),
                    preset=_first(query, "preset", DEFAULT_IMAGE_PRESET),
                    message=message,
                ),
            )

        if parsed.path == "/images/preview":
            preset = _first(query, "preset", DEFAULT_IMAGE_PRESET)
            if preset not in IMAGE_PRESETS:
                return self._send_json(400, {"error": f"Unknown preset '{preset}'"})
            try:
                png = self.ctx.images.preview(_first(query, "id"), preset)
            except KeyError:
                return self._send_json(404, {"error": "Image not found"})
            except (OSError, ValueError) as exc:
                logger.warning(f"Preview failed for image {_first(query, 'id')}: {exc}")
                return self._send_json(400, {"error": "Image could not be decoded"})
            return self._send_body(200, png, "image/png")

        return super().do_GET()

    def do_POST(self):
        """Handle form posts, owner actions, uploads and record API writes."""
        parsed = urlparse(self.path)

        if parsed.path in API_HANDLERS:
            return self._dispatch_api(parsed)

        if parsed.path == "/adopt":
            form = self._read_form()
            request = parse_adoption_form(form)
            if request is None:
                return self._redirect(f"/adopt?{urlencode({'dog': form.get('dog_id', '')})}")
            dog = self._catalog().get(request.dog_id)
            if dog is None:
                return self._redirect_with_message("/", "That dog is no longer listed.")
            self.ctx.adoptions.submit(
                dog_id=dog.id,
                dog_name=dog.name,
                full_name=request.full_name,
                pickup_time=request.pickup_time,
                remarks=request.remarks,
            )
            return self._redirect_with_message("/", f"Thank you for adopting {dog.name}.")

        if parsed.path == "/owner":
            form = self._read_form()
            next_path = normalize_next_path(form.get("next"))
            if not pin_matches(form.get("pin")):
                logger.info("Rejected owner PIN attempt.")
                return self._redirect_with_message("/owner", "Invalid PIN", next=next_path)
            return self._redirect(next_path, cookie=self._owner_cookie_header())

        if parsed.path == "/owner/exit":
            return self._redirect("/", cookie=self._clear_owner_cookie_header())

        if parsed.path == "/api/images":
            return self._upload_image()

        if not self._owner_mode():
            return self._redirect_with_message("/owner", "Owner mode required.")

        if parsed.path == "/dogs":
            form = self._read_form()
            try:
                dog = parse_dog_form(form, self.ctx.images, self.ctx.resolver)
            except FormError as exc:
                return self._redirect_with_message("/", str(exc))
            dog = self.ctx.catalog.add(dog)
            logger.info(f"Owner added dog {dog.id} ({dog.name})")
            return self._redirect_with_message("/", f"{dog.name} was added.")

        if parsed.path == "/dogs/delete":
            dog_id = self._read_form().get("id", "")
            dog = self.ctx.catalog.get(dog_id)
            if dog is None:
                return self._redirect_with_message("/", "That dog is no longer listed.")
            self.ctx.catalog.remove_by_id(dog.id)
            return self._redirect_with_message("/", f"Deleted {dog.name}.")

        if parsed.path == "/owner/clear":
            self.ctx.catalog.clear()
            return self._redirect_with_message("/", "All dogs cleared.")

        if parsed.path == "/images/remove":
            self.ctx.images.remove(self._read_form().get("id"))
            return self._send_json(200, {"ok": True})

        if parsed.path == "/images/edit":
            form = self._read_form()
            image_id = form.get("id", "")
            image_type = form.get("type") or "image"
            preset = form.get("preset") or DEFAULT_IMAGE_PRESET
            try:
                self.ctx.images.apply_preset(image_id, preset)
            except KeyError:
                return self._send_html(404, render_not_found("That image is no longer available."))
            except (OSError, ValueError) as exc:
                logger.warning(f"Could not apply '{preset}' to image {image_id}: {exc}")
                return self._redirect_with_message(
                    "/images/edit",
                    "That image could not be edited.",
                    id=image_id,
                    type=image_type,
                )
            return self._redirect_with_message(
                "/images/edit",
                "Saved. The edited image will be used when the dog is added.",
                id=image_id,
                type=image_type,
                preset=preset,
            )

        return self._send_json(404, {"error": "Not found"})

    def _upload_image(self) -> None:
        """Register a ``{filename, data}`` JSON upload and answer with its id."""
        if not self._owner_mode():
            return self._send_json(403, {"error": "Owner mode required"})
        try:
            payload = json.loads(self._read_body() or b"{}")
        except ValueError:
            return self._send_json(400, {"error": "Invalid JSON"})
        if not isinstance(payload, dict):
            return self._send_json(400, {"error": "Invalid JSON"})
        filename = str(payload.get("filename") or "upload")
        try:
            content_type, content = decode_data_url(str(payload.get("data") or ""))
        except ValueError:
            return self._send_json(400, {"error": f"Failed to read {filename}."})
        upload = Upload(
            filename=filename,
            content_type=str(payload.get("type") or content_type),
            stream=io.BytesIO(content),
        )
        try:
            image_id = self.ctx.images.store(upload).result()
        except ImageReadError as exc:
            logger.warning(f"Upload rejected: {exc}")
            return self._send_json(400, {"error": str(exc)})
        image = self.ctx.images.get(image_id)
        return self._send_json(201, image.to_dict())

    def log_message(self, fmt, *args):
        logger.debug(f"{self.address_string()} {fmt % args}")


def main() -> None:
    """Run the PupMatch HTTP server from CLI arguments."""
    log_level = (os.environ.get("LOG_LEVEL") or "INFO").upper()
    logging.basicConfig(
        level=log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )
    parser = argparse.ArgumentParser(description="Serve the PupMatch web app")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument(
        "--clear-cache",
        action="store_true",
        help="Clear the local record store before starting",
    )
    args = parser.parse_args()

    store = LocalStore()
    if args.clear_cache:
        store.clear()
        print("Cache cleared.")

    AppHandler.context = build_context(store)
    server = ThreadingHTTPServer((args.host, args.port), AppHandler)
    print(f"PupMatch running at http://{args.host}:{args.port}")
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    finally:
        server.server_close()
        store.close()


if __name__ == "__main__":
    main()
