"""HTML rendering helpers for PupMatch."""

from __future__ import annotations

import json
from datetime import date
from html import escape
from urllib.parse import urlencode

from .config import (
    ATTRIBUTE_LABELS,
    ATTRIBUTE_NAMES,
    DEFAULT_ATTRIBUTES,
    DEFAULT_IMAGE_PRESET,
    IMAGE_PRESETS,
    MAX_ATTRIBUTE_SCORE,
    MIN_ATTRIBUTE_SCORE,
)
from .context import AppContext
from .models import Dog, StoredImage
from .views import AttributeRow, DogCard, DogDetail, ImageSlot, build_card, build_detail

# Inline so the guard is in place before any script loads; a repeated error
# on the placeholder itself is ignored.
IMAGE_ONERROR = (
    "if(this.dataset.fallbackApplied!=='1'){"
    "this.dataset.fallbackApplied='1';"
    "this.classList.add('image-error');"
    "this.src=this.dataset.fallbackSrc;"
    "if(this.dataset.fallbackAlt){this.alt=this.dataset.fallbackAlt;}}"
)
PRESET_LABELS = {
    "center": "Center",
    "fit": "Fit",
    "fill": "Fill",
    "original": "Original",
}


def _document(title: str, body: str, owner_mode: bool = False) -> bytes:
    """Wrap page content in the shared document shell.

    Args:
        title: Page title prefix.
        body: Inner HTML for the ``main`` element.
        owner_mode: Whether the header shows the exit-owner-mode control.

    Returns:
        UTF-8 encoded HTML document bytes.
    """
    if owner_mode:
        owner_control = """
          <form class="inline-form" method="post" action="/owner/exit">
            <button class="btn btn-outline" type="submit" aria-expanded="true">Exit Owner Mode</button>
          </form>
        """
    else:
        owner_control = (
            '<a class="btn btn-outline" href="/owner" aria-expanded="false">Owner Mode</a>'
        )
    page_html = f"""<!doctype html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1" />
    <title>{escape(title)} | PupMatch</title>
    <link rel="stylesheet" href="/styles.css" />
  </head>
  <body>
    <div class="app">
      <header class="topbar">
        <a class="brand" href="/">
          <div class="brand-mark">PM</div>
          <div>
            <h1>PupMatch</h1>
            <p>Find your new best friend</p>
          </div>
        </a>
        {owner_control}
      </header>
      <main>
        {body}
      </main>
      <footer class="footer">&copy; <span id="year">{date.today().year}</span> PupMatch</footer>
    </div>
    <script src="/pupmatch.js"></script>
  </body>
</html>"""
    return page_html.encode("utf-8")


def _flash(message: str | None) -> str:
    return f'<div class="flash" role="status">{escape(message)}</div>' if message else ""


def _image_tag(slot: ImageSlot, css_class: str, hover_src: str = "") -> str:
    """Render an ``img`` carrying its placeholder fallback and hover swap."""
    attrs = [
        f'class="{css_class}"',
        f'src="{escape(slot.src)}"',
        f'alt="{escape(slot.alt)}"',
        f'data-fallback-src="{escape(slot.fallback_src)}"',
        'referrerpolicy="no-referrer"',
        f'onerror="{IMAGE_ONERROR}"',
    ]
    if slot.fallback_alt:
        attrs.append(f'data-fallback-alt="{escape(slot.fallback_alt)}"')
    if slot.fallback_applied:
        attrs.append('data-fallback-applied="1"')
    if hover_src:
        attrs.append(f'data-still-src="{escape(slot.src)}"')
        attrs.append(f'data-hover-src="{escape(hover_src)}"')
    return f"<img {' '.join(attrs)} />"


def _attribute_row(row: AttributeRow) -> str:
    bones_html = "".join(
        '<span class="bone" title="Bone"></span>'
        if filled
        else '<span class="bone off" title="Empty"></span>'
        for filled in row.bones
    )
    return f"""
            <div class="attr">
              <div class="attr-name">{escape(row.label)}</div>
              <span class="bones" aria-label="{row.score} of {MAX_ATTRIBUTE_SCORE}">{bones_html}</span>
            </div>"""


def render_card(card: DogCard) -> str:
    """Render one grid card."""
    dog_id = escape(card.dog_id)
    delete_html = ""
    if card.can_delete:
        delete_html = f"""
            <form class="inline-form" method="post" action="/dogs/delete"
                  onsubmit="return confirm({escape(json.dumps(f'Delete {card.name}?'))});">
              <input type="hidden" name="id" value="{dog_id}" />
              <button class="btn btn-outline" type="submit">Delete</button>
            </form>"""
    adopt_query = urlencode({"dog": card.dog_id})
    hover_attr = ' data-hover="1"' if card.hover_src else ""
    return f"""
        <article class="card" tabindex="0" data-detail-href="/dogs/{dog_id}"{hover_attr}>
          <div class="card-media-wrap">
            {_image_tag(card.image, "card-media", card.hover_src)}
          </div>
          <div class="card-body">
            <h4 class="card-title"><a href="/dogs/{dog_id}">{escape(card.name)}</a></h4>
            <p class="card-sub">{escape(card.subtitle)}</p>
          </div>
          <div class="attr-strip">
            <div class="attrs">{"".join(_attribute_row(row) for row in card.attributes)}
            </div>
          </div>
          <div class="card-actions">
            <a class="btn btn-primary" href="/adopt?{adopt_query}">Adopt Me</a>
            {delete_html}
          </div>
        </article>"""


def _score_select(name: str) -> str:
    options = "".join(
        f'<option value="{score}"{" selected" if score == DEFAULT_ATTRIBUTES[name] else ""}>{score}</option>'
        for score in range(MIN_ATTRIBUTE_SCORE, MAX_ATTRIBUTE_SCORE + 1)
    )
    return f"""
              <label class="field">
                <span>{escape(ATTRIBUTE_LABELS[name])}</span>
                <select name="{name}">{options}</select>
              </label>"""


def _upload_field(label: str, prefix: str, url_name: str, id_name: str, accept: str) -> str:
    """Render a URL input paired with a file upload that fills a hidden id."""
    return f"""
              <fieldset class="upload" data-upload="{prefix}">
                <legend>{escape(label)}</legend>
                <input type="url" name="{url_name}" placeholder="https://..." data-upload-url />
                <input type="file" accept="{accept}" data-upload-file />
                <input type="hidden" name="{id_name}" value="" data-upload-id />
                <div class="upload-preview" hidden>
                  <img alt="{escape(label)} preview" data-upload-preview />
                  <a class="btn subtle" href="#" target="_blank" rel="noopener" data-upload-edit>Edit</a>
                  <button class="btn subtle" type="button" data-upload-remove>Remove</button>
                </div>
              </fieldset>"""


def _owner_toolbar() -> str:
    scores_html = "".join(_score_select(name) for name in ATTRIBUTE_NAMES)
    return f"""
      <section id="ownerToolbar" class="owner-toolbar" aria-label="Owner tools">
        <div class="owner-actions">
          <a class="btn" href="/export">Export data</a>
          <form class="inline-form" method="post" action="/owner/clear"
                onsubmit="return confirm('Clear ALL dogs? This cannot be undone.');">
            <button class="btn btn-outline" type="submit">Clear all</button>
          </form>
        </div>
        <form id="addDogForm" class="add-dog-form" method="post" action="/dogs">
          <h3>Add a dog</h3>
          <label class="field"><span>Name</span><input name="name" required /></label>
          <label class="field"><span>Breed</span><input name="breed" required /></label>
          <label class="field"><span>Birthdate</span><input name="birthdate" type="date" /></label>
          <label class="field"><span>Description</span><textarea name="description" rows="3" required></textarea></label>
          {_upload_field("Photo", "image", "imageUrl", "imageId", "image/*")}
          {_upload_field("Animated GIF (shown on hover)", "gif", "gifUrl", "gifId", "image/gif")}
          <div class="scores">{scores_html}
          </div>
          <div class="parents-fields">
            <label class="field"><span>Mother name</span><input name="motherName" /></label>
            <label class="field"><span>Mother breed</span><input name="motherBreed" /></label>
            {_upload_field("Mother photo", "mother", "motherImageUrl", "motherImageId", "image/*")}
            <label class="field"><span>Father name</span><input name="fatherName" /></label>
            <label class="field"><span>Father breed</span><input name="fatherBreed" /></label>
            {_upload_field("Father photo", "father", "fatherImageUrl", "fatherImageId", "image/*")}
          </div>
          <button class="btn btn-primary" type="submit">Add dog</button>
        </form>
      </section>"""


def render_index(
    ctx: AppContext,
    owner_mode: bool = False,
    message: str | None = None,
) -> bytes:
    """Render the adoptable-dog grid.

    Args:
        ctx: Application context holding the stores.
        owner_mode: Whether owner tools and delete actions are shown.
        message: Optional info/error message to display.

    Returns:
        UTF-8 encoded HTML document bytes.
    """
    today = ctx.today()
    cards = [
        build_card(dog, ctx.images, owner_mode=owner_mode, today=today)
        for dog in ctx.catalog.list()
    ]
    if cards:
        grid_html = "".join(render_card(card) for card in cards)
    else:
        grid_html = '<div class="state state-empty">No dogs are listed yet. Check back soon.</div>'
    body = f"""
      {_flash(message)}
      {_owner_toolbar() if owner_mode else ""}
      <section class="hero">
        <h2>Meet our dogs</h2>
        <p>{len(cards)} waiting for a home</p>
      </section>
      <section id="dogGrid" class="grid">{grid_html}
      </section>"""
    return _document("Adopt a dog", body, owner_mode=owner_mode)


def render_detail(
    ctx: AppContext,
    dog: Dog,
    owner_mode: bool = False,
    message: str | None = None,
) -> bytes:
    """Render the detail view for one dog, parents included."""
    detail: DogDetail = build_detail(dog, ctx.images, owner_mode=owner_mode, today=ctx.today())
    card = detail.card
    parents_html = ""
    if detail.parents:
        parent_cards = "".join(
            f"""
            <div class="parent-card">
              <div class="parent-label">{escape(parent.label)}</div>
              <div class="parent-row">
                {_image_tag(parent.image, "parent-media")}
                <div>
                  <div class="parent-name">{escape(parent.name)}</div>
                  <div class="muted">{escape(parent.breed)}</div>
                </div>
              </div>
            </div>"""
            for parent in detail.parents
        )
        parents_html = f"""
          <div class="parents-section">
            <h5>Parents</h5>
            <div class="parents-grid">{parent_cards}
            </div>
          </div>"""
    adopt_query = urlencode({"dog": card.dog_id})
    body = f"""
      {_flash(message)}
      <article class="detail" data-hover="{'1' if card.hover_src else ''}">
        <h2>{escape(card.name)}</h2>
        {_image_tag(card.image, "detail-media", card.hover_src)}
        <p class="card-sub">{escape(card.subtitle)}</p>
        <p class="detail-desc">{escape(detail.description)}</p>
        <div class="attrs">{"".join(_attribute_row(row) for row in card.attributes)}
        </div>
        {parents_html}
        <div class="card-actions">
          <a class="btn btn-primary" href="/adopt?{adopt_query}">Adopt Me</a>
          <a class="btn btn-outline" href="/">Close</a>
        </div>
      </article>"""
    return _document(card.name, body, owner_mode=owner_mode)


def render_adopt_page(dog: Dog, message: str | None = None, owner_mode: bool = False) -> bytes:
    """Render the adoption request form for ``dog``."""
    body = f"""
      {_flash(message)}
      <section class="dialog">
        <h2 id="adoptTitle">Adopt {escape(dog.name)}</h2>
        <form id="adoptForm" method="post" action="/adopt">
          <input type="hidden" name="dog_id" value="{escape(dog.id)}" />
          <label class="field"><span>Full name</span><input name="fullName" required /></label>
          <label class="field"><span>Pickup time</span><input name="pickupTime" type="datetime-local" required /></label>
          <label class="field"><span>Remarks</span><textarea name="remarks" rows="3"></textarea></label>
          <div class="card-actions">
            <button class="btn btn-primary" type="submit">Submit</button>
            <a class="btn btn-outline" href="/">Cancel</a>
          </div>
        </form>
      </section>"""
    return _document(f"Adopt {dog.name}", body, owner_mode=owner_mode)


def render_owner_page(message: str | None = None, next_path: str = "/") -> bytes:
    """Render the owner PIN prompt."""
    body = f"""
      {_flash(message)}
      <section class="dialog">
        <h2>Owner Mode</h2>
        <form method="post" action="/owner">
          <input type="hidden" name="next" value="{escape(next_path)}" />
          <label class="field"><span>Enter owner PIN</span>
            <input name="pin" type="password" autocomplete="off" required />
          </label>
          <div class="card-actions">
            <button class="btn btn-primary" type="submit">Unlock</button>
            <a class="btn btn-outline" href="/">Cancel</a>
          </div>
        </form>
      </section>"""
    return _document("Owner Mode", body)


def render_image_editor(
    image: StoredImage,
    image_type: str = "image",
    preset: str = DEFAULT_IMAGE_PRESET,
    message: str | None = None,
) -> bytes:
    """Render the preset editor for an uploaded image."""
    preset = preset if preset in IMAGE_PRESETS else DEFAULT_IMAGE_PRESET
    heading = "Edit Image" if image_type == "image" else "Edit GIF"

    def preset_link(target: str, label: str) -> str:
        query = urlencode({"id": image.id, "type": image_type, "preset": target})
        active = " is-active" if target == preset else ""
        return f'<a class="btn preset{active}" href="/images/edit?{escape(query)}">{escape(label)}</a>'

    preset_links = "".join(preset_link(name, PRESET_LABELS[name]) for name in IMAGE_PRESETS)
    zoom_links = (
        preset_link("fill", "Zoom in") + preset_link("fit", "Zoom out") + preset_link("fit", "Reset")
    )
    preview_query = urlencode({"id": image.id, "preset": preset})
    body = f"""
      {_flash(message)}
      <section class="dialog image-editor">
        <h2 id="imagePreviewTitle">{escape(heading)}</h2>
        <div id="imageContainer" class="editor-stage preset-{preset}">
          <img id="editableImage" src="{escape(image.data)}" alt="{escape(image.filename)}" />
        </div>
        <div class="editor-controls">{preset_links}{zoom_links}</div>
        <div class="editor-thumb">
          <span>Thumbnail</span>
          <img id="thumbnailPreview" src="/images/preview?{escape(preview_query)}" alt="Thumbnail preview" />
        </div>
        <form method="post" action="/images/edit">
          <input type="hidden" name="id" value="{escape(image.id)}" />
          <input type="hidden" name="type" value="{escape(image_type)}" />
          <input type="hidden" name="preset" value="{escape(preset)}" />
          <button class="btn btn-primary" type="submit">Save</button>
        </form>
      </section>"""
    return _document(heading, body)


def render_not_found(message: str = "That dog is no longer listed.") -> bytes:
    body = f"""
      <section class="stack">
        <div class="state state-empty">{escape(message)}</div>
        <a class="btn" href="/">Back to all dogs</a>
      </section>"""
    return _document("Not found", body)
