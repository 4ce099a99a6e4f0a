"""
wall_popups.py - Popup HTML for wall segments and POI markers
==============================================================

Each popup is assembled from an ordered tuple of blocks. A block is a pure
function ``properties -> html`` returning an empty string when its source
attribute is missing, so absent data never leaves an empty container.
"""

import html
from typing import Any, Callable, Dict, Optional, Sequence

Properties = Dict[str, Any]
Block = Callable[[Properties], str]

NOT_AVAILABLE = "n.d."
LINE_ENTITY = "Muretto"
POINT_FALLBACK_TITLE = "POI"


# ==================== HELPERS ====================

def _esc(value: Any) -> str:
    """HTML-escape a text attribute."""
    if value is None:
        return ""
    return html.escape(str(value), quote=False)


def _attr(value: Any) -> str:
    """Escape a value placed inside a double-quoted HTML attribute."""
    return html.escape(str(value).strip(), quote=True)


def _present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


def _image(url: Any) -> str:
    return (
        '<p style="margin:8px 0 0 0;">'
        f'<img src="{_attr(url)}" alt="" style="width:100%;border-radius:10px"/>'
        '</p>'
    )


def _link(url: Any, label: str) -> str:
    return (
        '<p style="margin:8px 0 0 0;">'
        f'<a href="{_attr(url)}" target="_blank" rel="noopener">{label}</a>'
        '</p>'
    )


def _title(text: str) -> str:
    return f'<h3 style="margin:0 0 6px 0;">{_esc(text)}</h3>'


def assemble(blocks: Sequence[Block], properties: Optional[Properties]) -> str:
    """Render blocks in order, dropping the empty ones."""
    props = properties or {}
    return "\n".join(part for part in (block(props) for block in blocks) if part)


# ==================== WALL BLOCKS ====================

def line_title(props: Properties) -> str:
    title = props.get("titolo")
    if not _present(title):
        feature_id = props.get("id")
        title = f"{LINE_ENTITY} {'' if feature_id is None else feature_id}".strip()
    return _title(title)


def line_state(props: Properties) -> str:
    state = props.get("stato")
    shown = NOT_AVAILABLE if state is None else state
    return f'<p style="margin:0;"><b>Stato:</b> {_esc(shown)}</p>'


def line_note(props: Properties) -> str:
    note = props.get("note")
    if not _present(note):
        return ""
    return f'<p style="margin:6px 0 0 0;">{_esc(note)}</p>'


def line_photo(props: Properties) -> str:
    photo = props.get("foto")
    return _image(photo) if _present(photo) else ""


LINE_BLOCKS: Sequence[Block] = (line_title, line_state, line_note, line_photo)


def build_line_popup(properties: Optional[Properties]) -> str:
    """Popup HTML of a wall segment: title, state, note, photo."""
    return assemble(LINE_BLOCKS, properties)


# ==================== POI BLOCKS ====================

def point_title(props: Properties) -> str:
    title = props.get("titolo")
    return _title(title if _present(title) else POINT_FALLBACK_TITLE)


def point_content(props: Properties) -> str:
    # Raw HTML comes from the curated dataset and is rendered as-is
    raw_html = props.get("html")
    if _present(raw_html):
        return str(raw_html)
    description = props.get("descrizione")
    if _present(description):
        return f'<p style="margin:6px 0 0 0;">{_esc(description)}</p>'
    return ""


def point_image(props: Properties) -> str:
    image = props.get("immagine")
    return _image(image) if _present(image) else ""


def point_link(props: Properties) -> str:
    url = props.get("link")
    return _link(url, "Apri link") if _present(url) else ""


def point_folder_link(props: Properties) -> str:
    url = props.get("data")
    return _link(url, "Apri cartella Drive") if _present(url) else ""


POINT_BLOCKS: Sequence[Block] = (
    point_title,
    point_content,
    point_image,
    point_link,
    point_folder_link,
)


def build_point_popup(properties: Optional[Properties]) -> str:
    """Popup HTML of a POI: title, content, image, link, folder link."""
    return assemble(POINT_BLOCKS, properties)
