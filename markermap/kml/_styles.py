"""KML style resolution: icon colors and scoped style tables.

KML stores colors as ``aabbggrr`` hex; the app stores ``#rrggbb``. Styles
are declared at document level and inside folders, and a folder's own
declarations shadow inherited ones of the same id for everything below it.
``StyleTable`` is immutable: each scope derives a new table from its parent,
so sibling folders never see each other's overrides.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from typing import TYPE_CHECKING

from markermap.core.constants import DEFAULT_COLOR
from markermap.kml._constants import HEX_DIGITS, KML_COLOR_LENGTH
from markermap.kml._validation import child_text, children

if TYPE_CHECKING:
    from lxml.etree import _Element

logger = logging.getLogger("markermap.kml")


def parse_kml_color(kml_color: str | None) -> str:
    """Convert a KML ``aabbggrr`` color to ``#rrggbb``.

    Alpha is dropped. Anything that is not exactly eight hex digits
    yields ``DEFAULT_COLOR``; this never raises.

    >>> parse_kml_color("ff0000ff")
    '#ff0000'
    """
    value = (kml_color or "").strip()
    if len(value) != KML_COLOR_LENGTH or not set(value) <= HEX_DIGITS:
        return DEFAULT_COLOR
    blue = value[2:4]
    green = value[4:6]
    red = value[6:8]
    return f"#{red}{green}{blue}".lower()


def color_from_style_url(style_url: str | None, styles: Mapping[str, str]) -> str:
    """Resolve a ``styleUrl`` such as ``#icon-red`` against *styles*.

    Only document-local references (leading ``#``) are supported; anything
    else, or an unknown id, yields ``DEFAULT_COLOR``.
    """
    if not style_url or not style_url.startswith("#"):
        return DEFAULT_COLOR
    return styles.get(style_url[1:], DEFAULT_COLOR)


def icon_color(style: _Element) -> str | None:
    """Return the ``#rrggbb`` icon color declared by a ``<Style>``, if any."""
    raw = child_text(style, "IconStyle", "color")
    if raw is None:
        return None
    return parse_kml_color(raw)


def inline_color(placemark: _Element) -> str | None:
    """Color from ``<Style>`` blocks attached directly to a placemark.

    When several inline styles carry an icon color, the last one wins.
    """
    color: str | None = None
    for style in children(placemark, "Style"):
        declared = icon_color(style)
        if declared is not None:
            color = declared
    return color


class StyleTable(Mapping[str, str]):
    """Immutable ``style id -> #rrggbb`` lookup for one scope of a KML tree."""

    __slots__ = ("_entries",)

    def __init__(self, entries: Mapping[str, str] | None = None) -> None:
        self._entries: dict[str, str] = dict(entries or {})

    def __getitem__(self, key: str) -> str:
        return self._entries[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"StyleTable({self._entries!r})"

    def merged(self, scope: _Element) -> StyleTable:
        """Return a new table with the styles declared directly in *scope*.

        ``<Style id>`` entries with an icon color are added first, shadowing
        inherited ids. ``<StyleMap id>`` entries then resolve to the color of
        their ``normal`` pair. ``self`` is left untouched.
        """
        entries = dict(self._entries)

        for style in children(scope, "Style"):
            style_id = style.get("id")
            color = icon_color(style)
            if style_id and color is not None:
                entries[style_id] = color

        for style_map in children(scope, "StyleMap"):
            map_id = style_map.get("id")
            if not map_id:
                continue
            normal_url = _normal_style_url(style_map)
            if normal_url and normal_url.startswith("#") and normal_url[1:] in entries:
                entries[map_id] = entries[normal_url[1:]]

        if len(entries) != len(self._entries):
            logger.debug(
                "Style scope merged | inherited=%d | total=%d",
                len(self._entries),
                len(entries),
            )
        return StyleTable(entries)

    def resolve(self, style_url: str | None) -> str:
        """Shorthand for ``color_from_style_url(style_url, self)``."""
        return color_from_style_url(style_url, self)


def _normal_style_url(style_map: _Element) -> str | None:
    for pair in children(style_map, "Pair"):
        if child_text(pair, "key") == "normal":
            return child_text(pair, "styleUrl")
    return None
