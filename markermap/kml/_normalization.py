"""Coordinate, description and timestamp normalization for KML placemarks.

Responsibilities:
- Parse ``<coordinates>`` text into a (lat, lng) pair
- Reduce HTML descriptions to readable plain text
- Parse ``TimeStamp/when`` leniently

All helpers here degrade instead of raising: a bad value means "skip" or
"use the default", never a failed import.
"""

from __future__ import annotations

import logging
import math
import re
from datetime import datetime
from typing import NamedTuple

from markermap.utils.helpers import parse_timestamp

logger = logging.getLogger("markermap.kml")


class Coordinates(NamedTuple):
    """A WGS 84 point in decimal degrees."""

    lat: float
    lng: float


def parse_coordinates(text: str | None) -> Coordinates | None:
    """Parse a KML ``lng,lat[,alt]`` string.

    Returns ``None`` (not an error) when there are fewer than two
    comma-separated tokens or either of the first two is not a finite
    number. Callers skip the placemark in that case.

    >>> parse_coordinates("-122.4,37.8,0")
    Coordinates(lat=37.8, lng=-122.4)
    """
    if not text:
        return None
    parts = text.strip().split(",")
    if len(parts) < 2:
        return None
    try:
        lng = float(parts[0])
        lat = float(parts[1])
    except ValueError:
        return None
    if not (math.isfinite(lat) and math.isfinite(lng)):
        return None
    return Coordinates(lat=lat, lng=lng)


# ---------------------------------------------------------------------------
# Description cleanup
# ---------------------------------------------------------------------------

_CDATA_RE = re.compile(r"<!\[CDATA\[([\s\S]*?)\]\]>")
_IMG_RE = re.compile(r"<img[^>]*>", re.IGNORECASE)
_TABLE_RE = re.compile(r"<table[^>]*>[\s\S]*?</table>", re.IGNORECASE)
_BR_RE = re.compile(r"<br\s*/?>", re.IGNORECASE)
_PRE_RE = re.compile(r"<pre[^>]*>([\s\S]*?)</pre>", re.IGNORECASE)


def clean_description(raw: str | None) -> str:
    """Turn an exported HTML description into plain text.

    Unwraps CDATA, drops ``<img>`` tags and whole ``<table>`` blocks,
    converts ``<br>`` to newlines and unwraps ``<pre>``.
    """
    if not raw:
        return ""
    text = _CDATA_RE.sub(r"\1", raw)
    text = _IMG_RE.sub("", text)
    text = _TABLE_RE.sub("", text)
    text = _BR_RE.sub("\n", text)
    text = _PRE_RE.sub(r"\1", text)
    return text.strip()


def parse_when(value: str | None, *, now: datetime) -> datetime:
    """Parse a ``TimeStamp/when`` value, falling back to *now*."""
    if not value:
        return now
    parsed = parse_timestamp(value, default=now)
    if parsed is now:
        logger.warning("Failed to parse timestamp %r, using import time", value)
    return parsed
