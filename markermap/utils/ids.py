"""Entity identifier generation.

Folders and markers created on the server (KML import and re-import)
receive random UUID4 identifiers rendered as 32 hex characters.
"""

from __future__ import annotations

import uuid


def generate_id() -> str:
    """Return a new unique entity id."""
    return uuid.uuid4().hex
