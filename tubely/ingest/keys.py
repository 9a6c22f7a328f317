from __future__ import annotations

import secrets

from tubely.ingest.geometry import GeometryCategory

KEY_RANDOM_BYTES = 32


def media_type_extension(media_type: str) -> str:
    parts = media_type.split("/")
    if len(parts) != 2 or not parts[1]:
        return "bin"
    return parts[1]


def compose_storage_key(category: GeometryCategory, media_type: str) -> str:
    """Return ``<category>/<64 hex chars>.<ext>`` for a fresh upload."""
    identifier = secrets.token_hex(KEY_RANDOM_BYTES)
    return f"{category.value}/{identifier}.{media_type_extension(media_type)}"


__all__ = ["KEY_RANDOM_BYTES", "compose_storage_key", "media_type_extension"]
