from __future__ import annotations

from docmeta.domain.metadata import (
    CONTENT_LENGTH,
    CONTENT_TYPE,
    RESOURCE_NAME,
    MetadataMap,
    is_generic_content_type,
)
from docmeta.models.extraction import RequestHints
from docmeta.services.detection import DetectionStrategy, resolve_detection


def seed_request_metadata(metadata: MetadataMap, hints: RequestHints) -> DetectionStrategy:
    """Copy request-declared properties into ``metadata`` before parsing.

    Returns the detection strategy matching the declared content type so the
    engine's detection step reports the same type the map was seeded with.
    """
    if hints.content_length:
        metadata.set(CONTENT_LENGTH, hints.content_length)
    if hints.file_name:
        metadata.set(RESOURCE_NAME, hints.file_name)
    if not is_generic_content_type(hints.content_type):
        metadata.add(CONTENT_TYPE, (hints.content_type or "").strip())
    return resolve_detection(hints.content_type)
