from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Protocol

from docmeta.domain.metadata import MetadataMap, is_generic_content_type


class Sniffer(Protocol):
    async def detect(self, payload: bytes, metadata: MetadataMap) -> str: ...


@dataclass(frozen=True)
class DetectionStrategy:
    """How the content type of a request's document is determined.

    Either the type the client declared, reported as-is regardless of the
    bytes, or the engine's own sniffing.
    """

    declared_type: Optional[str] = None

    @classmethod
    def default(cls) -> "DetectionStrategy":
        return cls()

    @classmethod
    def declared(cls, media_type: str) -> "DetectionStrategy":
        return cls(declared_type=media_type.strip())

    @property
    def is_declared(self) -> bool:
        return self.declared_type is not None

    async def detect(self, sniffer: Sniffer, payload: bytes, metadata: MetadataMap) -> str:
        if self.declared_type is not None:
            return self.declared_type
        return await sniffer.detect(payload, metadata)


def resolve_detection(declared_content_type: Optional[str]) -> DetectionStrategy:
    if is_generic_content_type(declared_content_type):
        return DetectionStrategy.default()
    return DetectionStrategy.declared(declared_content_type or "")
