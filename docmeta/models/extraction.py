from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from pydantic import BaseModel

from docmeta.domain.metadata import MetadataMap


class OperationSelector(str, Enum):
    METADATA = "metadata"
    TEXT = "text"
    FULLDATA = "fulldata"

    @classmethod
    def parse(cls, opkey: str) -> Optional["OperationSelector"]:
        key = (opkey or "").strip().lower()
        for member in cls:
            if member.value == key:
                return member
        return None


class HandlerMode(str, Enum):
    DISCARD = "discard"  # metadata only
    BUFFER = "buffer"  # accumulate body text

    @classmethod
    def for_selector(cls, selector: OperationSelector) -> "HandlerMode":
        return cls.DISCARD if selector is OperationSelector.METADATA else cls.BUFFER


class SourceKind(str, Enum):
    UPLOAD = "upload"
    FILE = "file"
    URL = "url"


@dataclass(frozen=True)
class InputSource:
    kind: SourceKind
    identifier: str
    payload: bytes = b""

    @classmethod
    def upload(cls, payload: bytes, file_name: Optional[str] = None) -> "InputSource":
        return cls(kind=SourceKind.UPLOAD, identifier=file_name or "<upload>", payload=payload)

    @classmethod
    def local_file(cls, path: str) -> "InputSource":
        return cls(kind=SourceKind.FILE, identifier=path)

    @classmethod
    def url(cls, location: str) -> "InputSource":
        return cls(kind=SourceKind.URL, identifier=location)


@dataclass(frozen=True)
class RequestHints:
    content_type: Optional[str] = None
    file_name: Optional[str] = None
    content_length: Optional[str] = None


@dataclass(frozen=True)
class ExtractionRequest:
    selector: OperationSelector
    source: InputSource
    hints: RequestHints = field(default_factory=RequestHints)


@dataclass
class ExtractionResult:
    metadata: MetadataMap
    text: str
    encoding: str
    body: bytes
    media_type: str


class FailureKind(str, Enum):
    NOT_FOUND = "not_found"
    UNSUPPORTED_TYPE = "unsupported_type"
    MALFORMED_OR_PROTECTED = "malformed_or_protected"
    SERIALIZATION_FAULT = "serialization_fault"
    INTERNAL_FAULT = "internal_fault"

    @property
    def status_code(self) -> int:
        return _STATUS_BY_KIND[self]


_STATUS_BY_KIND = {
    FailureKind.NOT_FOUND: 404,
    FailureKind.UNSUPPORTED_TYPE: 415,
    FailureKind.MALFORMED_OR_PROTECTED: 422,
    FailureKind.SERIALIZATION_FAULT: 500,
    FailureKind.INTERNAL_FAULT: 500,
}


@dataclass(frozen=True)
class Outcome:
    result: Optional[ExtractionResult] = None
    failure: Optional[FailureKind] = None
    detail: str = ""

    @classmethod
    def success(cls, result: ExtractionResult) -> "Outcome":
        return cls(result=result)

    @classmethod
    def fail(cls, kind: FailureKind, detail: str = "") -> "Outcome":
        return cls(failure=kind, detail=detail)

    @property
    def ok(self) -> bool:
        return self.failure is None


class ParseFaultKind(str, Enum):
    CONTENT_HANDLER = "content_handler"
    ILLEGAL_STATE = "illegal_state"
    ENCRYPTED = "encrypted"
    LEGACY_FORMAT = "legacy_format"
    UNSUPPORTED_TYPE = "unsupported_type"
    OTHER = "other"


class ParseFault(Exception):
    """Failure reported by the document engine, tagged with its cause."""

    def __init__(self, kind: ParseFaultKind, message: str = "") -> None:
        super().__init__(message or kind.value)
        self.kind = kind


class SourceNotFound(Exception):
    pass


class HealthResponse(BaseModel):
    status: str
    service: str
    engine: str
