from __future__ import annotations
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Union

CONTENT_TYPE = "Content-Type"
CONTENT_LENGTH = "Content-Length"
CONTENT_ENCODING = "Content-Encoding"
RESOURCE_NAME = "resourceName"

# Request header carrying the client's file name.
FILE_NAME_HEADER = "File-Name"

OCTET_STREAM = "application/octet-stream"
DEFAULT_ENCODING = "UTF-8"

TIKA_CONTENT = "X-TIKA:content"
TIKA_PARSED_BY = "X-TIKA:Parsed-By"
TIKA_EMPTY_PARSER = "org.apache.tika.parser.EmptyParser"

MetadataValue = Union[str, List[str]]


def is_generic_content_type(content_type: Optional[str]) -> bool:
    if content_type is None:
        return True
    base = content_type.split(";", 1)[0].strip().lower()
    return not base or base == OCTET_STREAM


class MetadataMap:
    """Per-request collection of document properties.

    Each key holds one or more string values. A key with more than one value
    is multi-valued and serializes as an array.
    """

    def __init__(self, initial: Optional[Mapping[str, MetadataValue]] = None) -> None:
        self._values: Dict[str, List[str]] = {}
        if initial:
            for key, value in initial.items():
                if isinstance(value, (list, tuple)):
                    self._values[key] = [str(v) for v in value]
                else:
                    self._values[key] = [str(value)]

    def set(self, key: str, value: Optional[str]) -> None:
        if value is None:
            self._values.pop(key, None)
            return
        self._values[key] = [value]

    def add(self, key: str, value: str) -> None:
        self._values.setdefault(key, []).append(value)

    def get(self, key: str) -> Optional[str]:
        values = self._values.get(key)
        return values[0] if values else None

    def get_values(self, key: str) -> List[str]:
        return list(self._values.get(key, []))

    def names(self) -> List[str]:
        return list(self._values.keys())

    def is_multi_valued(self, key: str) -> bool:
        return len(self._values.get(key, [])) > 1

    def merge(self, incoming: Mapping[str, object]) -> None:
        """Add every incoming value that the map does not already hold for its key."""
        for key, raw in incoming.items():
            values: Iterable[object] = raw if isinstance(raw, (list, tuple)) else [raw]
            for value in values:
                if value is None:
                    continue
                text = str(value)
                if text not in self._values.get(key, []):
                    self.add(key, text)

    def to_dict(self) -> Dict[str, MetadataValue]:
        return {k: (list(v) if len(v) > 1 else v[0]) for k, v in self._values.items() if v}

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __repr__(self) -> str:
        return f"MetadataMap({self.to_dict()!r})"
