from __future__ import annotations

import logging
from typing import Dict, Mapping, Optional, Protocol

from docmeta.core.config import settings
from docmeta.models.extraction import SourceNotFound

logger = logging.getLogger(__name__)


class PathResolver(Protocol):
    def resolve(self, pathkey: str) -> str: ...


class SettingsPathResolver:
    """Looks up symbolic path keys in the configured ``path_keys`` table.

    Keeps the server's real directories and URL prefixes out of request paths.
    An unknown key is a resolution failure, never an empty base.
    """

    def __init__(self, path_keys: Optional[Mapping[str, str]] = None) -> None:
        self._path_keys: Dict[str, str] = dict(settings.path_keys if path_keys is None else path_keys)

    def resolve(self, pathkey: str) -> str:
        base = self._path_keys.get(pathkey)
        if base is None:
            logger.warning("No base location configured for path key %r", pathkey)
            raise SourceNotFound(f"unknown path key {pathkey!r}")
        return base
