from __future__ import annotations

import logging
from typing import Dict, List, Optional, Protocol
from urllib.parse import quote

import httpx

from docmeta.core.config import settings
from docmeta.domain.metadata import (
    OCTET_STREAM,
    RESOURCE_NAME,
    TIKA_CONTENT,
    TIKA_EMPTY_PARSER,
    TIKA_PARSED_BY,
    MetadataMap,
)
from docmeta.models.extraction import HandlerMode, ParseFault, ParseFaultKind
from docmeta.services.detection import DetectionStrategy

logger = logging.getLogger(__name__)

# Wrapper parsers Tika lists ahead of the parser that actually handled the document.
_DISPATCH_PARSERS = ("DefaultParser", "CompositeParser", "AutoDetectParser", "RecursiveParserWrapper")


class DocumentEngine(Protocol):
    async def detect(self, payload: bytes, metadata: MetadataMap) -> str: ...

    async def parse(
        self,
        payload: bytes,
        mode: HandlerMode,
        metadata: MetadataMap,
        detection: DetectionStrategy,
    ) -> str: ...


class TikaClient:
    """Document engine backed by a Tika server (``tika-server`` REST API)."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        reject_unparsed_types: Optional[bool] = None,
    ) -> None:
        self._base_url = (base_url if base_url is not None else settings.tika_url).rstrip("/")
        self._timeout = settings.tika_timeout_sec
        self._client = client or httpx.AsyncClient(timeout=self._timeout)
        self._reject_unparsed = (
            settings.reject_unparsed_types if reject_unparsed_types is None else reject_unparsed_types
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def health(self) -> str:
        if not self._base_url:
            return "disabled"
        try:
            r = await self._client.get(f"{self._base_url}/version")
            return "up" if r.status_code == 200 else "degraded"
        except Exception:
            return "down"

    async def detect(self, payload: bytes, metadata: MetadataMap) -> str:
        try:
            response = await self._client.put(
                f"{self._base_url}/detect/stream",
                content=payload,
                headers={"Accept": "text/plain", **self._name_headers(metadata)},
            )
        except httpx.HTTPError as exc:
            raise ParseFault(ParseFaultKind.OTHER, f"tika detect unreachable: {exc}") from exc
        if response.status_code >= 400:
            raise self._fault_from_response(response)
        return (response.text or "").strip() or OCTET_STREAM

    async def parse(
        self,
        payload: bytes,
        mode: HandlerMode,
        metadata: MetadataMap,
        detection: DetectionStrategy,
    ) -> str:
        content_type = await detection.detect(self, payload, metadata)
        handler = "ignore" if mode is HandlerMode.DISCARD else "text"
        headers = {
            "Accept": "application/json",
            "Content-Type": content_type or OCTET_STREAM,
            **self._name_headers(metadata),
        }
        try:
            response = await self._client.put(
                f"{self._base_url}/rmeta/{handler}",
                content=payload,
                headers=headers,
            )
        except httpx.HTTPError as exc:
            raise ParseFault(ParseFaultKind.OTHER, f"tika parse unreachable: {exc}") from exc
        if response.status_code >= 400:
            raise self._fault_from_response(response)

        try:
            entries = response.json()
        except ValueError as exc:
            raise ParseFault(ParseFaultKind.OTHER, "tika returned a non-JSON metadata list") from exc
        if isinstance(entries, dict):
            entries = [entries]
        if not isinstance(entries, list) or not entries or not isinstance(entries[0], dict):
            raise ParseFault(ParseFaultKind.OTHER, "tika returned an empty metadata list")

        container: Dict[str, object] = dict(entries[0])
        if self._reject_unparsed and self._only_empty_parser(container.get(TIKA_PARSED_BY)):
            raise ParseFault(ParseFaultKind.UNSUPPORTED_TYPE, f"no parser available for {content_type}")

        texts: List[str] = []
        for entry in entries:
            if not isinstance(entry, dict):
                continue
            body = entry.get(TIKA_CONTENT)
            if isinstance(body, str) and body:
                texts.append(body)
        container.pop(TIKA_CONTENT, None)
        metadata.merge(container)
        return "\n".join(texts) if mode is HandlerMode.BUFFER else ""

    @staticmethod
    def _name_headers(metadata: MetadataMap) -> Dict[str, str]:
        name = metadata.get(RESOURCE_NAME)
        if not name:
            return {}
        return {"Content-Disposition": f"attachment; filename*=UTF-8''{quote(name)}"}

    @staticmethod
    def _only_empty_parser(parsed_by: object) -> bool:
        if parsed_by is None:
            return False
        names = parsed_by if isinstance(parsed_by, list) else [parsed_by]
        handlers = {str(n) for n in names if not str(n).endswith(_DISPATCH_PARSERS)}
        return bool(handlers) and handlers <= {TIKA_EMPTY_PARSER}

    @staticmethod
    def _fault_from_response(response: httpx.Response) -> ParseFault:
        status = response.status_code
        body = (response.text or "")[:2000]
        lowered = body.lower()
        if status == 415:
            return ParseFault(ParseFaultKind.UNSUPPORTED_TYPE, "tika: unsupported media type")
        if status == 422:
            if "encrypt" in lowered or "password" in lowered:
                return ParseFault(ParseFaultKind.ENCRYPTED, "tika: document is encrypted")
            if "oldwordfileformat" in lowered or "old file format" in lowered or "oldfileformat" in lowered:
                return ParseFault(ParseFaultKind.LEGACY_FORMAT, "tika: legacy file format")
            return ParseFault(ParseFaultKind.ILLEGAL_STATE, "tika: unprocessable document")
        if status >= 500 and "saxexception" in lowered:
            return ParseFault(ParseFaultKind.CONTENT_HANDLER, "tika: content handler fault")
        logger.debug("Tika error %s: %s", status, body)
        return ParseFault(ParseFaultKind.OTHER, f"tika responded {status}")
