from __future__ import annotations

import asyncio
import codecs
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Mapping, Optional
from urllib.parse import unquote, urlparse
from urllib.request import url2pathname

import httpx

from docmeta.clients.tika_client import DocumentEngine
from docmeta.core.config import settings
from docmeta.domain.metadata import (
    CONTENT_ENCODING,
    CONTENT_LENGTH,
    CONTENT_TYPE,
    DEFAULT_ENCODING,
    FILE_NAME_HEADER,
    RESOURCE_NAME,
    MetadataMap,
)
from docmeta.models.extraction import (
    ExtractionRequest,
    ExtractionResult,
    FailureKind,
    HandlerMode,
    InputSource,
    OperationSelector,
    Outcome,
    ParseFault,
    RequestHints,
    SourceKind,
    SourceNotFound,
)
from docmeta.services.failure_classifier import classify_fault
from docmeta.services.metadata_json import metadata_to_json, to_json
from docmeta.services.path_resolver import PathResolver
from docmeta.services.request_metadata import seed_request_metadata

logger = logging.getLogger(__name__)

URL_SCHEMES = {"http", "https", "file"}


def hints_from_headers(headers: Mapping[str, str]) -> RequestHints:
    lowered = {str(k).lower(): v for k, v in headers.items()}
    return RequestHints(
        content_type=lowered.get("content-type") or None,
        file_name=lowered.get(FILE_NAME_HEADER.lower()) or None,
        content_length=lowered.get("content-length") or None,
    )


def resolve_output_encoding(metadata: MetadataMap) -> str:
    # Presence is checked on Content-Type, the value comes from Content-Encoding.
    if metadata.get(CONTENT_TYPE) is None:
        return DEFAULT_ENCODING
    return metadata.get(CONTENT_ENCODING) or DEFAULT_ENCODING


def render_response(selector: OperationSelector, metadata: MetadataMap, text: str) -> str:
    if selector is OperationSelector.METADATA:
        return '{"metadata":' + metadata_to_json(metadata) + "}"
    if selector is OperationSelector.TEXT:
        return '{ "text":' + to_json(text) + " }"
    return '{ "metadata":' + metadata_to_json(metadata) + ', "text":' + to_json(text) + " }"


class ExtractionService:
    def __init__(
        self,
        engine: DocumentEngine,
        resolver: PathResolver,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._engine = engine
        self._resolver = resolver
        self._http = http_client or httpx.AsyncClient(
            timeout=settings.source_fetch_timeout_sec,
            follow_redirects=True,
        )

    async def close(self) -> None:
        await self._http.aclose()

    async def handle_upload(
        self,
        selector: OperationSelector,
        payload: bytes,
        headers: Mapping[str, str],
    ) -> Outcome:
        hints = hints_from_headers(headers)
        source = InputSource.upload(payload, file_name=hints.file_name)
        return await self.handle(ExtractionRequest(selector=selector, source=source, hints=hints))

    async def handle_path(
        self,
        selector: OperationSelector,
        pathkey: str,
        resource_id: str,
        headers: Mapping[str, str],
    ) -> Outcome:
        logger.info("resource: %s", resource_id)
        try:
            source = self.resolve_source(pathkey, resource_id)
        except SourceNotFound as exc:
            logger.info("Source not found for %s/%s: %s", pathkey, resource_id, exc)
            return Outcome.fail(FailureKind.NOT_FOUND, str(exc))
        hints = hints_from_headers(headers)
        return await self.handle(ExtractionRequest(selector=selector, source=source, hints=hints))

    def resolve_source(self, pathkey: str, resource_id: str) -> InputSource:
        candidate = f"{self._resolver.resolve(pathkey)}{resource_id}"
        try:
            is_file = Path(candidate).is_file()
        except (OSError, ValueError):
            is_file = False
        if is_file:
            return InputSource.local_file(str(Path(candidate).resolve()))

        parsed = urlparse(candidate)
        scheme = parsed.scheme.lower()
        if scheme in URL_SCHEMES and (parsed.netloc or scheme == "file"):
            return InputSource.url(candidate)
        raise SourceNotFound(f"{candidate!r} is neither a local file nor a URL")

    async def handle(self, request: ExtractionRequest) -> Outcome:
        source_id = request.source.identifier
        metadata = MetadataMap()
        detection = seed_request_metadata(metadata, request.hints)
        mode = HandlerMode.for_selector(request.selector)

        try:
            async with self._open_source(request.source, metadata) as payload:
                text = await self._engine.parse(payload, mode, metadata, detection)
        except SourceNotFound as exc:
            logger.info("Source not found %s: %s", source_id, exc)
            return Outcome.fail(FailureKind.NOT_FOUND, str(exc))
        except ParseFault as fault:
            return Outcome.fail(classify_fault(fault, source_id), str(fault))
        except Exception as exc:
            logger.exception("Unexpected failure while extracting %s", source_id)
            return Outcome.fail(FailureKind.INTERNAL_FAULT, str(exc))

        encoding = self._checked_encoding(resolve_output_encoding(metadata), source_id)
        rendered = render_response(request.selector, metadata, text or "")
        return Outcome.success(
            ExtractionResult(
                metadata=metadata,
                text=text or "",
                encoding=encoding,
                body=rendered.encode(encoding, errors="replace"),
                media_type=f"application/json; charset={encoding}",
            )
        )

    @staticmethod
    def _checked_encoding(encoding: str, source_id: str) -> str:
        try:
            codecs.lookup(encoding)
        except LookupError:
            logger.warning("Unknown content encoding %r for %s, writing %s", encoding, source_id, DEFAULT_ENCODING)
            return DEFAULT_ENCODING
        return encoding

    @asynccontextmanager
    async def _open_source(self, source: InputSource, metadata: MetadataMap) -> AsyncIterator[bytes]:
        if source.kind is SourceKind.UPLOAD:
            yield source.payload
            return

        if source.kind is SourceKind.FILE:
            yield await self._read_file(source.identifier, metadata)
            return

        parsed = urlparse(source.identifier)
        if parsed.scheme.lower() == "file":
            yield await self._read_file(url2pathname(parsed.path), metadata)
            return

        try:
            async with self._http.stream("GET", source.identifier) as response:
                if response.status_code >= 400:
                    raise SourceNotFound(f"{source.identifier} responded {response.status_code}")
                payload = await response.aread()
                length = response.headers.get("content-length")
        except httpx.HTTPError as exc:
            raise SourceNotFound(f"{source.identifier} is unreachable: {exc}") from exc

        name = unquote(parsed.path.rsplit("/", 1)[-1])
        if name and RESOURCE_NAME not in metadata:
            metadata.set(RESOURCE_NAME, name)
        if length and CONTENT_LENGTH not in metadata:
            metadata.set(CONTENT_LENGTH, length)
        yield payload

    @staticmethod
    async def _read_file(path: str, metadata: MetadataMap) -> bytes:
        target = Path(path)
        try:
            payload = await asyncio.to_thread(target.read_bytes)
        except OSError as exc:
            raise SourceNotFound(f"{path} is not readable: {exc}") from exc
        if RESOURCE_NAME not in metadata:
            metadata.set(RESOURCE_NAME, target.name)
        if CONTENT_LENGTH not in metadata:
            metadata.set(CONTENT_LENGTH, str(len(payload)))
        return payload
