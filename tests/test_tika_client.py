from __future__ import annotations

import asyncio
import json
from typing import Callable, List

import httpx
import pytest

from docmeta.clients.tika_client import TikaClient
from docmeta.domain.metadata import MetadataMap
from docmeta.models.extraction import HandlerMode, ParseFault, ParseFaultKind
from docmeta.services.detection import DetectionStrategy


def _client(handler: Callable[[httpx.Request], httpx.Response], reject_unparsed: bool = True) -> TikaClient:
    transport = httpx.MockTransport(handler)
    return TikaClient(
        base_url="http://tika.test:9998/",
        client=httpx.AsyncClient(transport=transport),
        reject_unparsed_types=reject_unparsed,
    )


def _rmeta(*entries: dict) -> httpx.Response:
    return httpx.Response(200, content=json.dumps(list(entries)).encode("utf-8"))


def test_parse_with_declared_type_sends_it_and_merges_metadata():
    requests: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return _rmeta(
            {
                "Content-Type": "application/pdf",
                "xmpTPg:NPages": "2",
                "X-TIKA:Parsed-By": ["org.apache.tika.parser.DefaultParser", "org.apache.tika.parser.pdf.PDFParser"],
                "X-TIKA:content": "page one",
            },
            {"Content-Type": "image/png", "X-TIKA:content": "embedded"},
        )

    meta = MetadataMap({"resourceName": "scan report.pdf"})
    text = asyncio.run(
        _client(handler).parse(b"%PDF", HandlerMode.BUFFER, meta, DetectionStrategy.declared("application/pdf"))
    )

    assert len(requests) == 1
    sent = requests[0]
    assert sent.method == "PUT"
    assert sent.url.path == "/rmeta/text"
    assert sent.headers["Content-Type"] == "application/pdf"
    assert "scan%20report.pdf" in sent.headers["Content-Disposition"]
    assert text == "page one\nembedded"
    assert meta.get("xmpTPg:NPages") == "2"
    assert meta.get("Content-Type") == "application/pdf"
    assert "X-TIKA:content" not in meta


def test_default_detection_sniffs_before_parsing():
    paths: List[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        paths.append(request.url.path)
        if request.url.path == "/detect/stream":
            return httpx.Response(200, text="text/plain")
        assert request.headers["Content-Type"] == "text/plain"
        return _rmeta({"Content-Type": "text/plain; charset=UTF-8", "X-TIKA:content": "hi"})

    meta = MetadataMap()
    text = asyncio.run(_client(handler).parse(b"hi", HandlerMode.DISCARD, meta, DetectionStrategy.default()))

    assert paths == ["/detect/stream", "/rmeta/ignore"]
    assert text == ""
    assert meta.get("Content-Type") == "text/plain; charset=UTF-8"


@pytest.mark.parametrize(
    "status, body, expected",
    [
        (415, "Unsupported Media Type", ParseFaultKind.UNSUPPORTED_TYPE),
        (422, "org.apache.poi.EncryptedDocumentException: password protected", ParseFaultKind.ENCRYPTED),
        (422, "org.apache.poi.hwpf.OldWordFileFormatException", ParseFaultKind.LEGACY_FORMAT),
        (422, "java.lang.IllegalStateException", ParseFaultKind.ILLEGAL_STATE),
        (500, "org.xml.sax.SAXException: handler failed", ParseFaultKind.CONTENT_HANDLER),
        (500, "java.lang.OutOfMemoryError", ParseFaultKind.OTHER),
        (503, "", ParseFaultKind.OTHER),
    ],
)
def test_error_statuses_map_to_fault_kinds(status, body, expected):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status, text=body)

    with pytest.raises(ParseFault) as info:
        asyncio.run(
            _client(handler).parse(b"x", HandlerMode.BUFFER, MetadataMap(), DetectionStrategy.declared("text/plain"))
        )
    assert info.value.kind is expected


def test_empty_parser_is_rejected_as_unsupported():
    def handler(request: httpx.Request) -> httpx.Response:
        return _rmeta(
            {
                "Content-Type": "application/x-foo",
                "X-TIKA:Parsed-By": ["org.apache.tika.parser.DefaultParser", "org.apache.tika.parser.EmptyParser"],
            }
        )

    with pytest.raises(ParseFault) as info:
        asyncio.run(
            _client(handler).parse(
                b"x", HandlerMode.BUFFER, MetadataMap(), DetectionStrategy.declared("application/x-foo")
            )
        )
    assert info.value.kind is ParseFaultKind.UNSUPPORTED_TYPE

    meta = MetadataMap()
    asyncio.run(
        _client(handler, reject_unparsed=False).parse(
            b"x", HandlerMode.BUFFER, meta, DetectionStrategy.declared("application/x-foo")
        )
    )
    assert meta.get("Content-Type") == "application/x-foo"


def test_transport_error_and_bad_json_are_other_faults():
    def unreachable(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    def garbage(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>not json</html>")

    for handler in (unreachable, garbage):
        with pytest.raises(ParseFault) as info:
            asyncio.run(
                _client(handler).parse(
                    b"x", HandlerMode.BUFFER, MetadataMap(), DetectionStrategy.declared("text/plain")
                )
            )
        assert info.value.kind is ParseFaultKind.OTHER


def test_health_reports_engine_state():
    def up(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="Apache Tika 2.9.2")

    def down(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    assert asyncio.run(_client(up).health()) == "up"
    assert asyncio.run(_client(down).health()) == "down"
