from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import Response

from docmeta.core.config import settings
from docmeta.dependencies import Container
from docmeta.models.extraction import FailureKind, HealthResponse, OperationSelector, Outcome

router = APIRouter(tags=["extract"])

_FAILURE_DETAIL = {
    FailureKind.NOT_FOUND: "Resource not found",
    FailureKind.UNSUPPORTED_TYPE: "Unsupported media type",
    FailureKind.MALFORMED_OR_PROTECTED: "Document could not be processed",
    FailureKind.SERIALIZATION_FAULT: "Content handling failed",
    FailureKind.INTERNAL_FAULT: "Extraction failed",
}


def get_container(request: Request) -> Container:
    container = getattr(request.app.state, "container", None)
    if container is None:
        container = Container()
        request.app.state.container = container
    return container


def _selector_or_404(opkey: str) -> OperationSelector:
    selector = OperationSelector.parse(opkey)
    if selector is None:
        raise HTTPException(status_code=404, detail=f"Unknown operation '{opkey}'")
    return selector


def _to_response(outcome: Outcome) -> Response:
    if outcome.failure is not None or outcome.result is None:
        kind = outcome.failure or FailureKind.INTERNAL_FAULT
        raise HTTPException(status_code=kind.status_code, detail=_FAILURE_DETAIL[kind])
    return Response(content=outcome.result.body, media_type=outcome.result.media_type)


@router.get("/health", response_model=HealthResponse)
async def health(container: Container = Depends(get_container)) -> HealthResponse:
    engine = await container.tika.health()
    return HealthResponse(status="ok" if engine == "up" else "degraded", service=settings.app_name, engine=engine)


@router.put("/{opkey}")
async def extract_upload(
    opkey: str,
    request: Request,
    container: Container = Depends(get_container),
) -> Response:
    selector = _selector_or_404(opkey)
    payload = await request.body()
    outcome = await container.extraction.handle_upload(selector, payload, request.headers)
    return _to_response(outcome)


@router.get("/{opkey}/{pathkey}/{resource_id:path}")
async def extract_path(
    opkey: str,
    pathkey: str,
    resource_id: str,
    request: Request,
    container: Container = Depends(get_container),
) -> Response:
    selector = _selector_or_404(opkey)
    # The query string belongs to the resource (e.g. a signed URL), not to this service.
    if request.url.query:
        resource_id = f"{resource_id}?{request.url.query}"
    outcome = await container.extraction.handle_path(selector, pathkey, resource_id, request.headers)
    return _to_response(outcome)
