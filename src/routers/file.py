from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response

from reelhost.streaming.registry import ActiveFileRegistry
from reelhost.streaming.responder import StreamingResponder

router = APIRouter(tags=["playback"])


def get_registry(request: Request) -> ActiveFileRegistry:
    return request.app.state.registry


def get_responder(request: Request) -> StreamingResponder:
    return request.app.state.responder


@router.api_route("/", methods=["GET", "HEAD"], operation_id="serve_root")
@router.api_route("/{path:path}", methods=["GET", "HEAD"], operation_id="serve_path")
def serve_active_file(
    request: Request,
    registry: Annotated[ActiveFileRegistry, Depends(get_registry)],
    responder: Annotated[StreamingResponder, Depends(get_responder)],
) -> Response:
    """Serve the active file; the request path is ignored."""
    return responder.respond(
        registry.get(),
        method=request.method,
        range_header=request.headers.get("range"),
    )


@router.options("/", operation_id="preflight_root")
@router.options("/{path:path}", operation_id="preflight_path")
def preflight(
    responder: Annotated[StreamingResponder, Depends(get_responder)],
) -> Response:
    return responder.preflight()
