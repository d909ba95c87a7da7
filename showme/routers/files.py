"""Generated file endpoints"""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse, PlainTextResponse, Response

router = APIRouter()


@router.get("/file/{file_id}")
async def serve_file(file_id: str, request: Request) -> Response:
    """Return stored HTML by id, or 404 once it is gone"""
    artifact = request.app.state.store.get(file_id)
    if artifact is None:
        return PlainTextResponse("File not found", status_code=404)
    return HTMLResponse(artifact.content, headers={"Cache-Control": "no-cache"})
