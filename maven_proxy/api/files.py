"""
File API endpoints: the virtual Maven repository over HTTP.

- GET     /files/{path}  file bytes, or a JSON listing when the path is a directory
- PUT     /files/{path}  commit the request body (requires the upload secret)
- OPTIONS /files/{path}  CORS preflight

Any other verb is answered with 405 by the application-wide handler.

The namespace (releases/snapshots) is taken from the ``repo`` query parameter,
from a leading path segment, or inferred from the path itself.
"""

from __future__ import annotations

from typing import Optional
import logging

from fastapi import APIRouter, Depends, Header, Query, Request, Response, status
from fastapi.responses import JSONResponse, PlainTextResponse

from maven_proxy.core.config import Settings
from maven_proxy.core.dependencies import get_gateway, get_settings
from maven_proxy.domain.errors import PathIsDirectory
from maven_proxy.domain.models import DirectoryListing
from maven_proxy.domain.paths import resolve
from maven_proxy.services.gateway import ContentGateway

logger = logging.getLogger(__name__)
router = APIRouter()

# Content may change upstream between requests.
FILE_CACHE_CONTROL = "public, max-age=60"


def bearer_secret(authorization: Optional[str]) -> Optional[str]:
    """
    Extract the credential from an ``Authorization: Bearer <secret>`` header.

    Any other scheme counts as no credential at all.
    """
    if not authorization:
        return None
    scheme, _, credential = authorization.partition(" ")
    if scheme != "Bearer" or not credential:
        return None
    return credential


# ---------------------------------------------------------------------------
# GET /files/{path}
# ---------------------------------------------------------------------------

@router.get("/files")
@router.get("/files/{path:path}")
async def get_file(
    path: str = "",
    repo: Optional[str] = Query(default=None, description="Explicit namespace (releases or snapshots)."),
    settings: Settings = Depends(get_settings),
    gateway: ContentGateway = Depends(get_gateway),
) -> Response:
    """
    Serve a stored file with a media type inferred from its extension.

    When the path turns out to be a directory the listing the remote returned
    is served as JSON instead.
    """
    resolved = resolve(path, repo, settings.layout)

    try:
        content = await gateway.read_file(resolved.namespace, resolved.relative_path)
    except PathIsDirectory as e:
        listing = DirectoryListing(
            namespace=resolved.namespace,
            path=resolved.relative_path,
            entries=e.entries,
        )
        return JSONResponse(status_code=status.HTTP_200_OK, content=listing.model_dump())

    return Response(
        content=content.data,
        media_type=content.media_type,
        headers={"Cache-Control": FILE_CACHE_CONTROL},
    )


# ---------------------------------------------------------------------------
# PUT /files/{path}
# ---------------------------------------------------------------------------

@router.put("/files/{path:path}", response_class=PlainTextResponse)
async def put_file(
    path: str,
    request: Request,
    repo: Optional[str] = Query(default=None, description="Explicit namespace (releases or snapshots)."),
    authorization: Optional[str] = Header(default=None),
    settings: Settings = Depends(get_settings),
    gateway: ContentGateway = Depends(get_gateway),
) -> PlainTextResponse:
    """
    Commit the raw request body to the given path.
    """
    resolved = resolve(path, repo, settings.layout)
    secret = bearer_secret(authorization)
    # Refuse before buffering the upload.
    gateway.authorize(secret, resolved.repo_path)
    body = await request.body()

    result = await gateway.write_file(
        resolved.namespace,
        resolved.relative_path,
        body,
        secret,
    )
    return PlainTextResponse(f"Committed {result.repo_path}", status_code=status.HTTP_200_OK)


# ---------------------------------------------------------------------------
# OPTIONS /files/{path}
# ---------------------------------------------------------------------------

@router.options("/files")
@router.options("/files/{path:path}")
async def preflight_files(path: str = "") -> Response:
    # CORS headers are added by the application middleware.
    return Response(status_code=status.HTTP_204_NO_CONTENT)
