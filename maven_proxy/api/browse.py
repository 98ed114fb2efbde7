"""
Directory browsing endpoint used by the repository browser UI.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from maven_proxy.core.config import Settings
from maven_proxy.core.dependencies import get_gateway, get_settings
from maven_proxy.domain.models import DirectoryListing
from maven_proxy.domain.paths import resolve
from maven_proxy.services.gateway import ContentGateway


router = APIRouter()


@router.get("/browse")
async def browse(
    repo: Optional[str] = Query(default=None, description="Namespace to browse (releases or snapshots)."),
    path: str = Query(default="", description="Directory path beneath the namespace."),
    settings: Settings = Depends(get_settings),
    gateway: ContentGateway = Depends(get_gateway),
) -> DirectoryListing:
    """
    List one directory of the repository.

    Entries are returned in the order the remote store reports them. A path
    that is a file, or does not exist, yields the gateway's error.
    """
    resolved = resolve(path, repo, settings.layout)
    entries = await gateway.list_directory(resolved.namespace, resolved.relative_path)
    return DirectoryListing(
        namespace=resolved.namespace,
        path=resolved.relative_path,
        entries=entries,
    )
