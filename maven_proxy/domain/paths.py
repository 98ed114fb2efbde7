"""
Path resolution: client-supplied virtual path -> (namespace, relative path).
"""
from __future__ import annotations

import logging
from typing import List, Optional

from maven_proxy.domain.models import NamespaceLayout, ResolvedPath

logger = logging.getLogger(__name__)

DEFAULT_LAYOUT = NamespaceLayout()


def split_segments(raw_path: Optional[str]) -> List[str]:
    """Split a slash-separated path, dropping empty segments."""
    return [s for s in (raw_path or "").split("/") if s]


def resolve(
    raw_path: Optional[str],
    declared_namespace: Optional[str] = None,
    layout: NamespaceLayout = DEFAULT_LAYOUT,
) -> ResolvedPath:
    """
    Resolve a virtual path into a namespace and a path beneath it.

    Precedence:
    1. An explicitly declared namespace, if it is one of the layout's namespaces.
    2. A leading path segment naming a namespace (``releases/...``), which is
       then stripped from the relative path.
    3. Inference: a path containing the snapshot marker goes to the snapshot
       namespace, anything else to the release namespace.

    Never raises; unrecognized input degrades to the release namespace with the
    path taken literally.
    """
    segments = split_segments(raw_path)
    known = layout.namespaces

    declared = (declared_namespace or "").strip().strip("/")
    if declared and declared not in known:
        logger.debug(f"Ignoring unknown namespace {declared!r}; inferring from path")
        declared = ""

    if declared:
        # A path that repeats the declared namespace as its first segment is
        # still addressed relative to that namespace.
        if segments and segments[0] == declared:
            segments = segments[1:]
        namespace = declared
    elif segments and segments[0] in known:
        namespace = segments[0]
        segments = segments[1:]
    elif layout.snapshot_marker and layout.snapshot_marker in "/".join(segments):
        namespace = layout.snapshot
    else:
        namespace = layout.release

    return ResolvedPath(namespace=namespace, relative_path="/".join(segments))
