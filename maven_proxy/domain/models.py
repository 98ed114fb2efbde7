"""
Pydantic models for the Maven Git proxy.

This module defines the values that flow between the path resolver, the
remote content gateway and the HTTP layer:
- Namespace layout (release vs snapshot trees)
- Resolved virtual paths
- Directory entries and file contents
- Remote object handles and commit results

All models are constructed fresh per request from the remote API's response
and are never cached or mutated in place.
"""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


# Type alias for the kind of a listed entry
EntryKind = Literal["file", "directory"]


# ---------------------------------------------------------------------------
# Namespace / path models
# ---------------------------------------------------------------------------


class NamespaceLayout(BaseModel):
    """
    Top-level partitions of the virtual file tree.

    Artifacts whose path carries the snapshot marker live under the snapshot
    namespace; everything else lives under the release namespace.
    """

    model_config = ConfigDict(frozen=True)

    release: str = Field(
        default="releases",
        description="Namespace for regular release artifacts.",
    )
    snapshot: str = Field(
        default="snapshots",
        description="Namespace for pre-release (snapshot) artifacts.",
    )
    snapshot_marker: str = Field(
        default="-SNAPSHOT",
        description="Substring that routes a path to the snapshot namespace.",
    )

    @property
    def namespaces(self) -> List[str]:
        return [self.release, self.snapshot]


class ResolvedPath(BaseModel):
    """
    A virtual path split into its namespace and the path beneath it.

    ``relative_path`` never contains the namespace prefix and has no leading or
    trailing slash; the empty string denotes the namespace root.
    """

    model_config = ConfigDict(frozen=True)

    namespace: str
    relative_path: str = ""

    @property
    def segments(self) -> List[str]:
        return [s for s in self.relative_path.split("/") if s]

    @property
    def repo_path(self) -> str:
        """Concrete path inside the remote repository."""
        if not self.relative_path:
            return self.namespace
        return f"{self.namespace}/{self.relative_path}"

    @property
    def name(self) -> str:
        segments = self.segments
        return segments[-1] if segments else ""


# ---------------------------------------------------------------------------
# Content models
# ---------------------------------------------------------------------------


class DirectoryEntry(BaseModel):
    """
    One child of a listed directory, in the order the remote returned it.
    """

    name: str
    kind: EntryKind
    namespace: str
    path: str = Field(
        description="Path of the entry relative to its namespace.",
    )
    size: Optional[int] = None
    sha: Optional[str] = None


class DirectoryListing(BaseModel):
    """JSON body returned for a directory request."""

    namespace: str
    path: str
    entries: List[DirectoryEntry] = Field(default_factory=list)


class FileContent(BaseModel):
    """
    Raw bytes of a stored file plus the media type inferred from its name.
    """

    name: str
    data: bytes
    media_type: str
    sha: Optional[str] = None


class RemoteObjectHandle(BaseModel):
    """
    Content hash of the committed blob at the configured reference.

    Presenting it on write turns the write into an update of a known version.
    """

    model_config = ConfigDict(frozen=True)

    sha: str


class CommitResult(BaseModel):
    """Outcome of a successful write."""

    namespace: str
    path: str
    repo_path: str
    created: bool = Field(
        description="True when the remote reported a new file rather than an update.",
    )
    sha: Optional[str] = Field(
        default=None,
        description="Handle of the newly committed blob, when the remote reports it.",
    )
