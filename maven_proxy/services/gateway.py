"""
Remote content gateway backed by the GitHub "contents" REST API.

This service is the only place that knows about the remote transport:
- Listing directories and reading files at the configured reference
- Decoding base64 payloads (and fetching large files from their download URL)
- Writing files with the read-before-write handle lookup the remote store
  needs for its optimistic-concurrency check

The gateway holds no mutable state. An ``httpx.AsyncClient`` is opened per
operation and closed before the operation returns.
"""
from __future__ import annotations

import base64
import binascii
import logging
import secrets
import urllib.parse
from typing import Any, Dict, List, Optional

import httpx
import pydantic

from maven_proxy.core.config import Settings
from maven_proxy.domain.errors import (
    GatewayMisconfigured,
    MalformedUpstreamResponse,
    PathIsDirectory,
    Unauthorized,
    UpstreamRejected,
    UpstreamUnavailable,
)
from maven_proxy.domain.media_types import media_type_for
from maven_proxy.domain.models import (
    CommitResult,
    DirectoryEntry,
    FileContent,
    RemoteObjectHandle,
    ResolvedPath,
)
from maven_proxy.domain.paths import split_segments

logger = logging.getLogger(__name__)


class ContentGateway:
    """
    List, read and write files of one remote repository at one reference.
    """

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings
        # Injected in tests (httpx.MockTransport); None means real network.
        self.transport = transport

    # ========================================================================
    # Remote plumbing
    # ========================================================================

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            transport=self.transport,
            timeout=self.settings.request_timeout,
            follow_redirects=True,
        )

    def _headers(self) -> Dict[str, str]:
        headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": self.settings.user_agent,
        }
        if self.settings.access_token:
            headers["Authorization"] = f"Bearer {self.settings.access_token}"
        return headers

    def _contents_url(self, resolved: ResolvedPath) -> str:
        return f"{self.settings.contents_url}/{urllib.parse.quote(resolved.repo_path, safe='/')}"

    @staticmethod
    def _resolved(namespace: str, relative_path: str) -> ResolvedPath:
        return ResolvedPath(namespace=namespace, relative_path="/".join(split_segments(relative_path)))

    @staticmethod
    def _rejected(response: httpx.Response) -> UpstreamRejected:
        return UpstreamRejected(
            response.status_code,
            response.text,
            content_type=response.headers.get("content-type"),
        )

    @staticmethod
    def _json(response: httpx.Response, repo_path: str) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise MalformedUpstreamResponse(f"Unexpected remote response for {repo_path}: not JSON") from e

    async def _get_contents(self, client: httpx.AsyncClient, resolved: ResolvedPath) -> httpx.Response:
        url = self._contents_url(resolved)
        logger.debug(f"GET {url} (ref={self.settings.branch})")
        try:
            return await client.get(url, params={"ref": self.settings.branch}, headers=self._headers())
        except httpx.HTTPError as e:
            raise UpstreamUnavailable(f"Remote API unreachable for {resolved.repo_path}: {e}") from e

    def _entries(self, resolved: ResolvedPath, payload: List[Any]) -> List[DirectoryEntry]:
        namespace = resolved.namespace
        prefix = f"{namespace}/"
        entries: List[DirectoryEntry] = []
        for item in payload:
            if not isinstance(item, dict) or not isinstance(item.get("name"), str):
                raise MalformedUpstreamResponse(f"Unexpected directory entry in {resolved.repo_path}")

            name = item["name"]
            repo_path = item.get("path")
            if not isinstance(repo_path, str) or not repo_path:
                repo_path = f"{resolved.repo_path}/{name}"
            path = repo_path[len(prefix):] if repo_path.startswith(prefix) else repo_path

            try:
                entries.append(
                    DirectoryEntry(
                        name=name,
                        kind="directory" if item.get("type") == "dir" else "file",
                        namespace=namespace,
                        path=path,
                        size=item.get("size"),
                        sha=item.get("sha"),
                    )
                )
            except pydantic.ValidationError as e:
                raise MalformedUpstreamResponse(
                    f"Unexpected directory entry {name!r} in {resolved.repo_path}"
                ) from e
        return entries

    async def _download(self, client: httpx.AsyncClient, url: str, repo_path: str) -> bytes:
        logger.debug(f"Downloading raw content of {repo_path} from {url}")
        try:
            response = await client.get(url, headers=self._headers())
        except httpx.HTTPError as e:
            raise UpstreamUnavailable(f"Remote download failed for {repo_path}: {e}") from e
        if not response.is_success:
            raise self._rejected(response)
        return response.content

    async def _decode(self, client: httpx.AsyncClient, payload: Dict[str, Any], repo_path: str) -> bytes:
        kind = payload.get("type")
        if kind not in (None, "file"):
            raise MalformedUpstreamResponse(f"Unexpected remote response for {repo_path}: type {kind!r}")

        content = payload.get("content")
        encoding = payload.get("encoding")
        if isinstance(content, str) and (content or encoding == "base64"):
            # The contents API wraps base64 at 60 columns.
            cleaned = content.replace("\n", "").replace("\r", "")
            try:
                return base64.b64decode(cleaned, validate=True)
            except (binascii.Error, ValueError) as e:
                raise MalformedUpstreamResponse(f"Invalid base64 content for {repo_path}") from e

        # Files above the inline size limit come back with encoding "none".
        download_url = payload.get("download_url")
        if isinstance(download_url, str) and download_url:
            return await self._download(client, download_url, repo_path)

        raise MalformedUpstreamResponse(f"Unexpected remote response for {repo_path}: no content")

    # ========================================================================
    # List / Read
    # ========================================================================

    async def list_directory(self, namespace: str, relative_path: str) -> List[DirectoryEntry]:
        """
        List the children of a directory in the order the remote returns them.

        Raises:
            UpstreamRejected: non-success remote status (404 for a missing path).
            MalformedUpstreamResponse: the path is a file or the body is not a listing.
        """
        resolved = self._resolved(namespace, relative_path)
        async with self._client() as client:
            response = await self._get_contents(client, resolved)
        if not response.is_success:
            raise self._rejected(response)

        payload = self._json(response, resolved.repo_path)
        if not isinstance(payload, list):
            raise MalformedUpstreamResponse(f"{resolved.repo_path} is not a directory")
        return self._entries(resolved, payload)

    async def read_file(self, namespace: str, relative_path: str) -> FileContent:
        """
        Read a file's bytes and infer its media type from the extension.

        Raises:
            PathIsDirectory: the path is a directory; the listing is attached.
            UpstreamRejected: non-success remote status, forwarded verbatim.
            MalformedUpstreamResponse: the payload is neither a file nor a listing.
        """
        resolved = self._resolved(namespace, relative_path)
        async with self._client() as client:
            response = await self._get_contents(client, resolved)
            if not response.is_success:
                raise self._rejected(response)

            payload = self._json(response, resolved.repo_path)
            if isinstance(payload, list):
                raise PathIsDirectory(resolved.repo_path, self._entries(resolved, payload))
            if not isinstance(payload, dict):
                raise MalformedUpstreamResponse(f"Unexpected remote response for {resolved.repo_path}")

            data = await self._decode(client, payload, resolved.repo_path)

        name = payload.get("name") or resolved.name
        if not isinstance(name, str):
            raise MalformedUpstreamResponse(f"Unexpected remote response for {resolved.repo_path}: bad name")

        try:
            return FileContent(
                name=name,
                data=data,
                media_type=media_type_for(name),
                sha=payload.get("sha"),
            )
        except pydantic.ValidationError as e:
            raise MalformedUpstreamResponse(f"Unexpected remote response for {resolved.repo_path}") from e

    # ========================================================================
    # Write
    # ========================================================================

    def authorize(self, presented_secret: Optional[str], repo_path: str = "") -> None:
        """
        Check a presented upload secret against the configured one.

        Purely local; callers use it to refuse a write before reading its body.
        """
        expected = self.settings.upload_secret
        if (
            not expected
            or presented_secret is None
            or not secrets.compare_digest(presented_secret.encode("utf-8"), expected.encode("utf-8"))
        ):
            logger.warning(f"Rejected write to {repo_path or '(unknown)'}: bad or missing upload secret")
            raise Unauthorized()

    async def _lookup_handle(
        self, client: httpx.AsyncClient, resolved: ResolvedPath
    ) -> Optional[RemoteObjectHandle]:
        """
        Best-effort lookup of the current handle. Any failure other than a
        clean lookup yields None; a 404 means the file does not exist yet.
        """
        try:
            response = await self._get_contents(client, resolved)
        except UpstreamUnavailable as e:
            logger.warning(f"Handle lookup failed for {resolved.repo_path}, writing without one: {e}")
            return None

        if response.status_code == 404:
            return None
        if not response.is_success:
            logger.warning(
                f"Handle lookup for {resolved.repo_path} returned {response.status_code}, writing without one"
            )
            return None

        try:
            payload = response.json()
        except ValueError:
            logger.warning(f"Handle lookup for {resolved.repo_path} returned non-JSON, writing without one")
            return None

        if isinstance(payload, dict) and isinstance(payload.get("sha"), str) and payload["sha"]:
            return RemoteObjectHandle(sha=payload["sha"])

        logger.warning(f"Handle lookup for {resolved.repo_path} carried no sha, writing without one")
        return None

    async def fetch_handle(self, namespace: str, relative_path: str) -> Optional[RemoteObjectHandle]:
        """Current handle of a file, or None when it does not exist (or the lookup failed)."""
        resolved = self._resolved(namespace, relative_path)
        async with self._client() as client:
            return await self._lookup_handle(client, resolved)

    async def _commit(
        self,
        client: httpx.AsyncClient,
        resolved: ResolvedPath,
        data: bytes,
        handle: Optional[RemoteObjectHandle],
    ) -> CommitResult:
        payload: Dict[str, Any] = {
            "message": f"{self.settings.commit_message_prefix} {resolved.repo_path}",
            "content": base64.b64encode(data).decode("ascii"),
            "branch": self.settings.branch,
        }
        if handle is not None:
            payload["sha"] = handle.sha

        url = self._contents_url(resolved)
        logger.debug(f"PUT {url} ({len(data)} bytes, sha={handle.sha if handle else None})")
        try:
            response = await client.put(url, json=payload, headers=self._headers())
        except httpx.HTTPError as e:
            raise UpstreamUnavailable(f"Remote API unreachable for {resolved.repo_path}: {e}") from e

        if not response.is_success:
            logger.warning(f"Remote rejected write of {resolved.repo_path}: {response.status_code}")
            raise self._rejected(response)

        # The commit already happened; a body we cannot parse only loses the new sha.
        try:
            body = response.json()
        except ValueError:
            body = None
        content = body.get("content") if isinstance(body, dict) else None
        new_sha = content.get("sha") if isinstance(content, dict) else None

        return CommitResult(
            namespace=resolved.namespace,
            path=resolved.relative_path,
            repo_path=resolved.repo_path,
            created=response.status_code == 201,
            sha=new_sha if isinstance(new_sha, str) else None,
        )

    async def write_file(
        self,
        namespace: str,
        relative_path: str,
        data: bytes,
        presented_secret: Optional[str],
    ) -> CommitResult:
        """
        Commit ``data`` to the given path on the configured reference.

        The upload secret is checked locally first; nothing reaches the remote
        store when it does not match. The current handle is then looked up so
        the remote store treats the write as an update of a known version; when
        there is none the write is a creation. Remote rejections (including
        conflicts with a concurrent writer) are raised unmodified, never retried.

        Raises:
            Unauthorized: missing or incorrect upload secret.
            GatewayMisconfigured: no remote access token configured.
            UpstreamRejected: the remote store refused the write.
            UpstreamUnavailable: network failure on the write itself.
        """
        resolved = self._resolved(namespace, relative_path)

        self.authorize(presented_secret, resolved.repo_path)

        if not self.settings.access_token:
            raise GatewayMisconfigured("Server misconfigured: GH_TOKEN not set")

        async with self._client() as client:
            handle = await self._lookup_handle(client, resolved)
            result = await self._commit(client, resolved, data, handle)

        logger.info(
            f"Committed {result.repo_path} ({'created' if result.created else 'updated'}, {len(data)} bytes)"
        )
        return result
