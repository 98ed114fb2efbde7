"""
Pytest configuration and fixtures.

The remote store is a small in-memory imitation of the GitHub contents API
served through ``httpx.MockTransport``. It keeps blob hashes the way Git does
and enforces the same optimistic-concurrency rules on PUT:
- existing file without ``sha``  -> 422
- existing file with a stale sha -> 409
"""
from __future__ import annotations

import asyncio
import base64
import hashlib
import json
from typing import Dict, List, Optional

import httpx
import pytest
from httpx import ASGITransport

from maven_proxy.core.config import Settings
from maven_proxy.core.dependencies import get_gateway, get_settings
from maven_proxy.main import app
from maven_proxy.services.gateway import ContentGateway


REPOSITORY = "acme/maven-repo"
BRANCH = "maven"
ACCESS_TOKEN = "gh-test-token"
UPLOAD_SECRET = "upload-s3cret"
RAW_HOST = "raw.test"


def blob_sha(data: bytes) -> str:
    return hashlib.sha1(b"blob %d\0" % len(data) + data).hexdigest()


def _wrap_base64(data: bytes) -> str:
    encoded = base64.b64encode(data).decode("ascii")
    return "\n".join(encoded[i:i + 60] for i in range(0, len(encoded), 60)) + "\n"


class FakeContentsAPI:
    """In-memory GitHub contents API for one repository and branch."""

    def __init__(self, repository: str = REPOSITORY, branch: str = BRANCH, token: str = ACCESS_TOKEN):
        self.repository = repository
        self.branch = branch
        self.token = token
        self.files: Dict[str, bytes] = {}
        self.requests: List[httpx.Request] = []
        # Files larger than this are returned without inline content.
        self.inline_limit: Optional[int] = None
        # Status returned for every handle lookup / read when set.
        self.fail_gets_with: Optional[int] = None
        self._hold_count = 0
        self._held = 0
        self._gate: Optional[asyncio.Event] = None

    # -- helpers used by tests ----------------------------------------------

    def add_file(self, path: str, data: bytes) -> None:
        self.files[path.strip("/")] = data

    def hold_reads(self, count: int) -> None:
        """Block GETs until ``count`` of them are in flight."""
        self._hold_count = count
        self._held = 0
        self._gate = asyncio.Event()

    @property
    def writes(self) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == "PUT"]

    @property
    def reads(self) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == "GET"]

    # -- transport ----------------------------------------------------------

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        if request.url.host == RAW_HOST:
            key = request.url.path.lstrip("/")
            if key not in self.files:
                return httpx.Response(404, text="404: Not Found")
            return httpx.Response(200, content=self.files[key])

        prefix = f"/repos/{self.repository}/contents"
        path = request.url.path
        if not path.startswith(prefix):
            return httpx.Response(404, json={"message": "Not Found"})
        repo_path = path[len(prefix):].strip("/")

        if request.method == "GET":
            return await self._get(request, repo_path)
        if request.method == "PUT":
            return self._put(request, repo_path)
        return httpx.Response(405, json={"message": "Method Not Allowed"})

    async def _get(self, request: httpx.Request, repo_path: str) -> httpx.Response:
        # The answer reflects the state at arrival, even when held at the gate.
        response = self._read(request, repo_path)
        if self._gate is not None:
            self._held += 1
            if self._held >= self._hold_count:
                self._gate.set()
            await self._gate.wait()
        return response

    def _read(self, request: httpx.Request, repo_path: str) -> httpx.Response:
        if self.fail_gets_with is not None:
            return httpx.Response(self.fail_gets_with, json={"message": "Server Error"})
        if request.url.params.get("ref") != self.branch:
            return httpx.Response(404, json={"message": "No commit found for the ref"})

        if repo_path in self.files:
            data = self.files[repo_path]
            payload = {
                "type": "file",
                "name": repo_path.rsplit("/", 1)[-1],
                "path": repo_path,
                "sha": blob_sha(data),
                "size": len(data),
                "encoding": "base64",
                "content": _wrap_base64(data),
                "download_url": f"https://{RAW_HOST}/{repo_path}",
            }
            if self.inline_limit is not None and len(data) > self.inline_limit:
                payload["encoding"] = "none"
                payload["content"] = ""
            return httpx.Response(200, json=payload)

        dir_prefix = f"{repo_path}/" if repo_path else ""
        children: Dict[str, bool] = {}
        for key in sorted(self.files):
            if not key.startswith(dir_prefix):
                continue
            rest = key[len(dir_prefix):]
            name, _, deeper = rest.partition("/")
            children[name] = children.get(name, False) or bool(deeper)

        if not children:
            return httpx.Response(404, json={"message": "Not Found"})

        entries = []
        for name, is_dir in children.items():
            child_path = f"{dir_prefix}{name}"
            entry = {"name": name, "path": child_path, "type": "dir" if is_dir else "file"}
            if not is_dir:
                entry["sha"] = blob_sha(self.files[child_path])
                entry["size"] = len(self.files[child_path])
            entries.append(entry)
        return httpx.Response(200, json=entries)

    def _put(self, request: httpx.Request, repo_path: str) -> httpx.Response:
        if request.headers.get("Authorization") != f"Bearer {self.token}":
            return httpx.Response(401, json={"message": "Bad credentials"})

        body = json.loads(request.content)
        if body.get("branch") != self.branch or "message" not in body:
            return httpx.Response(422, json={"message": "Invalid request."})

        data = base64.b64decode(body["content"])
        existing = self.files.get(repo_path)
        if existing is not None:
            if "sha" not in body:
                return httpx.Response(422, json={"message": "Invalid request.\n\n\"sha\" wasn't supplied."})
            if body["sha"] != blob_sha(existing):
                return httpx.Response(409, json={"message": f"{repo_path} does not match {body['sha']}"})

        self.files[repo_path] = data
        return httpx.Response(
            201 if existing is None else 200,
            json={
                "content": {"name": repo_path.rsplit("/", 1)[-1], "path": repo_path, "sha": blob_sha(data)},
                "commit": {"message": body["message"]},
            },
        )


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        api_url="https://api.test",
        repository=REPOSITORY,
        branch=BRANCH,
        access_token=ACCESS_TOKEN,
        upload_secret=UPLOAD_SECRET,
    )


@pytest.fixture
def fake_remote() -> FakeContentsAPI:
    return FakeContentsAPI()


@pytest.fixture
def gateway(settings: Settings, fake_remote: FakeContentsAPI) -> ContentGateway:
    return ContentGateway(settings, transport=httpx.MockTransport(fake_remote.handler))


@pytest.fixture
async def client(settings: Settings, gateway: ContentGateway):
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_gateway] = lambda: gateway
    try:
        async with httpx.AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
            yield c
    finally:
        app.dependency_overrides.clear()
