"""
Process-wide configuration for the Maven Git proxy.

Settings are read once from environment variables and then treated as
immutable for the lifetime of the process. They are passed explicitly into
the content gateway so tests can construct their own instances.
"""
from __future__ import annotations

import os
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from maven_proxy.domain.models import NamespaceLayout


DEFAULT_API_URL = "https://api.github.com"
DEFAULT_REPOSITORY = "Volcar144/StaticHosting"
DEFAULT_BRANCH = "maven"


def _parse_float_env(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    if value <= 0:
        return default
    return value


class Settings(BaseModel):
    """
    Remote repository coordinates, credentials and proxy behavior.
    """

    model_config = ConfigDict(frozen=True)

    api_url: str = Field(
        default=DEFAULT_API_URL,
        description="Base URL of the GitHub REST API.",
    )
    repository: str = Field(
        default=DEFAULT_REPOSITORY,
        description="Remote repository identifier in 'owner/name' form.",
    )
    branch: str = Field(
        default=DEFAULT_BRANCH,
        description="Reference (branch) all reads and writes are performed against.",
    )
    access_token: Optional[str] = Field(
        default=None,
        repr=False,
        description="Token used for every remote call. Writes fail without it.",
    )
    upload_secret: Optional[str] = Field(
        default=None,
        repr=False,
        description="Shared bearer secret callers must present to write. Unset rejects all writes.",
    )
    layout: NamespaceLayout = Field(
        default_factory=NamespaceLayout,
        description="Namespace names and the marker that routes paths to snapshots.",
    )
    commit_message_prefix: str = Field(
        default="Upload",
        description="Prefix of the commit message; the repository path is appended.",
    )
    request_timeout: float = Field(
        default=30.0,
        gt=0,
        description="Timeout in seconds for a single remote API call.",
    )
    user_agent: str = Field(
        default="maven-git-proxy",
        description="User-Agent header sent to the remote API (GitHub requires one).",
    )
    blocked_path_fragments: List[str] = Field(
        default_factory=lambda: ["package.json"],
        description="Request paths containing any of these fragments are refused with 403.",
    )
    blocked_path_prefixes: List[str] = Field(
        default_factory=lambda: ["/node_modules"],
        description="Request paths starting with any of these prefixes are refused with 403.",
    )

    @property
    def contents_url(self) -> str:
        return f"{self.api_url.rstrip('/')}/repos/{self.repository.strip('/')}/contents"

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Build settings from the environment.

        Env:
            GH_REPO, GH_BRANCH, GH_TOKEN, UPLOAD_KEY, GH_API_URL,
            MAVEN_PROXY_TIMEOUT, MAVEN_PROXY_USER_AGENT
        """
        return cls(
            api_url=(os.getenv("GH_API_URL") or DEFAULT_API_URL).strip(),
            repository=(os.getenv("GH_REPO") or DEFAULT_REPOSITORY).strip(),
            branch=(os.getenv("GH_BRANCH") or DEFAULT_BRANCH).strip(),
            access_token=(os.getenv("GH_TOKEN") or "").strip() or None,
            upload_secret=os.getenv("UPLOAD_KEY") or None,
            request_timeout=_parse_float_env("MAVEN_PROXY_TIMEOUT", 30.0),
            user_agent=(os.getenv("MAVEN_PROXY_USER_AGENT") or "maven-git-proxy").strip(),
        )


def get_log_level() -> str:
    """Logging level name for the application (MAVEN_PROXY_LOG_LEVEL, default INFO)."""
    return (os.getenv("MAVEN_PROXY_LOG_LEVEL") or "INFO").strip().upper()

