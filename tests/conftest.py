"""Shared fixtures and a fake GitHub provider."""

import base64
import json
from typing import Any, Dict, List, Optional, Tuple

import pytest

from funding_checker.errors import RepoNotFoundError


def github_repo(owner: str, name: str, stars: int = 10, forks: int = 2, default_branch: str = "main") -> Dict[str, Any]:
    """Builds a minimal ``GET /repos/{owner}/{repo}`` payload."""
    return {
        "name": name,
        "full_name": f"{owner}/{name}",
        "owner": {"login": owner, "avatar_url": f"https://avatars.githubusercontent.com/{owner}"},
        "html_url": f"https://github.com/{owner}/{name}",
        "description": f"{name} description",
        "stargazers_count": stars,
        "forks_count": forks,
        "default_branch": default_branch,
    }


def contents_payload(text: str, path: str = "FUNDING.json") -> Dict[str, Any]:
    """Builds a contents payload the way GitHub encodes it."""
    encoded = base64.b64encode(text.encode("utf-8")).decode("ascii")
    # GitHub wraps base64 lines at 60 characters
    wrapped = "\n".join(encoded[i:i + 60] for i in range(0, len(encoded), 60))
    return {"type": "file", "encoding": "base64", "content": wrapped, "path": path}


def funding_payload(account: str = "alice.near") -> Dict[str, Any]:
    return contents_payload(json.dumps({"potlock": {"near": {"ownedBy": account}}}))


class FakeProvider:
    """In-memory stand-in for GitHubFetcher.

    ``repos`` maps (owner, name) to a metadata payload or an exception to
    raise; ``files`` maps (owner, name) to a contents payload or exception.
    A missing files entry means the file does not exist. ``commits`` and
    ``readmes`` work the same way for the commit count and README payload.
    """

    def __init__(self, repos=None, files=None, commits=None, readmes=None):
        self.repos: Dict[Tuple[str, str], Any] = repos or {}
        self.files: Dict[Tuple[str, str], Any] = files or {}
        self.commits: Dict[Tuple[str, str], Any] = commits or {}
        self.readmes: Dict[Tuple[str, str], Any] = readmes or {}
        self.calls: List[Tuple[Any, ...]] = []

    async def get_repository(self, owner: str, repo: str) -> Dict[str, Any]:
        self.calls.append(("repo", owner, repo))
        result = self.repos.get((owner, repo))
        if result is None:
            raise RepoNotFoundError(f"Repository {owner}/{repo} not found")
        if isinstance(result, Exception):
            raise result
        return result

    async def get_file_content(
        self, owner: str, repo: str, path: str, ref: Optional[str] = None
    ) -> Optional[Dict[str, Any]]:
        self.calls.append(("file", owner, repo, path, ref))
        result = self.files.get((owner, repo))
        if isinstance(result, Exception):
            raise result
        return result

    async def get_commit_count(self, owner: str, repo: str) -> int:
        self.calls.append(("commits", owner, repo))
        result = self.commits.get((owner, repo), 0)
        if isinstance(result, Exception):
            raise result
        return result

    async def get_readme(self, owner: str, repo: str) -> Optional[Dict[str, Any]]:
        self.calls.append(("readme", owner, repo))
        result = self.readmes.get((owner, repo))
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture
def provider():
    return FakeProvider()
