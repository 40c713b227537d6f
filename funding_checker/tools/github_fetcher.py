"""GitHub API client for fetching repository metadata, commits and file contents."""

import httpx
from typing import Any, Dict, Optional, Protocol
import logging
from funding_checker.errors import GitHubError, RepoNotFoundError, RepoAccessDeniedError, RateLimitError

logger = logging.getLogger(__name__)


class RepositoryProvider(Protocol):
    """What the resolver needs from a repository metadata provider."""

    async def get_repository(self, owner: str, repo: str) -> Dict[str, Any]:
        ...

    async def get_file_content(
        self, owner: str, repo: str, path: str, ref: Optional[str] = None
    ) -> Optional[Dict[str, Any]]:
        ...

    async def get_commit_count(self, owner: str, repo: str) -> int:
        ...

    async def get_readme(self, owner: str, repo: str) -> Optional[Dict[str, Any]]:
        ...


class GitHubFetcher:
    """Fetches repository metadata and raw file payloads from the GitHub REST API."""

    BASE_URL = "https://api.github.com"

    def __init__(
        self,
        token: Optional[str] = None,
        base_url: str = BASE_URL,
        timeout: float = 30,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.headers = {
            "Accept": "application/vnd.github.v3+json",
            "User-Agent": "funding-checker",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if token:
            self.headers["Authorization"] = f"Bearer {token}"
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Gets or creates the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                headers=self.headers,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Closes the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _get(self, url: str, params: Optional[Dict[str, str]] = None) -> httpx.Response:
        client = await self._get_client()
        try:
            return await client.get(url, params=params)
        except httpx.RequestError as e:
            logger.warning(f"Request to {url} failed: {e}")
            raise GitHubError(f"Request to GitHub failed: {e}", status_code=0) from e

    @staticmethod
    def is_rate_limited(response: httpx.Response) -> bool:
        """
        Detects primary and secondary rate limit responses.

        GitHub answers 429, or 403 with a zeroed remaining quota or a
        "rate limit" message in the body.
        """
        if response.status_code == 429:
            return True
        if response.status_code != 403:
            return False
        if response.headers.get("x-ratelimit-remaining") == "0":
            return True
        return "rate limit" in response.text.lower()

    def _raise_for_status(self, response: httpx.Response, what: str) -> None:
        if response.is_success:
            return

        if self.is_rate_limited(response):
            raise RateLimitError(status_code=response.status_code)
        if response.status_code == 403:
            raise RepoAccessDeniedError(f"Access denied to {what}")

        try:
            data = response.json()
        except ValueError:
            data = None
        if isinstance(data, dict) and data.get("message"):
            message = data["message"]
        else:
            message = response.text or response.reason_phrase
        raise GitHubError(f"GitHub API error for {what}: {message}", status_code=response.status_code)

    @staticmethod
    def _json(response: httpx.Response, what: str) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise GitHubError(f"Unreadable GitHub response for {what}", status_code=response.status_code) from e

    async def get_repository(self, owner: str, repo: str) -> Dict[str, Any]:
        """
        Fetches repository metadata.

        Args:
            owner: Repository owner
            repo: Repository name

        Returns:
            The ``GET /repos/{owner}/{repo}`` payload

        Raises:
            RepoNotFoundError: If repository doesn't exist
            RepoAccessDeniedError: If repository is private
            RateLimitError: If GitHub rate limit exceeded
            GitHubError: For any other failure
        """
        url = f"{self.base_url}/repos/{owner}/{repo}"
        response = await self._get(url)

        if response.status_code == 404:
            raise RepoNotFoundError(f"Repository {owner}/{repo} not found")
        self._raise_for_status(response, f"{owner}/{repo}")

        logger.debug(f"Fetched metadata for {owner}/{repo}")
        return self._json(response, f"{owner}/{repo}")

    async def get_file_content(
        self, owner: str, repo: str, path: str, ref: Optional[str] = None
    ) -> Optional[Dict[str, Any]]:
        """
        Fetches the contents payload of a specific file.

        The payload is returned still transport-encoded (``content`` plus
        ``encoding``); decoding is left to the caller.

        Args:
            owner: Repository owner
            repo: Repository name
            path: File path within repository
            ref: Branch, tag or commit; GitHub uses the default branch when omitted

        Returns:
            The contents payload, or None if the file does not exist

        Raises:
            RateLimitError: If GitHub rate limit exceeded
            GitHubError: For any other failure
        """
        url = f"{self.base_url}/repos/{owner}/{repo}/contents/{path}"
        params = {"ref": ref} if ref else None
        response = await self._get(url, params=params)

        if response.status_code == 404:
            logger.info(f"File not found: {owner}/{repo}/{path}")
            return None
        self._raise_for_status(response, f"{owner}/{repo}/{path}")

        return self._json(response, f"{owner}/{repo}/{path}")

    async def get_commit_count(self, owner: str, repo: str) -> int:
        """
        Counts the commits on the default branch.

        One commit is requested per page, so the page number of the ``last``
        link equals the commit count.

        Args:
            owner: Repository owner
            repo: Repository name

        Returns:
            Number of commits, 0 for an empty repository

        Raises:
            RepoNotFoundError: If repository doesn't exist
            RateLimitError: If GitHub rate limit exceeded
            GitHubError: For any other failure
        """
        url = f"{self.base_url}/repos/{owner}/{repo}/commits"
        response = await self._get(url, params={"per_page": "1"})

        if response.status_code == 404:
            raise RepoNotFoundError(f"Repository {owner}/{repo} not found")
        # GitHub answers 409 Conflict for a repository without commits
        if response.status_code == 409:
            return 0
        self._raise_for_status(response, f"{owner}/{repo} commits")

        last = response.links.get("last")
        if last:
            page = httpx.URL(last["url"]).params.get("page", "")
            if page.isdigit():
                return int(page)

        commits = self._json(response, f"{owner}/{repo} commits")
        return len(commits) if isinstance(commits, list) else 0

    async def get_readme(self, owner: str, repo: str) -> Optional[Dict[str, Any]]:
        """
        Fetches the contents payload of the repository README.

        Returns:
            The contents payload, or None if the repository has no README
        """
        url = f"{self.base_url}/repos/{owner}/{repo}/readme"
        response = await self._get(url)

        if response.status_code == 404:
            logger.info(f"No README in {owner}/{repo}")
            return None
        self._raise_for_status(response, f"{owner}/{repo} README")

        return self._json(response, f"{owner}/{repo} README")
