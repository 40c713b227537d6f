"""Tests for FastAPI application."""

import pytest
from hypothesis import given, strategies as st, settings
from fastapi.testclient import TestClient
from urllib.parse import parse_qs, urlsplit

from funding_checker.errors import GitHubError, RateLimitError
from funding_checker.main import app, get_provider, get_repository_list
from funding_checker.tools.github_fetcher import GitHubFetcher

from conftest import FakeProvider, contents_payload, funding_payload, github_repo


@pytest.fixture
def provider():
    """Fake GitHub with one funded, one unfunded and one broken repository."""
    return FakeProvider(
        repos={
            ("potlock", "core"): github_repo("potlock", "core", stars=30, forks=12),
            ("near", "nearcore"): github_repo("near", "nearcore", stars=2300, forks=600, default_branch="master"),
            ("near", "docs"): github_repo("near", "docs", stars=700, forks=100),
        },
        files={
            ("potlock", "core"): funding_payload("potlock.near"),
            ("near", "docs"): contents_payload("{not json"),
        },
        commits={("potlock", "core"): 128},
        readmes={("potlock", "core"): contents_payload("# POTLOCK core\n", path="README.md")},
    )


@pytest.fixture
def client(provider):
    """Create test client wired to the fake provider."""
    app.dependency_overrides[get_provider] = lambda: provider
    app.dependency_overrides[get_repository_list] = lambda: [
        "https://github.com/potlock/core",
        "https://gitlab.com/near/nearcore",
        "https://github.com/near/nearcore",
        "https://github.com/near/docs",
        "https://github.com/near/gone",
    ]
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestLifespan:
    """Tests for the shared GitHub client."""

    def test_fetcher_created_at_startup(self):
        """Test startup creates one client that every request shares."""
        with TestClient(app) as client:
            fetcher = app.state.fetcher
            assert isinstance(fetcher, GitHubFetcher)

            # get_provider runs without touching GitHub for a rejected URL
            response = client.post("/check", json={"github_url": "https://gitlab.com/owner/repo"})
            assert response.status_code == 400
            assert app.state.fetcher is fetcher


class TestHealthEndpoint:
    """Tests for health check endpoint."""

    def test_health_check(self, client):
        """Test health endpoint returns healthy."""
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}


class TestCheckEndpoint:
    """Tests for /check endpoint."""

    def test_invalid_url_empty(self, client):
        """Test empty URL returns 400."""
        response = client.post("/check", json={"github_url": ""})
        assert response.status_code == 400
        data = response.json()
        assert data["status"] == "error"
        assert "message" in data

    def test_invalid_url_not_github(self, client, provider):
        """Test non-GitHub URL returns 400 without calling GitHub."""
        response = client.post("/check", json={"github_url": "https://gitlab.com/owner/repo"})
        assert response.status_code == 400
        assert response.json() == {"status": "error", "message": "Invalid host: gitlab.com", "kind": "unsupported_host"}
        assert provider.calls == []

    def test_invalid_url_malformed(self, client):
        """Test malformed URL returns 400."""
        response = client.post("/check", json={"github_url": "not a url"})
        assert response.status_code == 400
        assert response.json()["status"] == "error"

    def test_missing_github_url_field(self, client):
        """Test missing github_url field returns 400."""
        response = client.post("/check", json={})
        assert response.status_code == 400

    def test_repository_not_found(self, client):
        """Test unknown repository returns 404."""
        response = client.post("/check", json={"github_url": "https://github.com/near/gone"})
        assert response.status_code == 404
        assert response.json()["status"] == "error"

    def test_rate_limited(self, client, provider):
        """Test rate limiting returns 429."""
        provider.repos[("potlock", "core")] = RateLimitError(status_code=403)

        response = client.post("/check", json={"github_url": "https://github.com/potlock/core"})

        assert response.status_code == 429
        assert "rate limit" in response.json()["message"]

    def test_valid_manifest(self, client):
        """Test a funded repository."""
        response = client.post("/check", json={"github_url": "https://github.com/potlock/core/"})

        assert response.status_code == 200
        data = response.json()
        assert data["repository"]["full_name"] == "potlock/core"
        assert data["repository"]["stars"] == 30
        assert data["funding"]["status"] == "valid"
        assert data["funding"]["account"] == "potlock.near"
        assert data["funding"]["manifest"] == {"potlock": {"near": {"ownedBy": "potlock.near"}}}

    def test_missing_manifest_is_not_an_error(self, client):
        """Test a repository without FUNDING.json."""
        response = client.post("/check", json={"github_url": "https://github.com/near/nearcore"})

        assert response.status_code == 200
        funding = response.json()["funding"]
        assert funding["status"] == "missing"
        assert funding["message"] == "FUNDING.json not found"

    def test_malformed_manifest(self, client):
        """Test malformed is distinguishable from absent."""
        response = client.post("/check", json={"github_url": "https://github.com/near/docs"})

        assert response.status_code == 200
        assert response.json()["funding"]["status"] == "malformed_encoding"

    def test_ref_forwarded(self, client, provider):
        """Test the requested branch reaches GitHub."""
        client.post("/check", json={"github_url": "https://github.com/potlock/core", "ref": "develop"})

        assert ("file", "potlock", "core", "FUNDING.json", "develop") in provider.calls

    def test_manifest_rate_limited(self, client, provider):
        """Test a rate limit while reading FUNDING.json returns 429."""
        provider.files[("potlock", "core")] = RateLimitError(status_code=403)

        response = client.post("/check", json={"github_url": "https://github.com/potlock/core"})

        assert response.status_code == 429
        data = response.json()
        assert data["status"] == "error"
        assert data["kind"] == "rate_limited"
        assert "rate limit" in data["message"]

    def test_manifest_server_error(self, client, provider):
        """Test a GitHub 5xx while reading FUNDING.json returns 502."""
        provider.files[("potlock", "core")] = GitHubError("Service unavailable", status_code=503)

        response = client.post("/check", json={"github_url": "https://github.com/potlock/core"})

        assert response.status_code == 502
        assert response.json() == {"status": "error", "message": "Service unavailable", "kind": "provider_error"}

    def test_commit_count_and_readme(self, client):
        """Test the commit count and raw README text are returned."""
        data = client.post("/check", json={"github_url": "https://github.com/potlock/core"}).json()

        assert data["commit_count"] == 128
        assert data["readme"] == "# POTLOCK core\n"

    def test_readme_absent(self, client):
        """Test a repository without README still checks."""
        response = client.post("/check", json={"github_url": "https://github.com/near/nearcore"})

        assert response.status_code == 200
        assert response.json()["readme"] is None
        assert response.json()["commit_count"] == 0

    def test_details_failure_keeps_check(self, client, provider):
        """Test failing commit and README reads do not fail the check."""
        provider.commits[("potlock", "core")] = RateLimitError()
        provider.readmes[("potlock", "core")] = GitHubError("boom", status_code=500)

        response = client.post("/check", json={"github_url": "https://github.com/potlock/core"})

        assert response.status_code == 200
        data = response.json()
        assert data["funding"]["status"] == "valid"
        assert data["commit_count"] is None
        assert data["readme"] is None


class TestProposalEndpoint:
    """Tests for /proposal endpoint."""

    def test_uses_default_branch(self, client):
        """Test the proposal targets the default branch."""
        response = client.post(
            "/proposal",
            json={"github_url": "https://github.com/near/nearcore", "account": "alice.near"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["branch"] == "master"
        parts = urlsplit(data["proposal_url"])
        assert parts.path == "/near/nearcore/new/master"
        assert parse_qs(parts.query)["filename"] == ["FUNDING.json"]

    def test_explicit_branch_skips_lookup(self, client, provider):
        """Test a given ref is used without fetching metadata."""
        response = client.post(
            "/proposal",
            json={"github_url": "https://github.com/near/nearcore", "account": "alice.near", "ref": "dev"},
        )

        assert response.status_code == 200
        assert response.json()["branch"] == "dev"
        assert provider.calls == []

    def test_invalid_account(self, client, provider):
        """Test an invalid account is rejected before any GitHub call."""
        response = client.post(
            "/proposal",
            json={"github_url": "https://github.com/near/nearcore", "account": "-alice.near"},
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid NEAR address format"
        assert provider.calls == []

    def test_invalid_url(self, client):
        """Test an invalid URL is rejected."""
        response = client.post("/proposal", json={"github_url": "https://github.com/near", "account": "alice.near"})
        assert response.status_code == 400

    def test_repository_not_found(self, client):
        """Test proposal for an unknown repository."""
        response = client.post(
            "/proposal",
            json={"github_url": "https://github.com/near/gone", "account": "alice.near"},
        )
        assert response.status_code == 404


class TestAccountValidityEndpoint:
    """Tests for /accounts/{account}/validity endpoint."""

    def test_valid(self, client):
        response = client.get("/accounts/alice.near/validity")
        assert response.json() == {"account": "alice.near", "valid": True}

    def test_invalid(self, client):
        response = client.get("/accounts/alice--bob.near/validity")
        assert response.json() == {"account": "alice--bob.near", "valid": False}


class TestLeaderboardEndpoint:
    """Tests for /leaderboard endpoint."""

    def test_all_entries_present(self, client):
        """Test every listed repository gets an entry."""
        response = client.get("/leaderboard")

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 5

    def test_sorted_by_stars_with_failures_last(self, client):
        """Test default ordering."""
        entries = client.get("/leaderboard").json()["entries"]

        names = [e["repository"]["full_name"] for e in entries if e["repository"]]
        assert names == ["near/nearcore", "near/docs", "potlock/core"]
        assert [e["error"]["kind"] for e in entries[3:]] == ["unsupported_host", "not_found"]

    def test_outcomes_per_entry(self, client):
        """Test each entry carries its own outcome."""
        entries = {e["reference"]: e for e in client.get("/leaderboard").json()["entries"]}

        assert entries["https://github.com/potlock/core"]["funding"]["status"] == "valid"
        assert entries["https://github.com/near/nearcore"]["funding"]["status"] == "missing"
        assert entries["https://github.com/near/docs"]["funding"]["status"] == "malformed_encoding"
        assert entries["https://gitlab.com/near/nearcore"]["funding"] is None

    def test_sort_by_forks_ascending(self, client):
        """Test fork ordering."""
        entries = client.get("/leaderboard", params={"sort_by": "forks", "order": "asc"}).json()["entries"]

        forks = [e["repository"]["forks"] for e in entries if e["repository"]]
        assert forks == [12, 100, 600]

    def test_search(self, client):
        """Test search on the funding account."""
        entries = client.get("/leaderboard", params={"q": "potlock.near"}).json()["entries"]

        assert [e["reference"] for e in entries] == ["https://github.com/potlock/core"]

    def test_invalid_sort_field(self, client):
        """Test unknown sort field returns 400."""
        response = client.get("/leaderboard", params={"sort_by": "name"})
        assert response.status_code == 400


class TestErrorResponseFormat:
    """Property tests for error response format."""

    @given(url=st.text(min_size=1, max_size=100).filter(
        lambda x: "github.com" not in x.lower()
    ))
    @settings(max_examples=50)
    def test_property_error_response_format(self, url: str):
        """Error responses have correct format and never reach GitHub."""
        provider = FakeProvider()
        app.dependency_overrides[get_provider] = lambda: provider
        try:
            response = TestClient(app).post("/check", json={"github_url": url})
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 400

        data = response.json()
        assert data.get("status") == "error"
        assert isinstance(data["message"], str)
        assert len(data["message"]) > 0
        assert provider.calls == []
