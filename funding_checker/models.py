"""Domain values and Pydantic models for request/response validation."""

from dataclasses import dataclass
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from funding_checker.outcomes import ManifestOutcome, ProviderError, ResolutionError


@dataclass(frozen=True)
class RepositoryIdentity:
    """Owner and name extracted from a GitHub repository URL."""
    owner: str
    name: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"

    @property
    def html_url(self) -> str:
        return f"https://github.com/{self.owner}/{self.name}"


class RepositoryMetadata(BaseModel):
    """Read-only snapshot of a repository as reported by GitHub."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Display name of the repository")
    full_name: str = Field(..., description="owner/name as reported by GitHub")
    owner: str = Field(..., description="Login name of the repository owner")
    owner_avatar_url: Optional[str] = Field(None, description="Avatar of the repository owner")
    html_url: str = Field(..., description="Browser URL of the repository")
    description: Optional[str] = None
    stars: int = Field(0, ge=0, description="Total number of stargazers")
    forks: int = Field(0, ge=0, description="Total number of forks")
    default_branch: str = Field("main", description="Branch GitHub treats as the repository root")

    @classmethod
    def from_github(cls, data: Dict[str, Any]) -> "RepositoryMetadata":
        """Builds metadata from a ``GET /repos/{owner}/{repo}`` payload."""
        owner = data.get("owner") or {}
        return cls(
            name=data["name"],
            full_name=data.get("full_name") or f"{owner.get('login', '')}/{data['name']}",
            owner=owner.get("login", ""),
            owner_avatar_url=owner.get("avatar_url"),
            html_url=data.get("html_url") or f"https://github.com/{data.get('full_name', '')}",
            description=data.get("description"),
            stars=data.get("stargazers_count") or 0,
            forks=data.get("forks_count") or 0,
            default_branch=data.get("default_branch") or "main",
        )


class CheckRequest(BaseModel):
    """Request model for the /check endpoint."""

    github_url: str = Field(
        ...,
        description="URL of a GitHub repository",
        examples=["https://github.com/potlock/core"]
    )
    ref: Optional[str] = Field(None, description="Branch to read FUNDING.json from")

    @field_validator("github_url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("URL cannot be empty")
        return v.strip()


class ProposalRequest(CheckRequest):
    """Request model for the /proposal endpoint."""

    account: str = Field(..., description="NEAR account that will own the funding", examples=["alice.near"])

    @field_validator("account")
    @classmethod
    def strip_account(cls, v: str) -> str:
        return v.strip()


class FundingStatus(BaseModel):
    """Serialized form of a manifest outcome."""

    status: Literal[
        "valid", "missing", "malformed_encoding", "missing_field", "invalid_account", "provider_error"
    ]
    message: str
    account: Optional[str] = None
    manifest: Optional[Dict[str, Any]] = None
    field: Optional[str] = None
    value: Optional[Any] = None

    @classmethod
    def from_outcome(cls, outcome: ManifestOutcome) -> "FundingStatus":
        return cls(
            status=outcome.kind,
            message=outcome.message,
            account=getattr(outcome, "account", None),
            manifest=getattr(outcome, "manifest", None),
            field=getattr(outcome, "field", None),
            value=getattr(outcome, "value", None),
        )


class ErrorDetail(BaseModel):
    """Serialized form of a resolution error."""

    kind: Literal["invalid_url", "unsupported_host", "not_found", "provider_error"]
    message: str
    status: Optional[int] = None

    @classmethod
    def from_error(cls, error: ResolutionError) -> "ErrorDetail":
        status = error.status if isinstance(error, ProviderError) else None
        return cls(kind=error.kind, message=error.message, status=status)


class CheckResponse(BaseModel):
    """Response model for a single repository check."""

    repository: RepositoryMetadata
    funding: FundingStatus
    commit_count: Optional[int] = Field(None, description="Commits on the default branch")
    readme: Optional[str] = Field(None, description="Raw README text, not rendered")


class ProposalResponse(BaseModel):
    """Response model for the /proposal endpoint."""

    proposal_url: str = Field(..., description="GitHub file-creation link pre-filled with FUNDING.json")
    branch: str


class AccountValidityResponse(BaseModel):
    account: str
    valid: bool


class LeaderboardEntry(BaseModel):
    """One row of the leaderboard, aligned with the static repository list."""

    reference: str
    repository: Optional[RepositoryMetadata] = None
    error: Optional[ErrorDetail] = None
    funding: Optional[FundingStatus] = None


class LeaderboardResponse(BaseModel):
    entries: List[LeaderboardEntry]
    total: int


class ErrorResponse(BaseModel):
    """Response model for errors."""

    status: Literal["error"] = "error"
    message: str = Field(..., description="Error description")
    kind: Optional[str] = Field(None, description="Machine-readable error kind")


MetadataOrError = Union[RepositoryMetadata, ResolutionError]
