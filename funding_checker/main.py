"""FastAPI application for the Funding Manifest Checker."""

import asyncio
import time
from contextlib import asynccontextmanager
from typing import List, Literal, Union

from fastapi import Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from funding_checker.config import get_settings
from funding_checker.errors import CheckError, create_error_response
from funding_checker.leaderboard import filter_entries, load_repository_list, sort_entries
from funding_checker.logging_config import setup_logging, get_logger
from funding_checker.models import (
    AccountValidityResponse,
    CheckRequest,
    CheckResponse,
    ErrorDetail,
    ErrorResponse,
    FundingStatus,
    LeaderboardEntry,
    LeaderboardResponse,
    ProposalRequest,
    ProposalResponse,
    RepositoryIdentity,
    RepositoryMetadata,
)
from funding_checker.outcomes import ManifestOutcome, NotFound, ProviderError
from funding_checker.proposal import build_proposal_url
from funding_checker.resolver import BatchEntry, fetch_details, fetch_metadata, resolve_all, validate
from funding_checker.tools.github_fetcher import GitHubFetcher, RepositoryProvider
from funding_checker.validators import is_valid_account, resolve

# Setup logging on module load
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Creates the shared GitHub client on startup and closes it on shutdown."""
    settings = get_settings()
    app.state.fetcher = GitHubFetcher(
        token=settings.github_token,
        base_url=settings.github_api_url,
        timeout=settings.github_timeout,
    )
    logger.info(f"Starting Funding Manifest Checker API against {settings.github_api_url}")
    try:
        yield
    finally:
        logger.info("Shutting down Funding Manifest Checker API")
        await app.state.fetcher.close()


app = FastAPI(
    title="Funding Manifest Checker",
    description="Checks GitHub repositories for a POTLOCK FUNDING.json manifest",
    version="1.0.0",
    lifespan=lifespan
)


async def get_provider(request: Request) -> RepositoryProvider:
    """Returns the GitHub client created by the lifespan handler."""
    return request.app.state.fetcher


async def get_repository_list(request: Request) -> List[str]:
    """Returns the leaderboard repository list, loaded once."""
    references = getattr(request.app.state, "repository_list", None)
    if references is None:
        references = load_repository_list(get_settings().repos_file)
        request.app.state.repository_list = references
    return references


# Exception handlers
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle Pydantic validation errors."""
    errors = exc.errors()
    if errors:
        message = errors[0].get("msg", "Validation error")
    else:
        message = "Invalid request"

    logger.warning(f"Validation error: {message}")
    return JSONResponse(
        status_code=400,
        content=create_error_response(message, kind="invalid_request")
    )


@app.exception_handler(CheckError)
async def check_error_handler(request: Request, exc: CheckError):
    """Render resolution and provider failures with the standard error body."""
    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(exc.message, kind=exc.kind)
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    """Handle unexpected errors."""
    logger.exception(f"Unexpected error: {exc}")
    return JSONResponse(
        status_code=500,
        content=create_error_response("An unexpected error occurred", kind="internal_error")
    )


def _identity_or_400(github_url: str) -> RepositoryIdentity:
    identity = resolve(github_url)
    if not isinstance(identity, RepositoryIdentity):
        logger.warning(f"Invalid URL: {github_url} - {identity.message}")
        raise CheckError(identity.message, kind=identity.kind)
    return identity


def _raise_for_provider(result: Union[RepositoryMetadata, ManifestOutcome, NotFound]) -> None:
    """Raises for NotFound and ProviderError; other results are answered with 200."""
    if isinstance(result, NotFound):
        raise CheckError(
            "Repository not found. Please check the URL and try again.", kind=result.kind, status_code=404
        )
    if isinstance(result, ProviderError):
        if result.rate_limited:
            raise CheckError(result.message, kind="rate_limited", status_code=429)
        raise CheckError(result.message, kind=result.kind, status_code=502)


def _leaderboard_entry(entry: BatchEntry) -> LeaderboardEntry:
    if isinstance(entry.metadata, RepositoryMetadata):
        return LeaderboardEntry(
            reference=entry.reference,
            repository=entry.metadata,
            funding=FundingStatus.from_outcome(entry.funding) if entry.funding is not None else None,
        )
    return LeaderboardEntry(reference=entry.reference, error=ErrorDetail.from_error(entry.metadata))


_ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid URL or account"},
    404: {"model": ErrorResponse, "description": "Repository not found"},
    429: {"model": ErrorResponse, "description": "Rate limit exceeded"},
    502: {"model": ErrorResponse, "description": "GitHub API error"},
}


@app.post("/check", response_model=CheckResponse, responses=_ERROR_RESPONSES)
async def check(request: CheckRequest, provider: RepositoryProvider = Depends(get_provider)) -> CheckResponse:
    """
    Check one repository for a FUNDING.json manifest.

    A missing manifest is a normal result (``funding.status == "missing"``),
    not an error. GitHub failures while reading the repository or its
    FUNDING.json are answered with 429 or 502. The commit count and README
    are best effort and left null when GitHub cannot provide them.
    """
    start_time = time.time()
    logger.info(f"Received check request for: {request.github_url}")

    identity = _identity_or_400(request.github_url)

    metadata = await fetch_metadata(identity, provider)
    _raise_for_provider(metadata)

    outcome, details = await asyncio.gather(
        validate(identity, provider, ref=request.ref),
        fetch_details(identity, provider),
    )
    _raise_for_provider(outcome)

    duration = time.time() - start_time
    logger.info(f"Check completed for {identity.full_name} in {duration:.2f}s: {outcome.kind}")

    return CheckResponse(
        repository=metadata,
        funding=FundingStatus.from_outcome(outcome),
        commit_count=details.commit_count,
        readme=details.readme,
    )


@app.post("/proposal", response_model=ProposalResponse, responses=_ERROR_RESPONSES)
async def proposal(request: ProposalRequest, provider: RepositoryProvider = Depends(get_provider)) -> ProposalResponse:
    """
    Build a link that opens GitHub's file editor with FUNDING.json pre-filled.

    The file is proposed on ``ref`` when given, otherwise on the repository's
    default branch.
    """
    identity = _identity_or_400(request.github_url)

    if not is_valid_account(request.account):
        logger.warning(f"Invalid NEAR address: {request.account!r}")
        raise CheckError("Invalid NEAR address format", kind="invalid_account")

    branch = request.ref
    if not branch:
        metadata = await fetch_metadata(identity, provider)
        _raise_for_provider(metadata)
        branch = metadata.default_branch

    return ProposalResponse(
        proposal_url=build_proposal_url(identity, branch, request.account),
        branch=branch,
    )


@app.get("/accounts/{account}/validity", response_model=AccountValidityResponse)
async def account_validity(account: str) -> AccountValidityResponse:
    """Check whether a NEAR account ID is well formed."""
    return AccountValidityResponse(account=account, valid=is_valid_account(account))


@app.get("/leaderboard", response_model=LeaderboardResponse)
async def leaderboard(
    sort_by: Literal["stars", "forks"] = "stars",
    order: Literal["desc", "asc"] = "desc",
    q: str = Query("", max_length=200, description="Filter on name, owner or NEAR account"),
    provider: RepositoryProvider = Depends(get_provider),
    references: List[str] = Depends(get_repository_list),
) -> LeaderboardResponse:
    """
    Check every repository of the static list.

    Repositories that fail to resolve are listed with their error and sorted
    after the others.
    """
    start_time = time.time()

    entries = await resolve_all(references, provider)
    entries = sort_entries(filter_entries(entries, q), sort_by=sort_by, descending=order == "desc")

    duration = time.time() - start_time
    logger.info(f"Leaderboard built for {len(references)} repositories in {duration:.2f}s")

    return LeaderboardResponse(
        entries=[_leaderboard_entry(entry) for entry in entries],
        total=len(entries),
    )


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
