"""Repository resolution and funding manifest validation.

Both operations take the repository provider as an argument and always
return a tagged outcome. Provider exceptions are converted here and never
escape to the caller.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Union

from funding_checker.errors import GitHubError, RateLimitError, RepoNotFoundError
from funding_checker.models import MetadataOrError, RepositoryIdentity, RepositoryMetadata
from funding_checker.outcomes import (
    FUNDING_FILE,
    MalformedEncoding,
    ManifestOutcome,
    Missing,
    NotFound,
    ProviderError,
    Valid,
)
from funding_checker.tools.github_fetcher import RepositoryProvider
from funding_checker.tools.manifest_parser import ContentDecodeError, check_manifest, decode_content
from funding_checker.validators import resolve

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BatchEntry:
    """Outcome for one reference of a batch, aligned with its input index."""
    reference: str
    metadata: MetadataOrError
    funding: Optional[ManifestOutcome] = None


def _provider_error(exc: GitHubError) -> ProviderError:
    return ProviderError(
        status=exc.status_code,
        message=exc.message,
        rate_limited=isinstance(exc, RateLimitError),
    )


async def fetch_metadata(
    identity: RepositoryIdentity, provider: RepositoryProvider
) -> Union[RepositoryMetadata, NotFound, ProviderError]:
    """
    Fetches a fresh metadata snapshot for a repository.

    Args:
        identity: Owner/name to look up
        provider: Repository metadata provider

    Returns:
        RepositoryMetadata, NotFound, or ProviderError carrying status and message
    """
    try:
        data = await provider.get_repository(identity.owner, identity.name)
    except RepoNotFoundError:
        logger.info(f"Repository {identity.full_name} not found")
        return NotFound(owner=identity.owner, name=identity.name)
    except GitHubError as e:
        logger.warning(f"Failed to fetch metadata for {identity.full_name}: {e.message}")
        return _provider_error(e)

    try:
        return RepositoryMetadata.from_github(data)
    except (KeyError, TypeError, ValueError) as e:
        logger.warning(f"Unexpected metadata payload for {identity.full_name}: {e}")
        return ProviderError(status=200, message=f"Unexpected repository payload for {identity.full_name}")


@dataclass(frozen=True)
class RepositoryDetails:
    """Extras shown next to the metadata; None where they could not be read."""
    commit_count: Optional[int] = None
    readme: Optional[str] = None


async def _commit_count(identity: RepositoryIdentity, provider: RepositoryProvider) -> Optional[int]:
    try:
        return await provider.get_commit_count(identity.owner, identity.name)
    except GitHubError as e:
        logger.warning(f"Failed to count commits for {identity.full_name}: {e.message}")
        return None


async def _readme(identity: RepositoryIdentity, provider: RepositoryProvider) -> Optional[str]:
    try:
        payload = await provider.get_readme(identity.owner, identity.name)
    except GitHubError as e:
        logger.warning(f"Failed to fetch README for {identity.full_name}: {e.message}")
        return None
    if payload is None:
        return None

    try:
        return decode_content(payload)
    except ContentDecodeError as e:
        logger.warning(f"Could not decode README for {identity.full_name}: {e}")
        return None


async def fetch_details(identity: RepositoryIdentity, provider: RepositoryProvider) -> RepositoryDetails:
    """
    Fetches the commit count and raw README text concurrently.

    Either value is None when GitHub cannot provide it; failures here never
    affect the metadata or manifest outcome of the same check.
    """
    commit_count, readme = await asyncio.gather(
        _commit_count(identity, provider),
        _readme(identity, provider),
    )
    return RepositoryDetails(commit_count=commit_count, readme=readme)


async def validate(
    identity: RepositoryIdentity, provider: RepositoryProvider, ref: Optional[str] = None
) -> ManifestOutcome:
    """
    Fetches FUNDING.json from the repository root and validates it.

    Exactly one provider read is made. No branch is sent unless ``ref`` is
    given, in which case GitHub resolves the file on that branch.

    Args:
        identity: Repository to check
        provider: Repository metadata provider
        ref: Optional branch, tag or commit

    Returns:
        Valid, Missing, MalformedEncoding, MissingField, InvalidAccount or ProviderError
    """
    try:
        payload = await provider.get_file_content(identity.owner, identity.name, FUNDING_FILE, ref=ref)
    except GitHubError as e:
        logger.warning(f"Failed to fetch {FUNDING_FILE} for {identity.full_name}: {e.message}")
        return _provider_error(e)

    if payload is None:
        logger.info(f"No {FUNDING_FILE} in {identity.full_name}")
        return Missing()

    try:
        text = decode_content(payload)
    except ContentDecodeError as e:
        logger.warning(f"Could not decode {FUNDING_FILE} for {identity.full_name}: {e}")
        return MalformedEncoding(reason=str(e))

    outcome = check_manifest(text)
    if isinstance(outcome, Valid):
        logger.info(f"{FUNDING_FILE} for {identity.full_name} is valid, owned by {outcome.account}")
    else:
        logger.info(f"{FUNDING_FILE} for {identity.full_name}: {outcome.message}")
    return outcome


async def check_reference(
    reference: str, provider: RepositoryProvider, ref: Optional[str] = None
) -> BatchEntry:
    """
    Resolves one reference, fetches its metadata and validates its manifest.

    The manifest is only fetched when the repository itself resolved.
    """
    identity = resolve(reference)
    if not isinstance(identity, RepositoryIdentity):
        logger.info(f"Rejected reference {reference!r}: {identity.message}")
        return BatchEntry(reference=reference, metadata=identity)

    metadata = await fetch_metadata(identity, provider)
    if not isinstance(metadata, RepositoryMetadata):
        return BatchEntry(reference=reference, metadata=metadata)

    funding = await validate(identity, provider, ref=ref)
    return BatchEntry(reference=reference, metadata=metadata, funding=funding)


async def resolve_all(references: Sequence[str], provider: RepositoryProvider) -> List[BatchEntry]:
    """
    Checks every reference concurrently.

    Each reference is handled independently; a failure for one produces an
    error entry for that reference only. Results are aligned with the input
    by index.

    Args:
        references: Repository URLs
        provider: Repository metadata provider

    Returns:
        One BatchEntry per reference, in input order
    """
    logger.info(f"Resolving {len(references)} repositories")
    results = await asyncio.gather(
        *(check_reference(reference, provider) for reference in references),
        return_exceptions=True,
    )

    entries = []
    for reference, result in zip(references, results):
        if isinstance(result, BatchEntry):
            entries.append(result)
        elif isinstance(result, Exception):
            logger.error(f"Unexpected error resolving {reference}", exc_info=result)
            entries.append(BatchEntry(reference=reference, metadata=ProviderError(status=0, message=str(result))))
        else:
            raise result

    failed = sum(1 for entry in entries if not isinstance(entry.metadata, RepositoryMetadata))
    if failed:
        logger.warning(f"{failed} of {len(entries)} repositories could not be resolved")
    return entries
