"""URL validation for GitHub repository URLs and NEAR account identifiers."""

from typing import Union
from urllib.parse import urlsplit
import re

from funding_checker.models import RepositoryIdentity
from funding_checker.outcomes import InvalidUrl, UnsupportedHost

GITHUB_HOSTS = {"github.com", "www.github.com"}
SUPPORTED_SCHEMES = {"http", "https"}

ACCOUNT_MIN_LENGTH = 2
ACCOUNT_MAX_LENGTH = 64

# Dot-separated segments of [a-z0-9]; a hyphen must sit between two alphanumerics.
ACCOUNT_ID_REGEX = re.compile(r"[a-z0-9]+(?:-[a-z0-9]+)*(?:\.[a-z0-9]+(?:-[a-z0-9]+)*)*")


def resolve(reference: str) -> Union[RepositoryIdentity, InvalidUrl, UnsupportedHost]:
    """
    Parses a GitHub repository URL into its owner/name identity.

    Pure parsing: no network access happens here. Only the first two path
    segments are used; anything after them (trailing slash, ``/tree/main``,
    query string) is ignored. Owner and name are passed through unchanged.

    Args:
        reference: GitHub repository URL

    Returns:
        RepositoryIdentity, or InvalidUrl / UnsupportedHost describing the rejection
    """
    if not isinstance(reference, str) or not reference.strip():
        return InvalidUrl(reference=reference if isinstance(reference, str) else "", reason="URL cannot be empty")

    url = reference.strip()
    try:
        parts = urlsplit(url)
        host = parts.hostname
    except ValueError:
        return InvalidUrl(reference=reference)

    if parts.scheme.lower() not in SUPPORTED_SCHEMES or not parts.netloc or not host:
        return InvalidUrl(reference=reference)

    # The whole authority must match, so a port or userinfo is never accepted.
    if parts.netloc.lower() not in GITHUB_HOSTS:
        return UnsupportedHost(reference=reference, host=parts.netloc)

    segments = parts.path.split("/")[1:3]
    if len(segments) < 2 or not all(segments):
        return InvalidUrl(reference=reference)

    owner, name = segments
    return RepositoryIdentity(owner=owner, name=name)


def is_valid_account(account_id: str) -> bool:
    """
    Validates an account ID according to the NEAR account naming rules.

    Args:
        account_id: Account ID to validate, e.g. ``alice.near``

    Returns:
        True if the length is within bounds and every segment is well formed
    """
    if not isinstance(account_id, str):
        return False
    if not ACCOUNT_MIN_LENGTH <= len(account_id) <= ACCOUNT_MAX_LENGTH:
        return False
    return ACCOUNT_ID_REGEX.fullmatch(account_id) is not None
