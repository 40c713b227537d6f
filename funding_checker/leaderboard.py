"""Static repository list and leaderboard ordering."""

from pathlib import Path
from typing import List, Optional, Sequence, Union
import json
import logging

from funding_checker.models import RepositoryMetadata
from funding_checker.outcomes import Valid
from funding_checker.resolver import BatchEntry

logger = logging.getLogger(__name__)

SORT_FIELDS = {"stars", "forks"}


def load_repository_list(path: Union[str, Path]) -> List[str]:
    """
    Loads the leaderboard repository URLs.

    Args:
        path: JSON file holding an array of repository URLs

    Returns:
        The URLs in file order

    Raises:
        ValueError: If the document is not an array of strings
    """
    path = Path(path)
    with path.open(encoding="utf-8") as f:
        data = json.load(f)

    if not isinstance(data, list) or not all(isinstance(item, str) for item in data):
        raise ValueError(f"{path} must contain a JSON array of repository URLs")

    logger.info(f"Loaded {len(data)} leaderboard repositories from {path}")
    return data


def funding_account(entry: BatchEntry) -> Optional[str]:
    """Account declared in the entry's manifest, if it is valid."""
    if isinstance(entry.funding, Valid):
        return entry.funding.account
    return None


def filter_entries(entries: Sequence[BatchEntry], term: str) -> List[BatchEntry]:
    """
    Keeps entries whose full name, owner or funding account contains ``term``.

    Matching is case-insensitive. Unresolved entries are matched on their
    reference URL.
    """
    term = term.strip().lower()
    if not term:
        return list(entries)

    matched = []
    for entry in entries:
        if isinstance(entry.metadata, RepositoryMetadata):
            haystack = [entry.metadata.full_name, entry.metadata.owner, funding_account(entry) or ""]
        else:
            haystack = [entry.reference]
        if any(term in value.lower() for value in haystack):
            matched.append(entry)
    return matched


def sort_entries(entries: Sequence[BatchEntry], sort_by: str = "stars", descending: bool = True) -> List[BatchEntry]:
    """
    Orders resolved entries by star or fork count.

    Unresolved entries keep their relative order after all resolved ones.
    """
    if sort_by not in SORT_FIELDS:
        raise ValueError(f"Cannot sort by {sort_by!r}")

    resolved = [e for e in entries if isinstance(e.metadata, RepositoryMetadata)]
    unresolved = [e for e in entries if not isinstance(e.metadata, RepositoryMetadata)]
    resolved.sort(key=lambda e: getattr(e.metadata, sort_by), reverse=descending)
    return resolved + unresolved
