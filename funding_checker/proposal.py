"""Builds GitHub file-creation links that propose a FUNDING.json."""

import json
from urllib.parse import quote

from funding_checker.models import RepositoryIdentity
from funding_checker.outcomes import FUNDING_FILE
from funding_checker.tools.manifest_parser import build_manifest


def build_proposal_url(identity: RepositoryIdentity, branch: str, account: str) -> str:
    """
    Returns a link to GitHub's in-browser "create new file" page, with
    FUNDING.json pre-filled for ``account``.

    Nothing is validated here; check the account with ``is_valid_account``
    first.

    Args:
        identity: Target repository
        branch: Branch the file will be created on, usually the default branch
        account: NEAR account declared as owner

    Returns:
        The proposal URL
    """
    content = json.dumps(build_manifest(account), indent=2)
    return (
        f"{identity.html_url}/new/{quote(branch, safe='/')}"
        f"?filename={FUNDING_FILE}&value={quote(content, safe='')}"
    )
