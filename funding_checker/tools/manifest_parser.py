"""Decoding and schema checks for FUNDING.json manifests."""

from typing import Any, Dict, Tuple, Union
import base64
import binascii
import json
import logging

from funding_checker.outcomes import InvalidAccount, MalformedEncoding, MissingField, Valid
from funding_checker.validators import is_valid_account

logger = logging.getLogger(__name__)

PLATFORM_KEY = "potlock"
NETWORK_KEY = "near"
OWNER_KEY = "ownedBy"

# Walked in order; the first absent key is reported.
MANIFEST_PATH: Tuple[str, ...] = (PLATFORM_KEY, NETWORK_KEY, OWNER_KEY)


class ContentDecodeError(ValueError):
    """Raised when a contents payload cannot be turned into text."""


def decode_content(payload: Any) -> str:
    """
    Decodes a GitHub contents payload to text.

    Args:
        payload: ``GET /repos/{owner}/{repo}/contents/{path}`` or ``/readme`` response body

    Returns:
        The file content as UTF-8 text

    Raises:
        ContentDecodeError: If the payload is not a file, uses an unknown
            encoding, or its bytes are not valid base64/UTF-8
    """
    if not isinstance(payload, dict) or payload.get("type", "file") != "file":
        raise ContentDecodeError("Expected a file")

    content = payload.get("content")
    encoding = payload.get("encoding", "base64")
    if not isinstance(content, str):
        raise ContentDecodeError("File content unavailable")

    if encoding == "base64":
        try:
            # GitHub wraps base64 content at 60 characters.
            raw = base64.b64decode("".join(content.split()), validate=True)
        except (binascii.Error, ValueError) as e:
            raise ContentDecodeError("Invalid base64 content") from e
    elif encoding in ("utf-8", "utf8"):
        return content.lstrip("\ufeff")
    else:
        raise ContentDecodeError(f"Unsupported content encoding: {encoding}")

    try:
        # utf-8-sig drops a leading byte order mark that json.loads rejects.
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise ContentDecodeError("File is not valid UTF-8") from e


def check_manifest(text: str) -> Union[Valid, MalformedEncoding, MissingField, InvalidAccount]:
    """
    Parses manifest text and checks the potlock -> near -> ownedBy chain.

    Unknown sibling keys are ignored. A value that is not an object where an
    object is expected counts as the next key being missing.

    Args:
        text: Decoded FUNDING.json content

    Returns:
        Valid, MalformedEncoding, MissingField or InvalidAccount
    """
    try:
        manifest = json.loads(text)
    except ValueError:
        return MalformedEncoding()

    node: Any = manifest
    parent = ""
    for key in MANIFEST_PATH:
        if not isinstance(node, dict) or key not in node or node[key] is None:
            logger.debug(f"Manifest is missing '{key}'")
            return MissingField(field=key, parent=parent)
        node = node[key]
        parent = key

    if not is_valid_account(node):
        return InvalidAccount(value=node)

    return Valid(manifest=manifest, account=node)


def build_manifest(account: str) -> Dict[str, Any]:
    """Returns the minimal manifest declaring ``account`` as the funding owner."""
    return {PLATFORM_KEY: {NETWORK_KEY: {OWNER_KEY: account}}}
