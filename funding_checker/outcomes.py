"""Tagged outcomes returned by repository resolution and manifest validation.

Every resolution or validation path returns one of these values instead of
raising, so callers branch on the concrete type. ``Missing`` is an expected
terminal state, not an error.
"""

from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, Union

FUNDING_FILE = "FUNDING.json"


# Resolution errors

@dataclass(frozen=True)
class InvalidUrl:
    """Reference is not an absolute GitHub repository URL."""
    kind: ClassVar[str] = "invalid_url"

    reference: str
    reason: str = "Invalid GitHub repository URL format. Expected: https://github.com/{owner}/{repo}"

    @property
    def message(self) -> str:
        return self.reason


@dataclass(frozen=True)
class UnsupportedHost:
    """Reference points at a host other than github.com."""
    kind: ClassVar[str] = "unsupported_host"

    reference: str
    host: str

    @property
    def message(self) -> str:
        return f"Invalid host: {self.host}"


@dataclass(frozen=True)
class NotFound:
    """Provider reports no such repository."""
    kind: ClassVar[str] = "not_found"

    owner: str
    name: str

    @property
    def message(self) -> str:
        return f"Repository {self.owner}/{self.name} not found"


@dataclass(frozen=True)
class ProviderError:
    """Any other provider failure; status is 0 when no response arrived."""
    kind: ClassVar[str] = "provider_error"

    status: int
    message: str
    rate_limited: bool = False


# Manifest outcomes

@dataclass(frozen=True)
class Valid:
    kind: ClassVar[str] = "valid"

    manifest: Dict[str, Any] = field(hash=False)
    account: str

    @property
    def message(self) -> str:
        return f"{FUNDING_FILE} is valid"


@dataclass(frozen=True)
class Missing:
    kind: ClassVar[str] = "missing"

    @property
    def message(self) -> str:
        return f"{FUNDING_FILE} not found"


@dataclass(frozen=True)
class MalformedEncoding:
    kind: ClassVar[str] = "malformed_encoding"

    reason: str = "Invalid JSON format"

    @property
    def message(self) -> str:
        return f"{self.reason} in {FUNDING_FILE}"


@dataclass(frozen=True)
class MissingField:
    kind: ClassVar[str] = "missing_field"

    field: str
    parent: str = ""

    @property
    def message(self) -> str:
        if self.parent:
            return f'{FUNDING_FILE} is missing the "{self.field}" field under "{self.parent}"'
        return f'{FUNDING_FILE} is missing the "{self.field}" field'


@dataclass(frozen=True)
class InvalidAccount:
    kind: ClassVar[str] = "invalid_account"

    value: Any = field(hash=False)

    @property
    def message(self) -> str:
        return f"Invalid NEAR address format in {FUNDING_FILE}"


ResolutionError = Union[InvalidUrl, UnsupportedHost, NotFound, ProviderError]

ManifestOutcome = Union[Valid, Missing, MalformedEncoding, MissingField, InvalidAccount, ProviderError]
