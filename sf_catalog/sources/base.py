"""Interface shared by the documentation and describe collaborators."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from sf_catalog.domain.models import ObjectRecord


class FetchError(Exception):
    """A remote fetch for one object failed (network, timeout, non-2xx)."""
    pass


class ParseFailure(Exception):
    """A fetched payload did not have the expected shape."""
    pass


class AuthenticationError(Exception):
    """Login to the org failed; the run cannot continue."""
    pass


@dataclass
class Candidate:
    """An object name discovered by a source, plus what the source needs to fetch it."""

    name: str
    cloud: str = ''
    ref: dict[str, Any] = field(default_factory=dict)


class ObjectSource(ABC):
    """Discovers candidate objects and fetches their definitions."""

    @property
    def version(self) -> str | None:
        """Catalog version this source describes, when it knows one."""
        return None

    @abstractmethod
    def list_candidates(self) -> list[Candidate]:
        """All candidates, in processing order."""

    @abstractmethod
    def fetch_object(self, candidate: Candidate) -> ObjectRecord | None:
        """Fetch and shape one object; None when the source has nothing for it.

        Raises:
            FetchError: The remote call failed.
            ParseFailure: The payload could not be interpreted.
            AuthenticationError: Credentials were rejected.
        """
