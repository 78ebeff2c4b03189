"""Domain entities for starred GitHub repositories."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

# Bucket key for repositories without a detected primary language
OTHERS = "Others"


@dataclass(frozen=True)
class RemoteRepository:
    """Immutable starred repository as returned by the GitHub REST API."""

    id: Optional[int]
    full_name: str
    html_url: str
    language: Optional[str] = None

    @classmethod
    def from_api(cls, node: Dict[str, Any]) -> "RemoteRepository":
        """
        Build a repository from one element of the starred listing.

        Args:
            node: Decoded JSON object for a single repository

        Returns:
            RemoteRepository instance

        Raises:
            KeyError: If ``full_name`` or ``html_url`` is missing
        """
        # GitHub sends null for repositories without a dominant language
        language = node.get("language") or None
        return cls(
            id=node.get("id"),
            full_name=node["full_name"],
            html_url=node["html_url"],
            language=language,
        )


@dataclass(frozen=True)
class MarkdownRepo:
    """Display-ready entry inside a language bucket."""

    full_name: str
    html_url: str
    language: Optional[str] = None


@dataclass(frozen=True)
class ReportRow:
    """One row of the markdown table."""

    language: str
    stars: int
    items: str


@dataclass
class StarredCollection:
    """Merged result of all page fetches."""

    repositories: List[RemoteRepository] = field(default_factory=list)
    pages_expected: int = 0
    pages_received: int = 0
    failed_pages: List[int] = field(default_factory=list)

    @property
    def is_partial(self) -> bool:
        return self.pages_received < self.pages_expected

    def __len__(self) -> int:
        return len(self.repositories)


@dataclass(frozen=True)
class StarsReport:
    """Ordered report rows plus a flag for truncated fetches."""

    rows: List[ReportRow]
    partial: bool = False
