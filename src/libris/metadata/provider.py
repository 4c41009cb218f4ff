# ABOUTME: DiscoveryStrategy protocol defining the contract for external cover/metadata sources.
# ABOUTME: Any external lookup (storefront scrape, Google Books, Open Library) implements this.

from typing import Protocol, runtime_checkable

from libris.metadata.candidate import DiscoveryCandidate

# Author strings that carry no information and must not narrow a search.
_PLACEHOLDER_AUTHORS = frozenset({"unknown", "bilinmiyor", "anonymous", "anonim", "various"})
_MIN_AUTHOR_LENGTH = 3


@runtime_checkable
class DiscoveryStrategy(Protocol):
    """Protocol for one independent external lookup method.

    ``find`` returns the candidate the strategy accepts, or None. It should
    not raise; the resolver still guards against strategies that do.
    """

    @property
    def name(self) -> str: ...

    async def find(self, title: str, author: str | None = None) -> DiscoveryCandidate | None: ...


def usable_author(author: str | None) -> str | None:
    """Return the author if it is worth putting in a query, else None."""
    if not author:
        return None
    author = author.strip()
    if len(author) < _MIN_AUTHOR_LENGTH or author.casefold() in _PLACEHOLDER_AUTHORS:
        return None
    return author
