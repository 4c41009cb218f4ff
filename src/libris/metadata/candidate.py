# ABOUTME: DiscoveryCandidate is one hit returned by an external discovery strategy.
# ABOUTME: Transient: only the winner's cover URL and author reach a BookRecord.

from dataclasses import dataclass, field

_VALID_SCORES = (0, 50, 100)


@dataclass
class DiscoveryCandidate:
    """A candidate cover/metadata match from an external source.

    Carries the relevance score computed against the query so strategies can
    apply their acceptance thresholds.
    """

    title: str
    authors: list[str] = field(default_factory=list)
    cover_url: str | None = None
    score: int = 0
    source: str = ""

    def __post_init__(self) -> None:
        if self.score not in _VALID_SCORES:
            msg = f"score must be one of {_VALID_SCORES}, got {self.score}"
            raise ValueError(msg)

    @property
    def author(self) -> str:
        """Joined author string for display."""
        return ", ".join(self.authors) if self.authors else ""

    @property
    def primary_author(self) -> str | None:
        return self.authors[0] if self.authors else None
