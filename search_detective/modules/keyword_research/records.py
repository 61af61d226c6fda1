"""Value objects produced by the keyword research pipeline."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from search_detective.utils.helpers import round_half_up

# Share of the raw search-volume x CPC product assumed as monthly ad spend.
PPC_BUDGET_SHARE = 0.30


@dataclass(frozen=True)
class NormalizedMetric:
    """Canonical per-phrase metrics after repairing provider data."""
    volume: int = 0
    cpc: float = 0.0
    competition: int = 0


@dataclass(frozen=True)
class KeywordResult:
    """One classified search phrase."""
    keyword: str
    search_volume: int
    cpc: float
    competition: int
    opportunity: str

    @property
    def ppc_budget(self) -> int:
        """Estimated monthly PPC budget for this phrase in dollars."""
        return int(round_half_up(self.search_volume * self.cpc * PPC_BUDGET_SHARE))

    @property
    def word_count(self) -> int:
        return len(self.keyword.split())

    def to_dict(self) -> dict[str, Any]:
        return {
            "keyword": self.keyword,
            "searchVolume": self.search_volume,
            "cpc": self.cpc,
            "competition": self.competition,
            "opportunity": self.opportunity,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "KeywordResult":
        return cls(
            keyword=str(data.get("keyword", "")),
            search_volume=int(data.get("searchVolume", 0) or 0),
            cpc=float(data.get("cpc", 0) or 0),
            competition=int(data.get("competition", 0) or 0),
            opportunity=str(data.get("opportunity", "Low")),
        )


@dataclass(frozen=True)
class ResearchRecord:
    """A persisted research run, as handed back to callers."""
    id: int
    industry: str
    cities: tuple[str, ...]
    results: tuple[KeywordResult, ...]
    source: str
    created_at: datetime
    title: Optional[str] = None

    @property
    def keywords_with_volume(self) -> list[KeywordResult]:
        return [r for r in self.results if r.search_volume > 0]

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "industry": self.industry,
            "cities": list(self.cities),
            "results": [r.to_dict() for r in self.results],
            "source": self.source,
            "createdAt": self.created_at.isoformat(),
        }


@dataclass
class CredentialCheck:
    """Outcome of a diagnostic API-key test."""
    valid: bool
    message: str
    credits_remaining: Optional[float] = None
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"valid": self.valid, "message": self.message}
        if self.credits_remaining is not None:
            data["creditsRemaining"] = self.credits_remaining
        return data
