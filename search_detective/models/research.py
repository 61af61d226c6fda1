"""Persisted keyword research runs."""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import JSON, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from search_detective.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class KeywordResearch(Base):
    """One completed research run: industry, cities and classified results."""

    __tablename__ = "keyword_researches"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    industry: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    cities: Mapped[list] = mapped_column(JSON, nullable=False)
    # Wire-shape dicts: keyword, searchVolume, cpc, competition, opportunity
    results: Mapped[list] = mapped_column(JSON, nullable=False)
    source: Mapped[str] = mapped_column(String(100), nullable=False, default="keywords_everywhere")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, index=True)

    def __repr__(self) -> str:
        return (
            f"<KeywordResearch id={self.id} industry={self.industry!r} "
            f"results={len(self.results or [])}>"
        )
