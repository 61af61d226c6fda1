"""Industry catalog and application settings models."""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import JSON, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from search_detective.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Industry(Base):
    """A vertical with the base keywords that get combined with cities."""

    __tablename__ = "industries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True, index=True)
    label: Mapped[str] = mapped_column(String(255), nullable=False)
    keywords: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "label": self.label,
            "keywords": list(self.keywords or []),
        }

    def __repr__(self) -> str:
        return f"<Industry id={self.id} name={self.name!r} keywords={len(self.keywords or [])}>"


class AppSettings(Base):
    """Single-row table holding the stored provider API key."""

    __tablename__ = "settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    keywords_everywhere_api_key: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )

    def __repr__(self) -> str:
        configured = bool(self.keywords_everywhere_api_key)
        return f"<AppSettings id={self.id} api_key_configured={configured}>"
