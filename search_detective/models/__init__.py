"""SQLAlchemy ORM models -- import every model so Base.metadata is populated."""

from search_detective.models.industry import (
    AppSettings,
    Industry,
)
from search_detective.models.research import KeywordResearch

__all__ = [
    "AppSettings",
    "Industry",
    "KeywordResearch",
]
