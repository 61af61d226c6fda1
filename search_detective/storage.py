"""Research record storage: an explicit interface with SQL and in-memory backends."""

import abc
import logging
import threading
from dataclasses import replace
from datetime import datetime, timezone
from typing import Optional, Sequence

from sqlalchemy import select

from search_detective.database import get_session
from search_detective.models.research import KeywordResearch
from search_detective.modules.keyword_research.records import KeywordResult, ResearchRecord

logger = logging.getLogger(__name__)


class ResearchStorage(abc.ABC):
    """Create, list, get, rename and delete research records by id.

    Every ``create`` is atomic: a record is either fully stored or not at
    all, and concurrent runs never see each other's half-written rows.
    """

    @abc.abstractmethod
    def create(
        self,
        industry: str,
        cities: Sequence[str],
        results: Sequence[KeywordResult],
        source: str,
        title: Optional[str] = None,
    ) -> ResearchRecord:
        """Persist a new record and return it with its id and timestamp."""

    @abc.abstractmethod
    def list_all(self) -> list[ResearchRecord]:
        """All records, newest first."""

    @abc.abstractmethod
    def get(self, research_id: int) -> Optional[ResearchRecord]:
        """One record, or None."""

    @abc.abstractmethod
    def update_title(self, research_id: int, title: Optional[str]) -> Optional[ResearchRecord]:
        """Rename a record; None when it does not exist."""

    @abc.abstractmethod
    def delete(self, research_id: int) -> bool:
        """Remove a record; False when it does not exist."""


# ----------------------------------------------------------------------
# SQLAlchemy backend
# ----------------------------------------------------------------------

def _row_to_record(row: KeywordResearch) -> ResearchRecord:
    created_at = row.created_at
    # SQLite hands DateTime(timezone=True) back naive; values are stored as UTC
    if created_at is not None and created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    return ResearchRecord(
        id=row.id,
        title=row.title,
        industry=row.industry,
        cities=tuple(row.cities or []),
        results=tuple(KeywordResult.from_dict(item) for item in (row.results or [])),
        source=row.source,
        created_at=created_at,
    )


class SQLResearchStorage(ResearchStorage):
    """Stores records in the ``keyword_researches`` table.

    Each call opens its own transactional session via ``get_session()``.
    """

    def create(self, industry, cities, results, source, title=None) -> ResearchRecord:
        row = KeywordResearch(
            title=title,
            industry=industry,
            cities=list(cities),
            results=[r.to_dict() for r in results],
            source=source,
            created_at=datetime.now(timezone.utc),
        )
        with get_session() as session:
            session.add(row)
            session.flush()
            record = _row_to_record(row)
        logger.info("Stored research id=%d (%d results)", record.id, len(record.results))
        return record

    def list_all(self) -> list[ResearchRecord]:
        with get_session() as session:
            rows = session.scalars(
                select(KeywordResearch).order_by(
                    KeywordResearch.created_at.desc(), KeywordResearch.id.desc()
                )
            ).all()
            return [_row_to_record(row) for row in rows]

    def get(self, research_id: int) -> Optional[ResearchRecord]:
        with get_session() as session:
            row = session.get(KeywordResearch, research_id)
            return _row_to_record(row) if row is not None else None

    def update_title(self, research_id: int, title: Optional[str]) -> Optional[ResearchRecord]:
        with get_session() as session:
            row = session.get(KeywordResearch, research_id)
            if row is None:
                return None
            row.title = title
            session.flush()
            return _row_to_record(row)

    def delete(self, research_id: int) -> bool:
        with get_session() as session:
            row = session.get(KeywordResearch, research_id)
            if row is None:
                return False
            session.delete(row)
        logger.info("Deleted research id=%d", research_id)
        return True


# ----------------------------------------------------------------------
# In-memory backend
# ----------------------------------------------------------------------

class MemoryResearchStorage(ResearchStorage):
    """Process-local storage for tests and throwaway sessions."""

    def __init__(self) -> None:
        self._records: dict[int, ResearchRecord] = {}
        self._next_id = 1
        self._lock = threading.Lock()

    def create(self, industry, cities, results, source, title=None) -> ResearchRecord:
        with self._lock:
            record = ResearchRecord(
                id=self._next_id,
                title=title,
                industry=industry,
                cities=tuple(cities),
                results=tuple(results),
                source=source,
                created_at=datetime.now(timezone.utc),
            )
            self._records[record.id] = record
            self._next_id += 1
        return record

    def list_all(self) -> list[ResearchRecord]:
        with self._lock:
            records = list(self._records.values())
        return sorted(records, key=lambda r: (r.created_at, r.id), reverse=True)

    def get(self, research_id: int) -> Optional[ResearchRecord]:
        with self._lock:
            return self._records.get(research_id)

    def update_title(self, research_id: int, title: Optional[str]) -> Optional[ResearchRecord]:
        with self._lock:
            record = self._records.get(research_id)
            if record is None:
                return None
            record = replace(record, title=title)
            self._records[research_id] = record
            return record

    def delete(self, research_id: int) -> bool:
        with self._lock:
            return self._records.pop(research_id, None) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
