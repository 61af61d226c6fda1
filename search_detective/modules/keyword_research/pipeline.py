"""Research pipeline: generate -> fetch -> normalize -> classify -> persist."""

import asyncio
import enum
import logging
import time
from typing import TYPE_CHECKING, Callable, Optional, Protocol, Sequence

from search_detective.exceptions import MissingCredentialError
from search_detective.modules.keyword_research.classifier import classify_opportunity
from search_detective.modules.keyword_research.normalizer import normalize_metric
from search_detective.modules.keyword_research.phrases import generate_phrases
from search_detective.modules.keyword_research.records import KeywordResult, ResearchRecord

if TYPE_CHECKING:
    from search_detective.storage import ResearchStorage

logger = logging.getLogger(__name__)

DEFAULT_SOURCE = "keywords_everywhere"


class RunState(str, enum.Enum):
    """Lifecycle of a single research run."""

    IDLE = "idle"
    GENERATING = "generating"
    FETCHING = "fetching"
    CLASSIFYING = "classifying"
    PERSISTED = "persisted"
    FAILED = "failed"


class IndustryLike(Protocol):
    name: str
    keywords: Sequence[str]


class MetricsFetcher(Protocol):
    async def fetch(self, phrases: Sequence[str], credential: str) -> dict[str, dict]: ...


StateCallback = Callable[[RunState], None]


def _distinct(values: Sequence[str]) -> list[str]:
    seen: set[str] = set()
    ordered: list[str] = []
    for value in values:
        if value not in seen:
            seen.add(value)
            ordered.append(value)
    return ordered


class ResearchPipeline:
    """Turn an industry and a city list into a stored, classified research record.

    A run either completes and persists exactly one record, or fails with
    the originating error and persists nothing.  Nothing is retried; a
    failed run is restarted by calling ``run`` again.

    Usage::

        pipeline = ResearchPipeline(
            fetcher=KeywordsEverywhereClient(),
            storage=SQLResearchStorage(),
        )
        record = await pipeline.run(industry, ["Boise", "Reno"], api_key)
    """

    def __init__(
        self,
        fetcher: MetricsFetcher,
        storage: "ResearchStorage",
        source: str = DEFAULT_SOURCE,
    ):
        self._fetcher = fetcher
        self._storage = storage
        self._source = source

    async def run(
        self,
        industry: IndustryLike,
        cities: Sequence[str],
        credential: str,
        title: Optional[str] = None,
        on_state: Optional[StateCallback] = None,
    ) -> ResearchRecord:
        """Execute one research run.

        Raises:
            InvalidInputError: empty keyword list or empty city list.
            MissingCredentialError: empty credential.
            ProviderError / SuspiciousDataError: propagated from the fetcher.
        """
        def transition(state: RunState) -> None:
            logger.debug("Research run for %r -> %s", industry.name, state.value)
            if on_state is not None:
                on_state(state)

        transition(RunState.IDLE)
        started = time.monotonic()
        try:
            transition(RunState.GENERATING)
            city_list = _distinct(cities)
            phrases = generate_phrases(list(industry.keywords or []), city_list)
            if not credential or not credential.strip():
                raise MissingCredentialError("Keywords Everywhere API key not provided")
            logger.info(
                "Researching %s: %d keywords x %d cities -> %d phrases",
                industry.name, len(industry.keywords), len(city_list), len(phrases),
            )

            transition(RunState.FETCHING)
            raw_metrics = await self._fetcher.fetch(phrases, credential)

            transition(RunState.CLASSIFYING)
            results = self._classify(phrases, raw_metrics)

            record = self._storage.create(
                industry=industry.name,
                cities=city_list,
                results=results,
                source=self._source,
                title=title,
            )
        except asyncio.CancelledError:
            logger.warning("Research run for %r cancelled", industry.name)
            transition(RunState.FAILED)
            raise
        except Exception as exc:
            logger.warning("Research run for %r failed: %s", industry.name, exc)
            transition(RunState.FAILED)
            raise

        transition(RunState.PERSISTED)
        logger.info(
            "Research id=%d complete: %d phrases, %d with volume (%.1fs)",
            record.id, len(record.results), len(record.keywords_with_volume),
            time.monotonic() - started,
        )
        return record

    @staticmethod
    def _classify(phrases: Sequence[str], raw_metrics: dict[str, dict]) -> list[KeywordResult]:
        """One KeywordResult per generated phrase, in generation order."""
        results: list[KeywordResult] = []
        for phrase in phrases:
            metric = normalize_metric(raw_metrics.get(phrase))
            results.append(KeywordResult(
                keyword=phrase,
                search_volume=metric.volume,
                cpc=metric.cpc,
                competition=metric.competition,
                opportunity=classify_opportunity(metric.volume, metric.competition),
            ))
        return results

