"""Market analysis on stored research: business value summary, HVAC TAM, CSV export."""

import csv
import io
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Sequence

from search_detective.modules.keyword_research.classifier import HIGH
from search_detective.modules.keyword_research.records import (
    PPC_BUDGET_SHARE,
    KeywordResult,
    ResearchRecord,
)
from search_detective.utils.helpers import format_currency, round_half_up

logger = logging.getLogger(__name__)

# Phrases at or below this volume are not worth paid ads.
MIN_AD_VOLUME = 10
PRIMARY_KEYWORD_LIMIT = 10
LONG_TAIL_MIN_WORDS = 4

CSV_HEADERS = [
    "Keyword",
    "Search Volume",
    "CPC ($)",
    "Competition (%)",
    "Opportunity Level",
    "Est. Monthly PPC Budget ($)",
]

TAM_INDUSTRIES = ("hvac",)


@dataclass
class TamAssumptions:
    """Inputs for the HVAC total-addressable-market estimate."""
    lead_conversion_rate: float = 0.05
    average_job_value: float = 350.0
    capture_rate: float = 0.05


class MarketAnalyzer:
    """Derive business figures from a research record.

    Usage::

        analyzer = MarketAnalyzer(TamAssumptions(average_job_value=400))
        summary = analyzer.summarize_market(record)
        tam = analyzer.estimate_tam(record)
        csv_text = analyzer.export_results_csv(record.results)
    """

    def __init__(self, tam_assumptions: Optional[TamAssumptions] = None):
        self._tam = tam_assumptions or TamAssumptions()

    # ------------------------------------------------------------------
    # summarize_market
    # ------------------------------------------------------------------

    def summarize_market(self, record: ResearchRecord) -> dict[str, Any]:
        """Business value overview for one research run."""
        results = list(record.results)
        with_volume = [r for r in results if r.search_volume > 0]
        without_volume = [r for r in results if r.search_volume == 0]
        high_value = [r for r in results if r.opportunity == HIGH]
        content_targets = [r for r in results if r.search_volume <= MIN_AD_VOLUME and r.cpc == 0]
        ad_budget = monthly_ad_budget(results)

        avg_volume = 0
        avg_cpc = 0.0
        if with_volume:
            avg_volume = int(round_half_up(sum(r.search_volume for r in with_volume) / len(with_volume)))
            avg_cpc = round_half_up(sum(r.cpc for r in with_volume) / len(with_volume), 2)

        primary = sorted(with_volume, key=lambda r: r.search_volume, reverse=True)[:PRIMARY_KEYWORD_LIMIT]
        long_tail = [r for r in with_volume if r.word_count >= LONG_TAIL_MIN_WORDS]

        summary = {
            "industry": record.industry,
            "cities": list(record.cities),
            "total_keywords": len(results),
            "total_monthly_searches": sum(r.search_volume for r in results),
            "high_opportunity_count": len(high_value),
            "monthly_ad_budget": ad_budget,
            "content_target_count": len(content_targets),
            "keywords_with_volume": len(with_volume),
            "keywords_without_volume": len(without_volume),
            "avg_search_volume": avg_volume,
            "avg_cpc": avg_cpc,
            "primary_keywords": [r.to_dict() for r in primary],
            "long_tail_keywords": [r.to_dict() for r in long_tail],
        }
        summary["insights"] = self._insights(summary, primary, without_volume)
        return summary

    @staticmethod
    def _insights(
        summary: dict[str, Any],
        primary: Sequence[KeywordResult],
        without_volume: Sequence[KeywordResult],
    ) -> list[str]:
        insights: list[str] = []
        if summary["high_opportunity_count"] >= 5:
            insights.append(
                f"Strong market opportunity with {summary['high_opportunity_count']} high-value keywords"
            )
        if summary["monthly_ad_budget"] < 2000:
            insights.append(
                f"Affordable PPC entry point at ~{format_currency(summary['monthly_ad_budget'])}/month"
            )
        if summary["content_target_count"] >= 10:
            insights.append(
                f"{summary['content_target_count']} low-competition keywords perfect for SEO content strategy"
            )
        if primary:
            top = ", ".join(r.keyword for r in primary[:5])
            insights.append(f"Focus on {top} for highest impact")
        if without_volume:
            insights.append(
                f"Consider {len(without_volume)} zero-volume keywords for SEO content strategy"
            )
        if summary["avg_cpc"] > 0:
            insights.append(
                f"Average CPC of {format_currency(summary['avg_cpc'])} suggests competitive market"
            )
        else:
            insights.append("Low competition market with minimal paid advertising")
        return insights

    # ------------------------------------------------------------------
    # estimate_tam
    # ------------------------------------------------------------------

    def estimate_tam(self, record: ResearchRecord) -> dict[str, Any]:
        """Annual total addressable market for supported industries (HVAC only)."""
        if record.industry.lower() not in TAM_INDUSTRIES:
            return {
                "available": False,
                "industry": record.industry,
                "note": "TAM calculation currently only available for HVAC industry",
            }

        monthly = sum(r.search_volume for r in record.results)
        annual_searches = monthly * 12
        annual_leads = annual_searches * self._tam.lead_conversion_rate
        tam = annual_leads * self._tam.average_job_value
        capture = tam * self._tam.capture_rate
        logger.debug("TAM for research id=%s: %d monthly searches -> $%.0f", record.id, monthly, tam)
        return {
            "available": True,
            "industry": record.industry,
            "note": "TAM calculation available for HVAC industry",
            "monthly_searches": monthly,
            "annual_searches": annual_searches,
            "annual_leads": int(round_half_up(annual_leads)),
            "total_addressable_market": int(round_half_up(tam)),
            "realistic_capture": int(round_half_up(capture)),
            "assumptions": {
                "lead_conversion_rate": self._tam.lead_conversion_rate,
                "average_job_value": self._tam.average_job_value,
                "capture_rate": self._tam.capture_rate,
            },
        }

    # ------------------------------------------------------------------
    # CSV export
    # ------------------------------------------------------------------

    def export_results_csv(
        self,
        results: Sequence[KeywordResult],
        filepath: Optional[str | Path] = None,
    ) -> str:
        """Render results as CSV; also writes ``filepath`` when given."""
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(CSV_HEADERS)
        for r in results:
            writer.writerow([
                r.keyword,
                r.search_volume,
                f"{r.cpc:.2f}",
                r.competition,
                r.opportunity,
                r.ppc_budget,
            ])
        text = buffer.getvalue()
        if filepath:
            path = Path(filepath)
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(text, encoding="utf-8")
            logger.info("Exported %d keywords to %s", len(results), path)
        return text


def monthly_ad_budget(results: Sequence[KeywordResult]) -> int:
    """Total monthly PPC budget over phrases with more than ``MIN_AD_VOLUME`` searches."""
    total = sum(
        r.search_volume * r.cpc for r in results if r.search_volume > MIN_AD_VOLUME
    )
    return int(round_half_up(total * PPC_BUDGET_SHARE))


def export_filename(record: ResearchRecord) -> str:
    """``keyword_research_<industry>_<cities>_<YYYY-MM-DD>.csv``."""
    industry = record.industry.replace("-", "_")
    cities = re.sub(r"\s+", "_", "_".join(record.cities))
    stamp = record.created_at.strftime("%Y-%m-%d")
    return f"keyword_research_{industry}_{cities}_{stamp}.csv"
