"""Tests for market summary, TAM and CSV export."""

import csv
import io
from datetime import datetime, timezone

import pytest

from search_detective.modules.keyword_research import (
    KeywordResult,
    MarketAnalyzer,
    ResearchRecord,
    TamAssumptions,
)
from search_detective.modules.keyword_research.analyzer import (
    CSV_HEADERS,
    export_filename,
    monthly_ad_budget,
)


def _record(industry="hvac", results=None, cities=("Boise",)):
    return ResearchRecord(
        id=7,
        industry=industry,
        cities=tuple(cities),
        results=tuple(results if results is not None else RESULTS),
        source="keywords_everywhere",
        created_at=datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc),
    )


RESULTS = [
    KeywordResult("AC repair Boise", 1200, 5.0, 40, "High"),
    KeywordResult("Boise AC repair", 300, 2.0, 70, "Medium"),
    KeywordResult("emergency AC repair Boise Idaho", 50, 1.0, 10, "Low"),
    KeywordResult("furnace repair Boise", 8, 3.0, 5, "Low"),
    KeywordResult("Boise furnace repair", 0, 0.0, 0, "Low"),
]


@pytest.fixture()
def analyzer():
    return MarketAnalyzer()


class TestSummarizeMarket:

    def test_totals(self, analyzer):
        summary = analyzer.summarize_market(_record())
        assert summary["total_keywords"] == 5
        assert summary["total_monthly_searches"] == 1558
        assert summary["high_opportunity_count"] == 1
        assert summary["keywords_with_volume"] == 4
        assert summary["keywords_without_volume"] == 1

    def test_ad_budget_skips_low_volume(self, analyzer):
        # (1200*5 + 300*2 + 50*1) * 0.30; the 8-search phrase is excluded
        assert analyzer.summarize_market(_record())["monthly_ad_budget"] == 1995
        assert monthly_ad_budget(RESULTS) == 1995

    def test_content_targets(self, analyzer):
        assert analyzer.summarize_market(_record())["content_target_count"] == 1

    def test_averages_over_phrases_with_volume(self, analyzer):
        summary = analyzer.summarize_market(_record())
        assert summary["avg_search_volume"] == 390
        assert summary["avg_cpc"] == 2.75

    def test_primary_and_long_tail(self, analyzer):
        summary = analyzer.summarize_market(_record())
        assert [k["keyword"] for k in summary["primary_keywords"]] == [
            "AC repair Boise",
            "Boise AC repair",
            "emergency AC repair Boise Idaho",
            "furnace repair Boise",
        ]
        assert [k["keyword"] for k in summary["long_tail_keywords"]] == [
            "emergency AC repair Boise Idaho",
        ]

    def test_insights(self, analyzer):
        insights = analyzer.summarize_market(_record())["insights"]
        assert "Affordable PPC entry point at ~$1,995/month" in insights
        assert "Consider 1 zero-volume keywords for SEO content strategy" in insights
        assert "Average CPC of $2.75 suggests competitive market" in insights
        assert insights[insights.index("Affordable PPC entry point at ~$1,995/month") + 1].startswith(
            "Focus on AC repair Boise, Boise AC repair"
        )

    def test_empty_results(self, analyzer):
        summary = analyzer.summarize_market(_record(results=[]))
        assert summary["total_monthly_searches"] == 0
        assert summary["avg_search_volume"] == 0
        assert summary["avg_cpc"] == 0.0
        assert summary["primary_keywords"] == []
        assert "Low competition market with minimal paid advertising" in summary["insights"]


class TestEstimateTam:

    def test_hvac_defaults(self, analyzer):
        tam = analyzer.estimate_tam(_record())
        assert tam["available"] is True
        assert tam["monthly_searches"] == 1558
        assert tam["annual_searches"] == 18696
        assert tam["annual_leads"] == 935
        assert tam["total_addressable_market"] == 327180
        assert tam["realistic_capture"] == 16359

    def test_custom_assumptions(self):
        analyzer = MarketAnalyzer(TamAssumptions(lead_conversion_rate=0.1, average_job_value=100, capture_rate=0.5))
        tam = analyzer.estimate_tam(_record(results=[KeywordResult("AC repair Boise", 1000, 1.0, 10, "High")]))
        assert tam["annual_leads"] == 1200
        assert tam["total_addressable_market"] == 120000
        assert tam["realistic_capture"] == 60000

    def test_other_industries_unavailable(self, analyzer):
        tam = analyzer.estimate_tam(_record(industry="plumbing"))
        assert tam["available"] is False
        assert "HVAC" in tam["note"]
        assert "total_addressable_market" not in tam


class TestCsvExport:

    def test_layout(self, analyzer):
        text = analyzer.export_results_csv(RESULTS[:2])
        rows = list(csv.reader(io.StringIO(text)))
        assert rows[0] == CSV_HEADERS
        assert rows[1] == ["AC repair Boise", "1200", "5.00", "40", "High", "1800"]
        assert rows[2] == ["Boise AC repair", "300", "2.00", "70", "Medium", "180"]
        assert len(rows) == 3

    def test_quotes_commas(self, analyzer):
        text = analyzer.export_results_csv([KeywordResult("AC repair Boise, ID", 10, 1.0, 5, "Low")])
        assert '"AC repair Boise, ID"' in text

    def test_writes_file(self, analyzer, tmp_path):
        path = tmp_path / "exports" / "out.csv"
        text = analyzer.export_results_csv(RESULTS, path)
        assert path.read_text(encoding="utf-8") == text

    def test_filename(self):
        record = _record(industry="digital-marketing", cities=("Boise", "Twin Falls"))
        assert export_filename(record) == "keyword_research_digital_marketing_Boise_Twin_Falls_2024-05-01.csv"
