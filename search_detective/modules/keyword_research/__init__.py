"""Keyword Research module -- phrase generation, metric normalization, classification, and analysis."""

from search_detective.modules.keyword_research.analyzer import MarketAnalyzer, TamAssumptions
from search_detective.modules.keyword_research.classifier import classify_opportunity
from search_detective.modules.keyword_research.normalizer import normalize_metric
from search_detective.modules.keyword_research.phrases import generate_phrases
from search_detective.modules.keyword_research.pipeline import ResearchPipeline, RunState
from search_detective.modules.keyword_research.records import (
    CredentialCheck,
    KeywordResult,
    NormalizedMetric,
    ResearchRecord,
)

__all__ = [
    "MarketAnalyzer",
    "TamAssumptions",
    "classify_opportunity",
    "normalize_metric",
    "generate_phrases",
    "ResearchPipeline",
    "RunState",
    "CredentialCheck",
    "KeywordResult",
    "NormalizedMetric",
    "ResearchRecord",
]
