"""Scam signal analysis: rule engine, AI classifier and result model.

Public API
----------
- :class:`TranscriptAnalyzer` - one-shot pipeline (rules + optional AI)
- :class:`AIClassifier` - chat-completion backed classifier
- :func:`analyze_rules` / :func:`score` - deterministic rule engine
- :class:`AnalysisResult`, :class:`ScamIndicator` - result types
"""

from callguard.analysis.classifier import (
    AIClassifier,
    ClassifierError,
    MalformedResponse,
    QuotaExceeded,
    RateLimited,
    UpstreamUnavailable,
)
from callguard.analysis.engine import TranscriptAnalyzer, build_analyzer
from callguard.analysis.models import (
    CANONICAL_INDICATORS,
    AnalysisResult,
    IndicatorType,
    RiskLevel,
    ScamIndicator,
)
from callguard.analysis.rules import analyze_rules, score

__all__ = [
    "AIClassifier",
    "AnalysisResult",
    "CANONICAL_INDICATORS",
    "ClassifierError",
    "IndicatorType",
    "MalformedResponse",
    "QuotaExceeded",
    "RateLimited",
    "RiskLevel",
    "ScamIndicator",
    "TranscriptAnalyzer",
    "UpstreamUnavailable",
    "analyze_rules",
    "build_analyzer",
    "score",
]
