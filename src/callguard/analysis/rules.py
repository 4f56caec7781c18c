"""Rule-based scam scoring.

Pure and synchronous: a normalized transcript is matched against a fixed
keyword-weight table. The same input always yields the same output, which
makes this the fallback whenever the AI classifier is unavailable.
"""

from __future__ import annotations

from dataclasses import dataclass

from callguard.analysis.guidance import GuidanceProvider, default_guidance
from callguard.analysis.models import (
    CANONICAL_INDICATORS,
    MAX_RISK_SCORE,
    AnalysisResult,
    IndicatorType,
    ScamIndicator,
    normalize_result,
    risk_level_for_score,
)

RULE_CONFIDENCE = 0.85


@dataclass(frozen=True)
class PatternRule:
    """A keyword group scored as a single indicator."""

    id: IndicatorType
    keywords: frozenset[str]
    weight: int


@dataclass(frozen=True)
class RuleScore:
    """Output of :func:`score`: capped raw score plus canonical indicators."""

    raw_score: int
    indicators: tuple[ScamIndicator, ...]


# ---------------------------------------------------------------------------
# Canonical scoring table
# ---------------------------------------------------------------------------

PATTERN_RULES: tuple[PatternRule, ...] = (
    PatternRule(
        id=IndicatorType.IMPERSONATION,
        keywords=frozenset(
            {
                "bank",
                "bank se",
                "from bank",
                "rbi",
                "government",
                "police",
                "tax department",
                "income tax",
                "sbi",
                "hdfc",
                "icici",
            }
        ),
        weight=25,
    ),
    PatternRule(
        id=IndicatorType.OTP_REQUEST,
        keywords=frozenset(
            {
                "otp",
                "share otp",
                "otp batao",
                "otp bhejo",
                "pin",
                "cvv",
                "password",
                "verify code",
            }
        ),
        weight=30,
    ),
    PatternRule(
        id=IndicatorType.URGENCY,
        keywords=frozenset(
            {
                "immediately",
                "urgent",
                "right now",
                "account blocked",
                "account will be blocked",
                "suspend",
                "act now",
            }
        ),
        weight=25,
    ),
    PatternRule(
        id=IndicatorType.AUTHORITY,
        keywords=frozenset({"arrest", "police", "legal", "case", "fine", "court"}),
        weight=20,
    ),
    PatternRule(
        id=IndicatorType.MONEY_REQUEST,
        keywords=frozenset({"transfer", "upi", "gift card", "pay", "send money"}),
        weight=25,
    ),
    PatternRule(
        id=IndicatorType.EMOTIONAL,
        keywords=frozenset({"emergency", "help", "save", "fear", "threat"}),
        weight=15,
    ),
)


def normalize_transcript(transcript: str) -> str:
    """Lower-case and trim a transcript for matching."""
    return transcript.lower().strip()


def score(normalized_transcript: str) -> RuleScore:
    """Score a normalized transcript against :data:`PATTERN_RULES`.

    A rule matches when any of its keywords is a substring of the input.
    ``voice_pattern`` has no rule and is never detected.
    """
    matched = {
        rule.id
        for rule in PATTERN_RULES
        if any(keyword in normalized_transcript for keyword in rule.keywords)
    }
    raw_score = min(
        MAX_RISK_SCORE, sum(rule.weight for rule in PATTERN_RULES if rule.id in matched)
    )
    indicators = tuple(
        ScamIndicator(
            id=indicator_id,
            detected=indicator_id in matched,
            confidence=RULE_CONFIDENCE if indicator_id in matched else 0.0,
        )
        for indicator_id in CANONICAL_INDICATORS
    )
    return RuleScore(raw_score=raw_score, indicators=indicators)


def analyze_rules(
    transcript: str,
    language: str = "en",
    guidance: GuidanceProvider = default_guidance,
) -> AnalysisResult:
    """Run the rule engine and build a normalized :class:`AnalysisResult`."""
    result = score(normalize_transcript(transcript))
    level = risk_level_for_score(result.raw_score)
    lines = guidance.guidance_for(level, language)
    return normalize_result(
        risk_level=level,
        risk_score=result.raw_score,
        indicators=result.indicators,
        guidance=lines,
        fallback_guidance=lines,
    )
