"""Unit tests for localized guidance lookup."""

from __future__ import annotations

import pytest

from callguard.analysis.guidance import DEFAULT_GUIDANCE, StaticGuidance, default_guidance
from callguard.analysis.models import RiskLevel


class TestStaticGuidance:
    @pytest.mark.parametrize("language", ["en", "hi", "ta"])
    @pytest.mark.parametrize("level", list(RiskLevel))
    def test_every_language_covers_every_level(self, language: str, level: RiskLevel) -> None:
        lines = default_guidance.guidance_for(level, language)
        assert lines
        assert all(isinstance(line, str) and line for line in lines)

    def test_unknown_language_falls_back_to_english(self) -> None:
        assert default_guidance.guidance_for(RiskLevel.HIGH, "fr") == list(
            DEFAULT_GUIDANCE["en"][RiskLevel.HIGH]
        )

    def test_region_suffix_ignored(self) -> None:
        assert default_guidance.guidance_for(RiskLevel.LOW, "hi-IN") == list(
            DEFAULT_GUIDANCE["hi"][RiskLevel.LOW]
        )

    def test_missing_level_falls_back_to_english(self) -> None:
        provider = StaticGuidance({"xx": {RiskLevel.LOW: ("fine",)}})
        assert provider.guidance_for(RiskLevel.LOW, "xx") == ["fine"]
        assert provider.guidance_for(RiskLevel.HIGH, "xx") == list(
            DEFAULT_GUIDANCE["en"][RiskLevel.HIGH]
        )

    def test_returns_copy(self) -> None:
        lines = default_guidance.guidance_for(RiskLevel.LOW, "en")
        lines.append("mutated")
        assert "mutated" not in default_guidance.guidance_for(RiskLevel.LOW, "en")

    def test_languages(self) -> None:
        assert default_guidance.languages == ["en", "hi", "ta"]
