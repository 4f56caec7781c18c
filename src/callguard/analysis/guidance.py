"""Localized safety guidance shown alongside a risk assessment.

The analysis core treats guidance as an injected lookup table: anything
implementing :class:`GuidanceProvider` can replace :class:`StaticGuidance`.
"""

from __future__ import annotations

from typing import Protocol

from callguard.analysis.models import RiskLevel

FALLBACK_LANGUAGE = "en"

DEFAULT_GUIDANCE: dict[str, dict[RiskLevel, tuple[str, ...]]] = {
    "en": {
        RiskLevel.LOW: (
            "✓ Call appears safe",
            "✓ No suspicious patterns detected",
            "✓ Continue with normal caution",
        ),
        RiskLevel.MEDIUM: (
            "⚠️ Be careful with this call",
            "⚠️ Do not share personal information yet",
            "⚠️ Verify the caller's identity independently",
            "⚠️ If unsure, hang up and call back using official numbers",
        ),
        RiskLevel.HIGH: (
            "🚫 HIGH RISK - This could be a scam!",
            "🚫 DO NOT share any OTP or passwords",
            "🚫 DO NOT transfer any money",
            "🚫 End this call immediately",
            "🚫 Block this number",
            "📞 Contact your family or bank directly",
        ),
    },
    "hi": {
        RiskLevel.LOW: (
            "✓ कॉल सुरक्षित लगती है",
            "✓ कोई संदिग्ध पैटर्न नहीं मिला",
            "✓ सामान्य सावधानी के साथ जारी रखें",
        ),
        RiskLevel.MEDIUM: (
            "⚠️ इस कॉल में सावधान रहें",
            "⚠️ अभी व्यक्तिगत जानकारी साझा न करें",
            "⚠️ कॉलर की पहचान स्वतंत्र रूप से सत्यापित करें",
            "⚠️ अगर संदेह हो, फोन काटें और आधिकारिक नंबर से कॉल करें",
        ),
        RiskLevel.HIGH: (
            "🚫 उच्च जोखिम - यह धोखाधड़ी हो सकती है!",
            "🚫 कोई भी OTP या पासवर्ड साझा न करें",
            "🚫 कोई पैसा ट्रांसफर न करें",
            "🚫 इस कॉल को तुरंत समाप्त करें",
            "🚫 इस नंबर को ब्लॉक करें",
            "📞 अपने परिवार या बैंक से सीधे संपर्क करें",
        ),
    },
    "ta": {
        RiskLevel.LOW: (
            "✓ அழைப்பு பாதுகாப்பானதாக தெரிகிறது",
            "✓ சந்தேகமான முறைகள் இல்லை",
            "✓ சாதாரண எச்சரிக்கையுடன் தொடரவும்",
        ),
        RiskLevel.MEDIUM: (
            "⚠️ இந்த அழைப்பில் கவனமாக இருங்கள்",
            "⚠️ இன்னும் தனிப்பட்ட தகவல்களைப் பகிர வேண்டாம்",
            "⚠️ அழைப்பாளரின் அடையாளத்தை சுயாதீனமாக சரிபார்க்கவும்",
        ),
        RiskLevel.HIGH: (
            "🚫 அதிக ஆபத்து - இது மோசடியாக இருக்கலாம்!",
            "🚫 எந்த OTP அல்லது கடவுச்சொற்களையும் பகிர வேண்டாம்",
            "🚫 பணம் மாற்ற வேண்டாம்",
            "🚫 இந்த அழைப்பை உடனடியாக முடிக்கவும்",
        ),
    },
}


class GuidanceProvider(Protocol):
    """Lookup of human-readable guidance for a risk level."""

    def guidance_for(self, risk_level: RiskLevel, language: str) -> list[str]: ...


class StaticGuidance:
    """Guidance backed by an in-memory table with English fallback."""

    def __init__(
        self,
        table: dict[str, dict[RiskLevel, tuple[str, ...]]] | None = None,
    ) -> None:
        self._table = table if table is not None else DEFAULT_GUIDANCE

    @property
    def languages(self) -> list[str]:
        return sorted(self._table)

    def guidance_for(self, risk_level: RiskLevel, language: str) -> list[str]:
        """Return guidance for ``risk_level`` in ``language``.

        Unknown languages (and languages missing the level) fall back to
        English. Region suffixes such as ``hi-IN`` are ignored.
        """
        lang = (language or FALLBACK_LANGUAGE).split("-")[0].lower()
        lines = self._table.get(lang, {}).get(risk_level)
        if not lines:
            lines = DEFAULT_GUIDANCE[FALLBACK_LANGUAGE][risk_level]
        return list(lines)


default_guidance = StaticGuidance()
