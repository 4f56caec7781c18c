"""AI-backed scam classification via an OpenAI-compatible completion gateway.

One chat-completion request per pass. Transport failures surface as typed
:class:`ClassifierError` subclasses so callers can fall back to the rule
engine. Malformed model output never escapes :meth:`AIClassifier.classify`:
it is replaced by a neutral "be cautious" result.
"""

from __future__ import annotations

import json
import re
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from callguard.analysis.guidance import GuidanceProvider, default_guidance
from callguard.analysis.models import (
    AnalysisResult,
    IndicatorType,
    RiskLevel,
    ScamIndicator,
    normalize_result,
)
from callguard.config import Settings, get_settings
from callguard.logging import get_logger

log = get_logger("callguard.analysis.classifier")

NEUTRAL_GUIDANCE = "Unable to fully analyze. Please be cautious."

_FENCED_BLOCK = re.compile(r"```(?:json)?\s*(.*?)\s*```", re.DOTALL | re.IGNORECASE)

_SCORING_PROMPT = """\
You are an expert scam detection AI for Indian phone scams. Analyze the \
transcript and detect scam indicators.

CRITICAL: These phrases ALWAYS indicate HIGH RISK:
- "calling from bank/bank se call" + OTP/password request
- "share your OTP/PIN/CVV" or "OTP batao/bhejo"
- "account will be blocked/suspended" + urgency
- Impersonating bank, police, government, tax department
- "act immediately", "do it now", "urgent"

Scam patterns to detect:
1. impersonation - Claims to be from bank, government, police, RBI, tax dept
2. urgency - "Act now", "immediate", "account will be blocked"
3. emotional - Fear, threats, fake emergencies
4. authority - Legal threats, arrest, fines
5. otp_request - Asking for OTP, PIN, CVV, password, codes
6. money_request - UPI, transfer, gift cards, bank details
7. voice_pattern - Call center, scripted speech

Respond ONLY with valid JSON in this exact format:
{{
  "riskLevel": "low" | "medium" | "high",
  "riskScore": 0-100,
  "indicators": [
    {{"id": "impersonation", "type": "impersonation", "detected": true, \
"confidence": 0.9, "evidence": "quote"}},
    {{"id": "otp_request", "type": "otp_request", "detected": false, \
"confidence": 0, "evidence": ""}}
  ],
  "guidance": ["action 1", "action 2"]
}}

Scoring rules - BE STRICT:
- high (score 50-100): Bank/authority claim + OTP/account block/urgency = SCAM. \
Use "high" and score 75-95.
- medium (score 25-49): Suspicious but not clear scam
- low (score 0-24): Normal chat, greetings, no red flags

Include ALL 7 indicator types. Use lowercase for riskLevel. Provide guidance \
in language: {language}.
"""


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class ClassifierError(Exception):
    """Base exception for AI classifier failures."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class RateLimited(ClassifierError):
    """Gateway rejected the request with HTTP 429."""

    def __init__(self, message: str = "Rate limit exceeded. Please try again in a moment."):
        super().__init__(message, status_code=429)


class QuotaExceeded(ClassifierError):
    """Gateway rejected the request with HTTP 402."""

    def __init__(self, message: str = "Usage limit reached. Please check your account."):
        super().__init__(message, status_code=402)


class UpstreamUnavailable(ClassifierError):
    """Any other non-2xx response, timeout or network failure."""

    pass


class MalformedResponse(ClassifierError):
    """Model output could not be decoded or validated."""

    pass


# ---------------------------------------------------------------------------
# Response schema
# ---------------------------------------------------------------------------


class _IndicatorPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str | None = None
    type: str | None = None
    detected: bool = False
    confidence: float = Field(default=0.0, allow_inf_nan=False)
    evidence: str | None = None

    @field_validator("confidence", mode="before")
    @classmethod
    def _default_null_confidence(cls, v: Any) -> Any:
        return 0.0 if v is None else v

    @field_validator("evidence", mode="before")
    @classmethod
    def _coerce_evidence(cls, v: Any) -> str | None:
        if v is None or isinstance(v, str):
            return v
        return str(v)


class _ClassificationPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    risk_level: RiskLevel = Field(alias="riskLevel")
    risk_score: float = Field(alias="riskScore", allow_inf_nan=False)
    # Entries are validated one by one so a bad entry is dropped, not fatal
    indicators: list[Any] = Field(default_factory=list)
    guidance: list[str] = Field(default_factory=list)

    @field_validator("risk_level", mode="before")
    @classmethod
    def _lowercase_level(cls, v: Any) -> Any:
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("risk_score", mode="before")
    @classmethod
    def _reject_bool_score(cls, v: Any) -> Any:
        if isinstance(v, bool):
            raise ValueError("riskScore must be numeric")
        return v


def extract_json_candidate(content: str) -> str:
    """Return the body of the first fenced code block, else the whole content."""
    match = _FENCED_BLOCK.search(content)
    if match:
        return match.group(1).strip()
    return content.strip()


def neutral_result(
    language: str = "en",
    guidance: GuidanceProvider = default_guidance,
) -> AnalysisResult:
    """Safe default used when the model output cannot be trusted."""
    return normalize_result(
        risk_level=RiskLevel.MEDIUM,
        risk_score=50,
        indicators=[],
        guidance=[NEUTRAL_GUIDANCE],
        fallback_guidance=guidance.guidance_for(RiskLevel.MEDIUM, language),
    )


def _decode(content: str) -> _ClassificationPayload:
    candidate = extract_json_candidate(content)
    try:
        data = json.loads(candidate)
    except json.JSONDecodeError as e:
        raise MalformedResponse(f"Invalid JSON response: {e}") from e
    if not isinstance(data, dict):
        raise MalformedResponse("Response is not a JSON object")
    try:
        return _ClassificationPayload.model_validate(data)
    except ValidationError as e:
        raise MalformedResponse(f"Response failed validation: {e.error_count()} errors") from e


def parse_classification(
    content: str,
    language: str = "en",
    guidance: GuidanceProvider = default_guidance,
) -> AnalysisResult:
    """Decode and validate model output; never raises.

    Falls back to :func:`neutral_result` on any decode or validation
    failure.
    """
    try:
        payload = _decode(content)
    except MalformedResponse as e:
        log.warning("ai_response_malformed", error=str(e), content=content[:200])
        return neutral_result(language, guidance)

    indicators: list[ScamIndicator] = []
    for raw in payload.indicators:
        try:
            item = _IndicatorPayload.model_validate(raw)
        except ValidationError:
            log.debug("ai_indicator_invalid", indicator=str(raw)[:100])
            continue
        name = item.id or item.type or ""
        try:
            indicator_id = IndicatorType(name.strip().lower())
        except ValueError:
            log.debug("ai_indicator_unknown", indicator_id=name)
            continue
        indicators.append(
            ScamIndicator(
                id=indicator_id,
                detected=item.detected,
                confidence=item.confidence,
                evidence=item.evidence,
            )
        )

    return normalize_result(
        risk_level=payload.risk_level,
        risk_score=payload.risk_score,
        indicators=indicators,
        guidance=payload.guidance,
        fallback_guidance=guidance.guidance_for(payload.risk_level, language),
    )


class AIClassifier:
    """Scam classifier backed by a chat-completion gateway."""

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        guidance: GuidanceProvider = default_guidance,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        settings = settings or get_settings()
        self._url = settings.ai_gateway_url
        self._model = settings.ai_model
        self._temperature = settings.ai_temperature
        self._timeout = settings.ai_timeout
        self._api_key = settings.ai_api_key.get_secret_value() if settings.ai_api_key else ""
        self._guidance = guidance
        self._client = client

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    def build_request(self, transcript: str, language: str) -> dict[str, Any]:
        """Build the chat-completion request body."""
        return {
            "model": self._model,
            "messages": [
                {"role": "system", "content": _SCORING_PROMPT.format(language=language)},
                {
                    "role": "user",
                    "content": (
                        "Analyze this phone conversation transcript for scam indicators:"
                        f"\n\n{transcript}"
                    ),
                },
            ],
            "temperature": self._temperature,
        }

    async def classify(self, transcript: str, language: str = "en") -> AnalysisResult:
        """Classify a transcript.

        Args:
            transcript: Raw transcript text.
            language: Language code for the guidance lines.

        Returns:
            A normalized :class:`AnalysisResult`. Malformed model output
            yields the neutral default.

        Raises:
            RateLimited: Gateway returned 429.
            QuotaExceeded: Gateway returned 402.
            UpstreamUnavailable: Any other failure to get a 2xx response.
        """
        client = await self._get_client()
        try:
            response = await client.post(
                self._url,
                headers={
                    "Authorization": f"Bearer {self._api_key}",
                    "Content-Type": "application/json",
                },
                json=self.build_request(transcript, language),
            )
        except httpx.HTTPError as e:
            log.warning("ai_gateway_request_failed", error=str(e))
            raise UpstreamUnavailable(f"AI gateway request failed: {e}") from e

        if response.status_code == 429:
            log.warning("ai_gateway_rate_limited")
            raise RateLimited()
        if response.status_code == 402:
            log.warning("ai_gateway_quota_exceeded")
            raise QuotaExceeded()
        if not response.is_success:
            log.error(
                "ai_gateway_error", status=response.status_code, body=response.text[:200]
            )
            raise UpstreamUnavailable(
                f"AI gateway error: {response.status_code}", status_code=response.status_code
            )

        try:
            content = self._extract_content(response)
        except MalformedResponse as e:
            log.warning("ai_response_malformed", error=str(e))
            return neutral_result(language, self._guidance)

        log.debug("ai_response_received", content=content[:300])
        return parse_classification(content, language, self._guidance)

    @staticmethod
    def _extract_content(response: httpx.Response) -> str:
        try:
            envelope = response.json()
        except ValueError as e:
            raise MalformedResponse("Gateway returned a non-JSON body") from e
        try:
            content = envelope["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise MalformedResponse("AI did not return analysis") from e
        if not isinstance(content, str) or not content.strip():
            raise MalformedResponse("AI returned empty content")
        return content

    async def close(self) -> None:
        """Close the shared HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
