import json
import logging
from typing import Any, Dict, List, Optional, Sequence

import openai
from openai import OpenAI
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from analyzer import AnalysisResult, SUGGESTION_COUNT, pad_suggestions
from config import (
    AI_TIMEOUT_SECONDS,
    MODEL_NAME,
    MODEL_TEMPERATURE,
    OPENAI_BASE_URL,
    get_api_key,
    is_ai_configured,
)
from errors import ConfigurationError, ProviderError

logger = logging.getLogger(__name__)


SYSTEM_INSTRUCTION = "You are an expert resume analyzer. Always respond with valid JSON only, no additional text."

LLM_PROMPT_TEMPLATE = """
You are an expert resume analyzer and career coach. Analyze the following resume for a {role_name} position.

Resume:
---
{resume_text}
---

Required Skills for {role_name}:
{required_skills}

Respond ONLY with a JSON object matching this schema:
{{
  "matchPercentage": <integer 0-100>,
  "atsScore": <integer 0-100>,
  "matchedSkills": [<skills from the required list found in the resume>],
  "missingSkills": [<skills from the required list not found in the resume>],
  "suggestions": [<{suggestion_count} specific, actionable suggestions to improve the resume>],
  "detailedFeedback": "<2-3 paragraph analysis of strengths and areas for improvement>"
}}

Rules:
- Output must be valid JSON (double quotes, no trailing commas).
- Only use skill names exactly as written in the required list.
- Be thorough in identifying skills, including variations and related technologies.
- The ATS score should consider formatting, keywords and structure.
- The match percentage should reflect how well the candidate fits the role.
"""


class AIAnalysisPayload(BaseModel):
    """Response contract of the completion provider; anything else is rejected."""

    model_config = ConfigDict(strict=True, populate_by_name=True, extra="ignore")

    match_percentage: int = Field(alias="matchPercentage", ge=0, le=100)
    ats_score: int = Field(alias="atsScore", ge=0, le=100)
    matched_skills: List[str] = Field(alias="matchedSkills")
    missing_skills: List[str] = Field(alias="missingSkills")
    suggestions: List[str] = Field(alias="suggestions", min_length=1)
    detailed_feedback: str = Field(alias="detailedFeedback")


def build_openai_client(
    api_key: Optional[str] = None,
    base_url: Optional[str] = None,
    timeout: float = AI_TIMEOUT_SECONDS,
) -> Optional[OpenAI]:
    """Create an OpenAI-compatible client, or None when no usable credential exists."""
    api_key = api_key if api_key is not None else get_api_key()
    if not is_ai_configured(api_key):
        logger.info("AI Analyzer: no usable API key configured; AI analysis disabled.")
        return None

    base_url = base_url or OPENAI_BASE_URL
    # One attempt per analysis; SDK-level retries are disabled.
    client = OpenAI(api_key=api_key, base_url=base_url, timeout=timeout, max_retries=0)
    logger.info("AI Analyzer: initialized OpenAI-compatible client (base_url=%s)", base_url or "default")
    return client


class AIAnalyzer:
    """Delegates resume analysis to a chat-completion model.

    The client is injected so tests can pass any object exposing
    ``chat.completions.create``.
    """

    def __init__(
        self,
        client: Optional[Any],
        model: str = MODEL_NAME,
        temperature: float = MODEL_TEMPERATURE,
    ):
        self.client = client
        self.model = model
        self.temperature = temperature

    @property
    def is_configured(self) -> bool:
        return self.client is not None

    def analyze(
        self,
        resume_text: str,
        role_id: str,
        role_name: str,
        required_skills: Sequence[str],
    ) -> AnalysisResult:
        if self.client is None:
            raise ConfigurationError("AI analysis is not configured: set OPENAI_API_KEY.")

        prompt = LLM_PROMPT_TEMPLATE.format(
            role_name=role_name,
            resume_text=(resume_text or "").strip(),
            required_skills=", ".join(required_skills) or "None specified",
            suggestion_count=SUGGESTION_COUNT,
        )
        request_kwargs: Dict[str, Any] = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_INSTRUCTION},
                {"role": "user", "content": prompt},
            ],
            "temperature": self.temperature,
            "response_format": {"type": "json_object"},
        }

        logger.info("AI Analyzer: requesting analysis for role=%s (%s chars)", role_id, len(resume_text or ""))
        raw = self._complete(request_kwargs)
        payload = parse_ai_payload(raw)
        result = _to_analysis_result(payload, required_skills)
        logger.info(
            "AI Analyzer: analysis complete for role=%s match=%s ats=%s",
            role_id,
            result.match_percentage,
            result.ats_score,
        )
        return result

    def _complete(self, request_kwargs: Dict[str, Any]) -> str:
        try:
            response = self.client.chat.completions.create(**request_kwargs)
        except openai.RateLimitError as exc:
            quota_exhausted = getattr(exc, "code", None) == "insufficient_quota"
            raise ProviderError(
                "Provider quota exceeded." if quota_exhausted else "Provider rate limit reached.",
                retryable=not quota_exhausted,
                status_code=exc.status_code,
            ) from exc
        except (openai.AuthenticationError, openai.PermissionDeniedError) as exc:
            raise ProviderError("Provider rejected the API key.", retryable=False, status_code=exc.status_code) from exc
        except openai.APITimeoutError as exc:
            raise ProviderError("Provider request timed out.", retryable=True) from exc
        except openai.APIConnectionError as exc:
            raise ProviderError("Could not reach the provider.", retryable=True) from exc
        except openai.APIStatusError as exc:
            raise ProviderError(
                f"Provider returned HTTP {exc.status_code}.",
                retryable=exc.status_code >= 500,
                status_code=exc.status_code,
            ) from exc
        except openai.OpenAIError as exc:
            logger.exception("AI Analyzer: unexpected provider failure")
            raise ProviderError(f"Provider call failed: {exc}") from exc

        choices = getattr(response, "choices", None) or []
        message = getattr(choices[0], "message", None) if choices else None
        content = getattr(message, "content", None)
        if not isinstance(content, str) or not content.strip():
            raise ProviderError("Empty response from provider.")
        return content


def parse_ai_payload(raw: str) -> AIAnalysisPayload:
    """Decode and validate the provider's JSON answer, raising ProviderError on any mismatch."""
    try:
        data = json.loads(_extract_json_from_response(raw))
    except ValueError as exc:
        raise ProviderError(f"Provider response is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ProviderError("Provider response must be a JSON object.")
    try:
        return AIAnalysisPayload.model_validate(data)
    except ValidationError as exc:
        fields = ", ".join(".".join(str(part) for part in error["loc"]) for error in exc.errors())
        raise ProviderError(f"Provider response failed validation ({fields}).") from exc


def _to_analysis_result(payload: AIAnalysisPayload, required_skills: Sequence[str]) -> AnalysisResult:
    reported = {skill.strip().lower() for skill in payload.matched_skills}
    matched = [skill for skill in required_skills if skill.lower() in reported]
    missing = [skill for skill in required_skills if skill.lower() not in reported]
    return AnalysisResult(
        match_percentage=payload.match_percentage,
        ats_score=payload.ats_score,
        matched_skills=tuple(matched),
        missing_skills=tuple(missing),
        suggestions=tuple(pad_suggestions(payload.suggestions)),
        detailed_feedback=payload.detailed_feedback.strip() or None,
        is_ai_powered=True,
    )


def _extract_json_from_response(raw: str) -> str:
    """Strip markdown code fences some models wrap around their JSON."""
    if not raw or not raw.strip():
        raise ValueError("Empty response from LLM.")

    text = raw.strip()
    if text.startswith("```"):
        lines = [line for line in text.splitlines() if not line.strip().startswith("```")]
        text = "\n".join(lines).strip()
    return text
