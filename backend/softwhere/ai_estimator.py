import json
import logging
import math
import re
import time
from typing import Any, Optional

from openai import OpenAI
from pydantic import BaseModel, ValidationError, field_validator

from softwhere import config
from softwhere.estimator import EstimatorInput, round_half_up

logger = logging.getLogger(__name__)

# Generous upper bounds; anything beyond is treated as a hallucination
MAX_DEVELOPMENT_COST = 1_000_000
MAX_DEADLINE_WEEKS = 200
MAX_SUPPORT_COST = 1_000_000

DEFAULT_REASONING = "AI-powered estimate based on project parameters."

SYSTEM_PROMPT = (
    "You are an expert software development cost estimator. Return only a JSON object "
    "with the fields developmentCost (number), deadlineWeeks (number), supportCost (number) "
    "and reasoning (string)."
)

_FENCE_RE = re.compile(r"```(?:json)?\s*({[\s\S]*?})\s*```")


def extract_number(value: Any) -> float:
    """Best-effort numeric coercion: ``"$12,500"`` -> 12500.0, garbage -> 0."""
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else 0.0
    if isinstance(value, str):
        cleaned = re.sub(r"[^0-9.]", "", value)
        try:
            return float(cleaned)
        except ValueError:
            return 0.0
    return 0.0


class AIEstimate(BaseModel):
    developmentCost: int
    deadlineWeeks: int
    supportCost: int
    reasoning: str = DEFAULT_REASONING

    @field_validator("developmentCost", "deadlineWeeks", "supportCost", mode="before")
    @classmethod
    def _coerce_amount(cls, v):
        return round_half_up(extract_number(v))

    @field_validator("reasoning", mode="before")
    @classmethod
    def _default_reasoning(cls, v):
        if not v or not isinstance(v, str):
            return DEFAULT_REASONING
        return v


def is_plausible(estimate: Optional[AIEstimate]) -> bool:
    if estimate is None:
        return False
    return (
        0 < estimate.developmentCost < MAX_DEVELOPMENT_COST
        and 0 < estimate.deadlineWeeks < MAX_DEADLINE_WEEKS
        and 0 < estimate.supportCost < MAX_SUPPORT_COST
    )


def parse_estimate_response(text: str) -> Optional[AIEstimate]:
    """
    Turn a model reply into an ``AIEstimate``.

    Accepts bare JSON, JSON wrapped in a markdown fence, or JSON surrounded by
    prose. Returns None when no JSON object can be read; range checks are
    left to ``is_plausible``.
    """
    if not text:
        return None
    raw = text.strip()
    m = _FENCE_RE.search(raw)
    if m:
        raw = m.group(1)
    else:
        jstart = raw.find("{")
        jend = raw.rfind("}") + 1
        if jstart != -1 and jend > jstart:
            raw = raw[jstart:jend]

    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("AI estimate response is not valid JSON")
        return None
    if not isinstance(parsed, dict):
        return None

    try:
        estimate = AIEstimate(**{
            "developmentCost": parsed.get("developmentCost"),
            "deadlineWeeks": parsed.get("deadlineWeeks"),
            "supportCost": parsed.get("supportCost"),
            "reasoning": parsed.get("reasoning"),
        })
    except ValidationError as e:
        logger.warning("AI estimate failed validation: %s", e)
        return None
    return estimate


def build_estimate_prompt(data: EstimatorInput) -> str:
    lines = [
        "As an expert software development cost estimator, provide a JSON estimate for the following project:",
        "",
        f"Project Type: {data.projectType}",
    ]
    if data.subtype:
        lines.append(f"Subtype: {data.subtype}")
    if data.projectType == "mobile" and data.platforms:
        lines.append(f"Platforms: {', '.join(sorted(data.platforms))}")
    lines += [
        f"Complexity Level: {data.complexity}",
        f"Features: {', '.join(sorted(data.features)) or 'None selected'}",
        f"Number of Pages/Screens: {data.pages}",
    ]
    if data.techStack:
        lines.append(f"Tech Stack Preference: {', '.join(sorted(data.techStack))}")
    lines += [
        "",
        "Please return only a valid JSON object with the following fields:",
        "- developmentCost (in USD as a number, not a string)",
        "- deadlineWeeks (as a number)",
        "- supportCost (in USD as a number, not a string)",
        "- reasoning (brief explanation of how you arrived at the estimate)",
        "",
        "Base your pricing on industry standards for quality work done by professional developers.",
        "Consider the Uzbekistan/Central Asia market context for competitive pricing.",
        "",
        "Important: All monetary values must be numbers, not strings with currency symbols.",
    ]
    return "\n".join(lines)


class AIEstimator:
    """
    Asks an OpenAI-compatible chat model for an independent estimate.

    Disabled when no API key is configured; every failure ends in ``None`` so
    callers can fall back to the formula.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        client: Any = None,
        max_attempts: Optional[int] = None,
        backoff: float = 0.5,
    ):
        self.model = model or config.OPENAI_MODEL
        self.max_attempts = max_attempts or config.AI_ESTIMATE_MAX_ATTEMPTS
        self.backoff = backoff
        api_key = api_key if api_key is not None else config.OPENAI_API_KEY
        if client is not None:
            self.client = client
        elif api_key:
            self.client = OpenAI(api_key=api_key, base_url=base_url or config.OPENAI_BASE_URL)
        else:
            self.client = None

    @property
    def enabled(self) -> bool:
        return self.client is not None

    def _complete(self, prompt: str) -> str:
        resp = self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            temperature=0.0,
            max_tokens=400,
            response_format={"type": "json_object"},
        )
        return (resp.choices[0].message.content or "").strip()

    def estimate(self, data: EstimatorInput) -> Optional[AIEstimate]:
        if not self.enabled:
            logger.info("AI estimation not available - API key not configured")
            return None

        prompt = build_estimate_prompt(data)
        attempts = 0
        while attempts < self.max_attempts:
            attempts += 1
            try:
                text_out = self._complete(prompt)
                logger.debug("Raw AI response: %s", text_out[:200])
                parsed = parse_estimate_response(text_out)
                if parsed is None:
                    raise ValueError("unparsable AI estimate")
                logger.info("AI estimate parsed: %s", parsed.model_dump())
                return parsed
            except Exception as e:
                if attempts >= self.max_attempts:
                    logger.warning("AI estimate final failure after %d attempts: %s", attempts, e)
                    return None
                time.sleep(self.backoff * attempts)
        return None
