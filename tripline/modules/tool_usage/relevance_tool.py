"""
modules/tool_usage/relevance_tool.py
--------------------------------------
RelevanceScorer implementations.

GeminiRelevanceScorer
    One generate_content call per day for every in-corridor candidate.
    The model is asked for JSON only:
        [{"place_id": "...", "score": 0-100, "reasoning": "..."}]
    Scores are clamped to [0, 100]; ids not in the request are dropped;
    unparseable output raises ExternalServiceError.

KeywordRelevanceScorer
    Offline scorer (USE_STUB_RELEVANCE=true). Interest ↔ category/tag overlap
    plus small adjustments for the hidden-gem / crowd / rainy-day flags.
"""

from __future__ import annotations
import json
import logging
import math
from typing import Any

from google import genai
from google.genai import errors as genai_errors
from google.genai import types as genai_types

import tripline.config as config
from tripline.errors import ExternalServiceError
from tripline.modules.tool_usage.services import (
    RelevanceInput,
    RelevancePreferences,
    RelevanceScore,
    RelevanceScorer,
    RetryPolicy,
)

logger = logging.getLogger(__name__)


def _clamp_score(value: Any) -> float:
    score = float(value)
    if not math.isfinite(score):
        raise ValueError(f"score is not finite: {value!r}")
    return max(0.0, min(100.0, score))


# ─────────────────────────────────────────────────────────────────────────────
# Gemini
# ─────────────────────────────────────────────────────────────────────────────

_PROMPT_TEMPLATE = """
You are a local travel expert for Jeju Island.
Score how well each candidate spot suits this traveler, from 0 (poor fit) to 100 (perfect fit).

TRAVELER:
- Interests: {interests}
- Travelling with: {companions}
- Pace: {pace}
- Budget level: {budget}
- Prefers rainy-day friendly spots: {rainy}
- Prefers hidden gems over famous spots: {hidden}
- Avoids crowds: {crowds}
- Must-visit spots: {fixed}

CANDIDATES (JSON):
{candidates}

RULES:
- Judge only suitability for this traveler; ignore distance and route order.
- Must-visit spots should score at least 80.
- Return one entry per candidate, using the exact place_id given.

OUTPUT:
Return ONLY valid JSON. No explanations. No markdown.
[{{"place_id": "", "score": 0, "reasoning": ""}}]
"""


class GeminiRelevanceScorer(RelevanceScorer):
    """Relevance scoring backed by a Gemini model via google-genai."""

    name = "gemini_relevance"

    def __init__(
        self,
        api_key: str | None = None,
        model: str = config.LLM_MODEL_NAME,
        timeout_seconds: int = config.LLM_TIMEOUT_SECONDS,
        retry_policy: RetryPolicy | None = None,
        client: Any | None = None,
    ) -> None:
        if client is None:
            key = api_key or config.GEMINI_API_KEY
            if not key:
                raise ValueError("GEMINI_API_KEY is required")
            client = genai.Client(
                api_key=key,
                http_options=genai_types.HttpOptions(timeout=timeout_seconds * 1000),  # ms
            )
        self._client = client
        self._model = model
        self.retry_policy = retry_policy or RetryPolicy()

    def score_relevance(
        self,
        candidates: list[RelevanceInput],
        preferences: RelevancePreferences,
    ) -> list[RelevanceScore]:
        if not candidates:
            return []
        prompt = self.build_prompt(candidates, preferences)
        raw = self._complete(prompt)
        scores = self.parse_response(raw, {c.place_id for c in candidates})
        logger.info("Gemini scored %d/%d candidate(s)", len(scores), len(candidates))
        return scores

    @staticmethod
    def build_prompt(candidates: list[RelevanceInput], preferences: RelevancePreferences) -> str:
        trip = preferences.trip
        payload = [
            {
                "place_id": c.place_id,
                "name": c.name,
                "categories": list(c.categories),
                "attributes": c.attributes,
            }
            for c in candidates
        ]
        return _PROMPT_TEMPLATE.format(
            interests=", ".join(trip.interests) or "none",
            companions=", ".join(trip.companions) or "not specified",
            pace=trip.pace,
            budget=trip.budget,
            rainy="yes" if trip.prefer_rainy_day else "no",
            hidden="yes" if trip.prefer_hidden_gems else "no",
            crowds="yes" if trip.avoid_crowds else "no",
            fixed=", ".join(preferences.fixed_spot_names) or "none",
            candidates=json.dumps(payload, ensure_ascii=False, default=str),
        )

    def _complete(self, prompt: str) -> str:
        def _call() -> str:
            response = self._client.models.generate_content(
                model=self._model,
                contents=prompt,
                config=genai_types.GenerateContentConfig(response_mime_type="application/json"),
            )
            if not response or not response.text:
                raise ExternalServiceError(self.name, "empty Gemini response")
            return response.text.strip()

        try:
            return self.retry_policy.run(self.name, _call, retry_on=(genai_errors.ServerError,))
        except ExternalServiceError:
            raise
        except Exception as exc:
            # client errors, timeouts and transport failures surface as one typed failure
            raise ExternalServiceError(self.name, f"generate_content failed: {exc}") from exc

    def parse_response(self, raw: str, known_ids: set[str]) -> list[RelevanceScore]:
        text = raw.strip()
        if text.startswith("```"):
            text = text.strip("`")
            if text.lower().startswith("json"):
                text = text[4:]
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ExternalServiceError(self.name, f"invalid JSON from model: {exc}") from exc

        if isinstance(data, dict):
            data = data.get("scores", [])
        if not isinstance(data, list):
            raise ExternalServiceError(self.name, "expected a JSON list of scores")

        scores: list[RelevanceScore] = []
        seen: set[str] = set()
        for item in data:
            if not isinstance(item, dict):
                continue
            pid = str(item.get("place_id", ""))
            if pid not in known_ids or pid in seen:
                continue
            try:
                value = _clamp_score(item.get("score", 0))
            except (TypeError, ValueError):
                logger.warning("Unusable score for %s: %r", pid, item.get("score"))
                continue
            seen.add(pid)
            scores.append(RelevanceScore(pid, value, str(item.get("reasoning", ""))))
        return scores


# ─────────────────────────────────────────────────────────────────────────────
# Offline keyword scorer
# ─────────────────────────────────────────────────────────────────────────────

class KeywordRelevanceScorer(RelevanceScorer):
    """
    Deterministic scorer with no external calls.

    base 40
      +15 per interest matching a category / tag / interest tag (max +45)
      +20 if the spot is a must-visit
      +10 hidden gem when preferred, +10 indoor when rainy-day preferred
      −15 crowded when avoiding crowds
    clamped to [0, 100]
    """

    name = "keyword_relevance"

    BASE = 40.0
    PER_INTEREST = 15.0
    MAX_INTEREST_BONUS = 45.0

    def score_relevance(
        self,
        candidates: list[RelevanceInput],
        preferences: RelevancePreferences,
    ) -> list[RelevanceScore]:
        trip = preferences.trip
        fixed = {n.strip().lower() for n in preferences.fixed_spot_names if n.strip()}
        results: list[RelevanceScore] = []

        for cand in candidates:
            attrs = cand.attributes or {}
            vocab = [v.lower() for v in (
                list(cand.categories)
                + list(attrs.get("tags") or [])
                + list(attrs.get("interest_tags") or [])
            )]
            matched = [
                i for i in trip.interests
                if any(i.lower() in v or v in i.lower() for v in vocab)
            ]
            score = self.BASE + min(self.MAX_INTEREST_BONUS, self.PER_INTEREST * len(matched))
            reasons = [f"interests: {', '.join(matched)}"] if matched else []

            if cand.name.strip().lower() in fixed:
                score += 20.0
                reasons.append("must-visit")
            if trip.prefer_hidden_gems and attrs.get("hidden_gem"):
                score += 10.0
                reasons.append("hidden gem")
            if trip.prefer_rainy_day and attrs.get("indoor"):
                score += 10.0
                reasons.append("indoor")
            if trip.avoid_crowds and attrs.get("crowded"):
                score -= 15.0
                reasons.append("crowded")

            results.append(RelevanceScore(
                place_id=cand.place_id,
                score=_clamp_score(score),
                reasoning="; ".join(reasons) or "no preference match",
            ))
        return results
