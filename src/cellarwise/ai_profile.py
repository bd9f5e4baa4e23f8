"""
AI structural profile generator.

Asks an OpenAI chat model for a wine's structure (body, tannin, acidity, oak,
sweetness, alcohol, style tags) and turns the validated answer into a
StructuralProfile. Power is always recomputed locally from the axes so AI and
heuristic profiles share one scale.

Failures raise ProfileGenerationError; the profile chain catches it and falls
back to the heuristic estimator.
"""

import json
import os
from datetime import datetime
from typing import Optional

from openai import OpenAI, RateLimitError, APIError
from pydantic import ValidationError
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

from cellarwise.config import OPENAI_MODEL, OPENAI_TEMPERATURE, OPENAI_TIMEOUT_SECONDS
from cellarwise.constants import AlgorithmConstants, LLMProfileResponse, ProfileConfidence, ProfileSource
from cellarwise.error_handling import ProfileGenerationError, handle_llm_error, validate_llm_response
from cellarwise.profile_estimator import compute_power
from cellarwise.schema import StructuralProfile, Wine
from cellarwise.utils import LLMCache, get_llm_cache, logger, sanitize_text_input, utcnow

SYSTEM_PROMPT = """You are a professional sommelier. Analyze wines and provide structured profiles.

For each wine, provide:
- body (1-5): 1=very light, 3=medium, 5=very full
- tannin (1-5): 1=low/none, 3=medium, 5=very high (mainly for reds; whites/rosés typically 1-2)
- acidity (1-5): 1=very low, 3=medium, 5=very high
- oak (1-5): 1=none/unoaked, 3=moderate, 5=heavily oaked
- sweetness (0-5): 0=bone dry, 1-2=off-dry, 3-4=medium sweet, 5=very sweet
- alcohol_est (number or null): Estimated ABV
- style_tags (array of 3-8 short kebab-case descriptors)
- confidence (med|high): Your confidence in this assessment

Return JSON only with these exact field names."""

REQUIRED_KEYS = ['body', 'tannin', 'acidity', 'oak', 'sweetness']


def build_wine_context(wine: Wine) -> str:
    """Describe a wine for the prompt; every free-text field is sanitized."""
    name = sanitize_text_input(wine.name, max_length=200) or 'Unknown wine'
    lines = [name + (f" ({wine.vintage})" if wine.vintage else '')]

    if wine.producer:
        lines[0] += f" by {sanitize_text_input(wine.producer, max_length=200)}"
    if wine.region:
        lines[0] += f" from {sanitize_text_input(wine.region, max_length=100)}"
    if wine.country:
        lines[0] += f", {sanitize_text_input(wine.country, max_length=100)}"

    lines.append(f"Color: {sanitize_text_input(wine.wine_type, max_length=50) or 'Unknown'}")
    grapes = ', '.join(sanitize_text_input(g, max_length=50) for g in wine.grapes if g)
    lines.append(f"Grapes: {grapes or 'Unknown'}")

    if wine.regional_style:
        lines.append(f"Regional Style: {sanitize_text_input(wine.regional_style, max_length=100)}")
    if wine.rating:
        lines.append(f"Community Rating: {wine.rating}/5")

    return "Wine: " + "\n".join(lines)


class OpenAIProfileGenerator:
    """
    Structural profile generation via the OpenAI chat completions API.

    Features:
    - Retry with exponential backoff on rate limits and API errors
    - Client-side request timeout
    - Prompt input sanitization
    - Response caching (LLMCache)
    """

    def __init__(
        self,
        client: Optional[OpenAI] = None,
        model: str = OPENAI_MODEL,
        cache: Optional[LLMCache] = None,
        use_cache: bool = True
    ):
        """
        Args:
            client: Preconfigured OpenAI client (default: built from OPENAI_API_KEY)
            model: Chat model name
            cache: Response cache (default: shared LLMCache)
            use_cache: Disable to always call the API
        """
        if client is None:
            api_key = os.getenv("OPENAI_API_KEY")
            if not api_key:
                raise ValueError("OPENAI_API_KEY not found in environment variables")
            client = OpenAI(api_key=api_key, timeout=OPENAI_TIMEOUT_SECONDS)

        self.client = client
        self.model = model
        self.cache = (cache or get_llm_cache()) if use_cache else None

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type((RateLimitError, APIError)),
        reraise=True
    )
    def _call_openai_with_retry(self, messages: list) -> dict:
        """
        Call OpenAI with automatic retry on transient errors.

        Returns:
            Parsed JSON response
        """
        try:
            logger.debug("Calling OpenAI API for structural profile...")
            completion = self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                response_format={"type": "json_object"},
                temperature=OPENAI_TEMPERATURE,
                timeout=OPENAI_TIMEOUT_SECONDS,
            )
            return json.loads(completion.choices[0].message.content)

        except RateLimitError as e:
            logger.warning(f"Rate limit hit, retrying... ({e})")
            raise
        except APIError as e:
            logger.error(f"OpenAI API error: {e}")
            raise

    def _fetch(self, prompt: str) -> dict:
        if self.cache is not None:
            cached = self.cache.get(prompt, self.model)
            if cached is not None:
                return cached

        messages = [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": f"Analyze this wine and provide its profile:\n\n{prompt}"},
        ]
        data = self._call_openai_with_retry(messages)

        if self.cache is not None and validate_llm_response(data, REQUIRED_KEYS, "profile generation"):
            self.cache.set(prompt, self.model, data)

        return data

    def generate(self, wine: Wine, now: Optional[datetime] = None) -> StructuralProfile:
        """
        Generate a structural profile for `wine`.

        Raises:
            ProfileGenerationError: On API failure, timeout or an unusable response
        """
        operation = f"profile generation for {wine.name!r}"
        prompt = build_wine_context(wine)

        try:
            data = self._fetch(prompt)
            if not validate_llm_response(data, REQUIRED_KEYS, operation):
                raise ProfileGenerationError(f"Incomplete profile response during {operation}")
            parsed = LLMProfileResponse(**data)
        except ProfileGenerationError:
            raise
        except (ValidationError, json.JSONDecodeError) as e:
            handle_llm_error(e, operation)
            raise ProfileGenerationError(f"Invalid profile response during {operation}") from e
        except Exception as e:
            handle_llm_error(e, operation)
            raise

        confidence = ProfileConfidence.parse(parsed.confidence)
        if confidence is ProfileConfidence.LOW:
            confidence = ProfileConfidence.MEDIUM

        tags = list(dict.fromkeys(t.strip().lower() for t in parsed.style_tags if t.strip()))

        profile = StructuralProfile(
            body=parsed.body,
            tannin=parsed.tannin,
            acidity=parsed.acidity,
            oak=parsed.oak,
            sweetness=parsed.sweetness,
            alcohol_est=parsed.alcohol_est,
            power=compute_power(parsed.body, parsed.tannin, parsed.oak, parsed.acidity, parsed.sweetness),
            style_tags=tags[:AlgorithmConstants.MAX_STYLE_TAGS],
            confidence=confidence,
            source=ProfileSource.AI,
            updated_at=now or utcnow(),
        )
        logger.info(f"AI profile for {wine.name!r}: power {profile.power}, confidence {confidence.value}")
        return profile
