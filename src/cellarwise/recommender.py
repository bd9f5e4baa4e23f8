"""
Recommendation Scorer

Ranks cellar bottles against a situational context (meal, occasion, vibe,
constraints). Additive scoring from a base of 50:

    meal/type bonus + occasion + vibe + readiness
    - recently opened penalty - rotation penalty
    + jitter in [0, 25)

The jitter is deliberate: repeated identical requests should not always
return the same shortlist. It comes from an injectable RandomSource so a
seeded source can reproduce a ranking.

Rotation state is threaded explicitly: the caller passes it in and receives
the updated state back in the result.
"""

import logging
import random
from datetime import datetime, timedelta
from typing import List, Optional, Protocol, Tuple

from pydantic import BaseModel, Field

from cellarwise.config import DEFAULT_RECOMMENDATION_COUNT, HISTORY_PENALTY_DAYS
from cellarwise.constants import MEAL_RULES, AlgorithmConstants, ReadinessLabel, WineType
from cellarwise.rotation import RotationState
from cellarwise.schema import Bottle, Recommendation, RecommendationContext
from cellarwise.utils import ensure_aware, utcnow

logger = logging.getLogger(__name__)

NO_BOTTLES_MESSAGE = "No bottles available in your cellar."


# =======================
# RANDOMNESS
# =======================

class RandomSource(Protocol):
    """Source of uniform floats in [0, 1)."""

    def next(self) -> float:
        ...


class SystemRandomSource:
    """Production randomness (non-reproducible)."""

    def __init__(self):
        self._rng = random.SystemRandom()

    def next(self) -> float:
        return self._rng.random()


class SeededRandomSource:
    """Reproducible randomness for ranking-stability checks."""

    def __init__(self, seed: int):
        self.seed = seed
        self._rng = random.Random(seed)

    def next(self) -> float:
        return self._rng.random()


class RecommendationResult(BaseModel):
    """Ranked shortlist plus the updated rotation state."""

    recommendations: List[Recommendation] = Field(default_factory=list)
    message: Optional[str] = None
    rotation_state: RotationState


# =======================
# FILTERING
# =======================

def _apply_constraints(bottles: List[Bottle], context: RecommendationContext) -> List[Bottle]:
    """Hard filters; falls back to the unfiltered set if they empty it."""
    constraints = context.constraints
    filtered = bottles

    if constraints.max_price:
        filtered = [
            b for b in filtered
            if b.price is None or b.price <= constraints.max_price
        ]

    if constraints.prefer_ready:
        filtered = [
            b for b in filtered
            if b.verdict is not None and b.verdict.label.is_drinkable
        ]

    if not filtered:
        logger.info("Constraints removed every bottle, falling back to full candidate set")
        return bottles

    return filtered


# =======================
# SCORING
# =======================

def _meal_bonus(meal: str, wine_type: Optional[WineType]) -> float:
    for rule in MEAL_RULES:
        if any(keyword in meal for keyword in rule.keywords):
            return rule.bonuses.get(wine_type, 0.0)
    return 0.0


def _occasion_bonus(occasion: str, wine_type: Optional[WineType], price: Optional[float]) -> float:
    bonus = 0.0
    if 'celebrat' in occasion or 'special' in occasion:
        if wine_type is WineType.SPARKLING:
            bonus += 20
        if price and price > 50:
            bonus += 10
    if 'date' in occasion:
        if wine_type is WineType.SPARKLING:
            bonus += 15
        if wine_type is WineType.RED:
            bonus += 10
    return bonus


def _vibe_bonus(vibe: str, bottle: Bottle, wine_type: Optional[WineType]) -> float:
    bonus = 0.0
    if 'special' in vibe or 'surprise' in vibe:
        if bottle.price and bottle.price > 40:
            bonus += 10
        if bottle.verdict is not None and bottle.verdict.label is ReadinessLabel.PEAK_SOON:
            bonus += 15
    if 'casual' in vibe or 'easy' in vibe:
        if wine_type in (WineType.WHITE, WineType.ROSE):
            bonus += 10
    return bonus


def _readiness_bonus(bottle: Bottle, current_year: int) -> float:
    verdict = bottle.verdict
    if verdict is None:
        return 0.0
    if verdict.label is ReadinessLabel.PEAK_SOON:
        return AlgorithmConstants.READINESS_PEAK_BONUS
    if verdict.label is ReadinessLabel.READY:
        if verdict.in_window(current_year):
            return AlgorithmConstants.READINESS_IN_WINDOW_BONUS
        return AlgorithmConstants.READINESS_READY_BONUS
    return 0.0


def recently_opened(bottle: Bottle, now: datetime) -> bool:
    if bottle.last_opened_at is None:
        return False
    return ensure_aware(bottle.last_opened_at) >= ensure_aware(now) - timedelta(days=HISTORY_PENALTY_DAYS)


def score_bottle(
    bottle: Bottle,
    context: RecommendationContext,
    rotation_ids: set,
    random_source: RandomSource,
    now: datetime
) -> float:
    """
    Additive score for one bottle, including jitter.

    Args:
        bottle: Candidate bottle
        context: Meal / occasion / vibe
        rotation_ids: Bottle ids shown within the rotation window
        random_source: Jitter source
        now: Reference time for history and drink window

    Returns:
        Total score
    """
    wine_type = bottle.wine.parsed_type
    meal = (context.meal_type or '').lower()
    occasion = (context.occasion or '').lower()
    vibe = (context.vibe or '').lower()

    score = AlgorithmConstants.BASE_SCORE
    score += _meal_bonus(meal, wine_type)
    score += _occasion_bonus(occasion, wine_type, bottle.price)
    score += _vibe_bonus(vibe, bottle, wine_type)
    score += _readiness_bonus(bottle, now.year)

    if recently_opened(bottle, now):
        score -= AlgorithmConstants.RECENTLY_OPENED_PENALTY
    if bottle.id in rotation_ids:
        score -= AlgorithmConstants.ROTATION_PENALTY

    score += AlgorithmConstants.JITTER_MAX * random_source.next()
    return score


# =======================
# TEXT
# =======================

def explain(bottle: Bottle, context: RecommendationContext, rank: int) -> str:
    """Short explanation of why a bottle made the shortlist."""
    wine = bottle.wine
    kind = wine.parsed_type.value if wine.parsed_type else (wine.wine_type or 'wine').lower()
    origin = wine.region or wine.producer or 'your cellar'
    meal = context.meal_type or 'your meal'
    occasion = (context.occasion or '').lower()

    if rank == 1:
        parts = [f"This {kind} wine from {origin} is an excellent choice for {meal}."]
    else:
        parts = [f"A great {kind} option from {origin} that pairs well with {meal}."]

    if bottle.verdict is not None:
        if bottle.verdict.label is ReadinessLabel.PEAK_SOON:
            parts.append("It's at peak drinking condition right now!")
        elif bottle.verdict.label is ReadinessLabel.READY:
            parts.append("It's ready to drink and will show beautifully.")

    if 'celebrat' in occasion or 'special' in occasion:
        parts.append("Perfect for a special occasion.")
    elif 'date' in occasion:
        parts.append("Great for a romantic evening.")
    elif 'friends' in occasion or 'hosting' in occasion:
        parts.append("Your guests will love this.")

    return ' '.join(parts)


def serving_instructions(bottle: Bottle, current_year: int) -> str:
    """Serving temperature and decanting advice."""
    wine_type = bottle.wine.parsed_type
    temp = '16°C'
    decanting = 'No decanting needed'

    if wine_type is WineType.RED:
        temp = f"{bottle.serve_temp_c}°C" if bottle.serve_temp_c else '16-18°C'
        if bottle.decant_minutes:
            decanting = f"Decant for {bottle.decant_minutes} minutes"
        elif bottle.wine.vintage and bottle.wine.vintage < current_year - 5:
            decanting = 'Decant for 30 minutes for best results'
        else:
            decanting = 'No decanting needed, but 15 minutes can help'
    elif wine_type in (WineType.WHITE, WineType.ROSE):
        temp = f"{bottle.serve_temp_c}°C" if bottle.serve_temp_c else '8-12°C'
    elif wine_type is WineType.SPARKLING:
        temp = '6-8°C'
        decanting = 'Serve immediately, do not decant'

    return f"Serve at {temp}. {decanting}."


# =======================
# ENTRY POINT
# =======================

def recommend(
    context: RecommendationContext,
    candidates: List[Bottle],
    rotation_state: Optional[RotationState] = None,
    k: int = DEFAULT_RECOMMENDATION_COUNT,
    random_source: Optional[RandomSource] = None,
    now: Optional[datetime] = None
) -> RecommendationResult:
    """
    Rank `candidates` for `context` and return the top `k`.

    Bottles with no remaining quantity are never recommended. If constraints
    filter out everything, the unfiltered set is used instead, so a non-empty
    cellar always yields a recommendation.

    Args:
        context: Recommendation context
        candidates: Bottles with verdicts and recent-history facts
        rotation_state: Recently shown bottles (not mutated)
        k: Maximum number of recommendations
        random_source: Jitter source (default: SystemRandomSource)
        now: Reference time (default: current UTC time)

    Returns:
        RecommendationResult with ranked recommendations and updated rotation state
    """
    now = now or utcnow()
    random_source = random_source or SystemRandomSource()
    state = (rotation_state or RotationState()).pruned(now)

    available = [b for b in candidates if b.quantity > 0]
    if not available:
        logger.info("No bottles available for recommendation")
        return RecommendationResult(message=NO_BOTTLES_MESSAGE, rotation_state=state)

    pool = _apply_constraints(available, context)
    rotation_ids = state.bottle_ids(now)

    scored: List[Tuple[float, Bottle]] = [
        (score_bottle(b, context, rotation_ids, random_source, now), b)
        for b in pool
    ]
    scored.sort(key=lambda item: item[0], reverse=True)
    top = scored[:max(k, 0)]

    recommendations = [
        Recommendation(
            rank=rank,
            bottle=bottle,
            score=round(score, 2),
            explanation=explain(bottle, context, rank),
            serving_instructions=serving_instructions(bottle, now.year),
        )
        for rank, (score, bottle) in enumerate(top, start=1)
    ]

    logger.info(
        f"Recommended {len(recommendations)} of {len(pool)} candidates "
        f"({len(available)} in stock)"
    )

    return RecommendationResult(
        recommendations=recommendations,
        rotation_state=state.with_shown([r.bottle_id for r in recommendations], now),
    )
