"""
Food-Pairing Scorer and evening lineup sequencing.

`pairing_score` is a signed additive score over independent food-attribute
rules; `pairing_explanation` picks one short phrase for a wine's place in a
multi-wine evening. `plan_lineup` chooses and orders the wines.
"""

import logging
from typing import List, Optional

from cellarwise.constants import AlgorithmConstants, SequencePosition, WineType
from cellarwise.profile_estimator import estimate_profile
from cellarwise.recommender import RandomSource, SystemRandomSource
from cellarwise.schema import Bottle, FoodProfile, LineupSlot, StructuralProfile

logger = logging.getLogger(__name__)

DEFAULT_ALCOHOL = 13.0


def pairing_score(profile: StructuralProfile, food: FoodProfile) -> int:
    """
    Score how well a wine's structure fits a dish.

    Positive means a good match; rules for each food attribute apply
    independently and add up.

    Args:
        profile: Wine structural profile
        food: Dish description

    Returns:
        Signed integer score
    """
    score = 0
    body, tannin, acidity, oak = profile.body, profile.tannin, profile.acidity, profile.oak

    # Rich red meat
    if food.protein in ('beef', 'lamb') and food.fat == 'high':
        if body >= 4:
            score += 15
        if tannin >= 3:
            score += 15
        if acidity >= 3:
            score += 10
        if body < 3:
            score -= 10

    if food.sauce == 'tomato':
        if acidity >= 4:
            score += 20
        if 2 <= body <= 4:
            score += 10
        if oak < 3:
            score += 5
        if acidity < 3:
            score -= 15

    if food.spice == 'high':
        if profile.sweetness > 0:
            score += 15
        if 2 <= body <= 3:
            score += 10
        alcohol = profile.alcohol_est or DEFAULT_ALCOHOL
        if tannin >= 4 and alcohol > 13.5:
            score -= 20

    if food.smoke == 'high' or food.sauce == 'bbq':
        if oak >= 3:
            score += 15
        if body >= 4:
            score += 10
        if oak < 2:
            score -= 10

    if food.protein == 'fish':
        if body <= 2:
            score += 15
        if acidity >= 4:
            score += 15
        if oak < 3:
            score += 10
        if tannin > 2:
            score -= 20

    if food.protein in ('chicken', 'veggie'):
        if 2 <= body <= 4:
            score += 10
        if acidity >= 3:
            score += 10

    if food.sauce == 'creamy':
        if body >= 3:
            score += 10
        if acidity >= 3:
            score += 10
        if oak >= 2:
            score += 5

    return score


def pairing_explanation(
    profile: StructuralProfile,
    food: FoodProfile,
    position: SequencePosition
) -> str:
    """One-line pairing note: position first, then food match, then dominant trait."""
    if position is SequencePosition.FIRST:
        if profile.acidity >= 4:
            return 'Fresh opener - awakens the palate'
        if profile.body <= 2:
            return 'Light start - sets the stage'
        return 'Perfect warm-up wine'

    if position is SequencePosition.LAST:
        if profile.power >= 8:
            return 'Grand finale - bold and memorable'
        if profile.sweetness > 0:
            return 'Sweet ending note'
        return 'Perfect closing wine'

    if food.protein in ('beef', 'lamb'):
        if profile.tannin >= 4 and profile.body >= 4:
            return 'Powerful match - tannins cut through rich meat'
        if profile.body >= 4:
            return 'Bold pairing - stands up to hearty flavors'

    if food.sauce == 'tomato' and profile.acidity >= 4:
        return 'Bright acidity complements tomato perfectly'

    if food.spice == 'high':
        if profile.sweetness > 0:
            return 'Touch of sweetness tames the heat'
        if profile.tannin <= 3:
            return "Gentle structure won't amplify spice"

    if food.smoke == 'high' or food.sauce == 'bbq':
        if profile.oak >= 3:
            return 'Oak echoes smoky flavors beautifully'
        if profile.body >= 4:
            return 'Rich body matches bold smokiness'

    if food.protein == 'fish' and profile.acidity >= 4:
        return 'Crisp and refreshing with seafood'

    if profile.power >= 7:
        return 'Main event wine - powerful and structured'
    if profile.acidity >= 4:
        return 'Refreshing lift between courses'
    if profile.oak >= 4:
        return 'Complex and layered'

    return 'Excellent choice for this moment'


# =======================
# EVENING LINEUP
# =======================

def lineup_size(group_size: str) -> int:
    if group_size == '2-4':
        return 3
    if group_size == '5-8':
        return 4
    return 5


def _profile_of(bottle: Bottle) -> StructuralProfile:
    return bottle.wine.profile or estimate_profile(bottle.wine)


def _position(index: int, count: int) -> SequencePosition:
    if index == 0:
        return SequencePosition.FIRST
    if index == count - 1:
        return SequencePosition.LAST
    return SequencePosition.MIDDLE


def plan_lineup(
    bottles: List[Bottle],
    group_size: str,
    food: Optional[FoodProfile] = None,
    reds_only: bool = False,
    min_rating: Optional[float] = None,
    random_source: Optional[RandomSource] = None
) -> List[LineupSlot]:
    """
    Pick and order wines for an evening.

    Ready bottles come first, then the best food matches (when a dish is
    given), with random tie-breaks. The chosen wines are served lightest to
    most powerful.

    Args:
        bottles: Cellar bottles
        group_size: "2-4", "5-8" or "9+"
        food: Optional dish to pair against
        reds_only: Only consider red wines
        min_rating: Minimum community rating
        random_source: Tie-break source (default: SystemRandomSource)

    Returns:
        Ordered lineup slots (possibly fewer than requested, or empty)
    """
    random_source = random_source or SystemRandomSource()
    count = lineup_size(group_size)

    candidates = [b for b in bottles if b.quantity > 0]
    if reds_only:
        candidates = [b for b in candidates if b.wine.parsed_type is WineType.RED]
    if min_rating is not None:
        candidates = [b for b in candidates if (b.wine.rating or 0) >= min_rating]

    # Keyed by position: bottle ids are not guaranteed unique
    profiles = [_profile_of(b) for b in candidates]
    scores = [pairing_score(p, food) if food is not None else 0 for p in profiles]

    def rank_key(i: int):
        bottle = candidates[i]
        ready = bottle.verdict is not None and bottle.verdict.label.is_drinkable
        return (0 if ready else 1, -scores[i], random_source.next())

    selected = sorted(range(len(candidates)), key=rank_key)[:count]
    selected.sort(key=lambda i: profiles[i].power)

    dish = food or FoodProfile()
    labels = AlgorithmConstants.LINEUP_LABELS
    lineup = [
        LineupSlot(
            position=pos + 1,
            label=labels[pos] if pos < len(labels) else f"Wine {pos + 1}",
            bottle=candidates[i],
            pairing_score=scores[i] if food is not None else None,
            explanation=pairing_explanation(profiles[i], dish, _position(pos, len(selected))),
        )
        for pos, i in enumerate(selected)
    ]

    logger.info(f"Planned lineup of {len(lineup)} wines for group {group_size}")
    return lineup
