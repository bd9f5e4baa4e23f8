"""
Readiness Classifier

Decides whether a bottle is ready to drink, its drinking window and how
confident that judgment is. Deterministic and explainable:

- Sparkling / white / rosé: age bands only, no drink window
- Red: aging potential (from the structural profile, default medium) selects a
  threshold table; age against that table gives HOLD or one of four READY bands

Older vintages are never less ready than younger ones within a tier: every
band boundary is a fixed age, so the label is monotonic in age.

Invalid input (missing/unknown type, vintage outside [1900, current+1]) never
raises; it degrades to a READY/LOW fallback verdict.
"""

import logging
from datetime import datetime
from typing import List, Optional, Tuple

from cellarwise.constants import (
    DRINK_WINDOW_VERSION,
    RED_AGING_THRESHOLDS,
    AgingPotential,
    AlgorithmConstants,
    Confidence,
    ReadinessLabel,
    WineType,
)
from cellarwise.identity import family_identity
from cellarwise.schema import ReadinessVerdict, StructuralProfile, Wine
from cellarwise.utils import utcnow

logger = logging.getLogger(__name__)


def _years(age: int) -> str:
    return 'year' if age == 1 else 'years'


def estimate_aging_potential(profile: Optional[StructuralProfile]) -> AgingPotential:
    """
    Aging potential tier from structure.

    score = tannin + body + 0.5*oak + 0.5*power + 0.3*acidity, rescaled from
    its maximum (16.5) to 0-15: >= 10 high, >= 6 medium, else low.
    Without a profile the tier defaults to medium.
    """
    if profile is None:
        return AgingPotential.MEDIUM

    weights = AlgorithmConstants.AGING_WEIGHTS
    score = sum(getattr(profile, axis) * weight for axis, weight in weights.items())
    normalized = score / AlgorithmConstants.AGING_MAX_SCORE * AlgorithmConstants.AGING_SCALE

    if normalized >= AlgorithmConstants.AGING_HIGH_CUTOFF:
        return AgingPotential.HIGH
    if normalized >= AlgorithmConstants.AGING_MEDIUM_CUTOFF:
        return AgingPotential.MEDIUM
    return AgingPotential.LOW


def _verdict(
    label: ReadinessLabel,
    confidence: Confidence,
    reasons: List[str],
    computed_at: datetime,
    window: Optional[Tuple[int, int]] = None,
    assumptions: Optional[str] = None
) -> ReadinessVerdict:
    return ReadinessVerdict(
        label=label,
        drink_window_start=window[0] if window else None,
        drink_window_end=window[1] if window else None,
        confidence=confidence,
        reasons=reasons,
        assumptions=assumptions,
        version=DRINK_WINDOW_VERSION,
        computed_at=computed_at,
    )


def fallback_verdict(reason: str, computed_at: datetime) -> ReadinessVerdict:
    """Default READY/LOW verdict for input that cannot be analyzed."""
    return _verdict(
        ReadinessLabel.READY,
        Confidence.LOW,
        [
            f"Unable to analyze: {reason}",
            'Defaulting to "Ready" status',
            "Manual verification recommended",
        ],
        computed_at,
        assumptions="Analysis failed due to missing or invalid data",
    )


def _sparkling(age: int, now: datetime) -> ReadinessVerdict:
    if age < 3:
        return _verdict(ReadinessLabel.READY, Confidence.HIGH, [
            "Fresh sparkling wine, best enjoyed young",
            f"{age} {_years(age)} old - optimal for sparklings",
            "Maintains vibrant bubbles and fresh fruit",
        ], now)
    if age < 5:
        return _verdict(ReadinessLabel.READY, Confidence.MEDIUM, [
            "Mature sparkling, drink soon",
            f"{age} years old - approaching peak freshness window",
            "May be losing some effervescence",
        ], now, assumptions="Assumes proper storage in cool, dark conditions")
    return _verdict(ReadinessLabel.READY, Confidence.LOW, [
        "Older sparkling, drink promptly",
        f"{age} years old - past typical freshness window",
        "Quality depends heavily on storage",
    ], now, assumptions="Quality uncertain without tasting notes. May be past peak.")


def _white_rose(age: int, wine_type: WineType, now: datetime) -> ReadinessVerdict:
    kind = 'rosé' if wine_type is WineType.ROSE else 'white'

    if age < 2:
        return _verdict(ReadinessLabel.READY, Confidence.HIGH, [
            f"Fresh {kind} wine at optimal age",
            f"{age} {_years(age)} old - prime freshness",
            "Crisp acidity and bright fruit flavors",
        ], now)
    if age < 5:
        return _verdict(ReadinessLabel.READY, Confidence.MEDIUM, [
            f"Mature {kind}, drink within a year",
            f"{age} years old - developing complexity",
            "May be losing some freshness",
        ], now, assumptions="Assumes typical table wine. Premium whites may age longer.")
    return _verdict(ReadinessLabel.READY, Confidence.LOW, [
        f"Older {kind}, drink promptly",
        f"{age} years old - likely past peak",
        "Quality depends on storage and producer",
    ], now, assumptions="May be oxidized or faded. Premium whites with oak may still be good.")


def _red(
    age: int,
    current_year: int,
    profile: Optional[StructuralProfile],
    now: datetime
) -> ReadinessVerdict:
    potential = estimate_aging_potential(profile)
    young, prime_start, prime_end, mature = RED_AGING_THRESHOLDS[potential]

    if age < young:
        return _verdict(
            ReadinessLabel.HOLD,
            Confidence.MEDIUM if profile is not None else Confidence.LOW,
            [
                f"Only {age} {_years(age)} old - still young",
                "Red wines benefit from aging",
                "Tannins are still settling",
                f"Estimated {potential.value} aging potential",
            ],
            now,
            window=(current_year + (young - age), current_year + (prime_end - age)),
            assumptions=(
                "Based on wine structure analysis" if profile is not None
                else "Based on typical red wine aging patterns"
            ),
        )

    if age < prime_start + 2:
        return _verdict(ReadinessLabel.READY, Confidence.HIGH, [
            f"{age} years old - entering drinking window",
            "Tannins have softened",
            "Fruit and structure in balance",
            f"Peak window: next {prime_end - age} years",
        ], now, window=(current_year, current_year + (prime_end - age)))

    if age < prime_end:
        return _verdict(ReadinessLabel.READY, Confidence.HIGH, [
            f"{age} years old - at peak maturity",
            "Complex tertiary aromas developed",
            "Well-integrated tannins",
            "Optimal drinking window",
        ], now, window=(current_year, current_year + (prime_end - age)))

    if age < mature:
        return _verdict(
            ReadinessLabel.READY,
            Confidence.MEDIUM,
            [
                f"{age} years old - fully mature",
                "Drink within the next few years",
                "Quality depends on storage",
            ],
            now,
            window=(current_year, current_year + 3),
            assumptions="Assumes proper cellar storage. May be past peak without ideal conditions.",
        )

    return _verdict(
        ReadinessLabel.READY,
        Confidence.LOW,
        [
            f"{age} years old - very mature",
            "Likely past peak, drink promptly",
            "May be fading or oxidized",
        ],
        now,
        window=(current_year, current_year + 2),
        assumptions="Uncertain quality without recent tasting notes. Storage history critical.",
    )


def _enrich(verdict: ReadinessVerdict, wine: Wine) -> ReadinessVerdict:
    extra = []
    if wine.region:
        extra.append(f"From {wine.region}")
    grapes = [g for g in wine.grapes if g]
    if grapes:
        extra.append(f"Grapes: {', '.join(grapes)}")

    if not extra:
        return verdict
    return verdict.model_copy(update={'reasons': verdict.reasons + extra})


def classify_readiness(
    wine: Wine,
    current_year: Optional[int] = None,
    profile: Optional[StructuralProfile] = None,
    now: Optional[datetime] = None
) -> ReadinessVerdict:
    """
    Classify a wine's readiness.

    Args:
        wine: Wine metadata (type, vintage, region, grapes)
        current_year: Year to age the wine against (default: now.year)
        profile: Structural profile; falls back to the wine's cached profile
        now: Timestamp stamped on the verdict (default: current UTC time)

    Returns:
        ReadinessVerdict, never raises on bad data
    """
    now = now or utcnow()
    current_year = current_year if current_year is not None else now.year
    if profile is None:
        profile = wine.profile

    wine_type = wine.parsed_type
    if wine_type is None:
        reason = "Missing wine type" if not wine.wine_type else "Unknown wine type"
        logger.warning(f"{reason} {wine.wine_type!r} for {wine.name!r}")
        return fallback_verdict(reason, now)

    vintage = wine.vintage
    if not vintage or vintage < AlgorithmConstants.MIN_VINTAGE or vintage > current_year + 1:
        logger.warning(f"Invalid vintage {vintage!r} for {wine.name!r}")
        return fallback_verdict("Invalid vintage", now)

    age = max(0, current_year - vintage)
    logger.debug(
        f"Classifying {wine.name!r}: vintage={vintage} age={age} "
        f"type={wine_type.value} profile={'yes' if profile else 'no'}"
    )

    if wine_type is WineType.SPARKLING:
        verdict = _sparkling(age, now)
    elif wine_type in (WineType.WHITE, WineType.ROSE):
        verdict = _white_rose(age, wine_type, now)
    else:
        verdict = _red(age, current_year, profile, now)

    verdict = _enrich(verdict, wine)
    logger.debug(f"Verdict for {wine.name!r}: {verdict.label.value}/{verdict.confidence.value}")
    return verdict


def verdict_cache_key(
    wine: Wine,
    profile: Optional[StructuralProfile] = None
) -> Tuple[str, Optional[int], Optional[datetime], int]:
    """Key under which a verdict may be cached: identity, vintage, profile age, version."""
    profile = profile if profile is not None else wine.profile
    return (
        family_identity(wine.producer, wine.name),
        wine.vintage,
        profile.updated_at if profile is not None else None,
        DRINK_WINDOW_VERSION,
    )
