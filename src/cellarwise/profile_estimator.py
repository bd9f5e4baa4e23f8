"""
Structural Profile Estimator

Derives a 1-5 body/tannin/acidity/oak profile (sweetness 0-5, power 1-10) for
a wine from its metadata, and resolves the profile to use for a wine through
an ordered chain of providers:

    cached / externally-sourced  ->  AI generator  ->  heuristic

The heuristic provider always succeeds, so the chain never comes back empty.
"""

import logging
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Protocol

import numpy as np

from cellarwise.config import PROFILE_STALE_DAYS
from cellarwise.constants import (
    AlgorithmConstants,
    ProfileConfidence,
    ProfileSource,
    WineType,
)
from cellarwise.schema import StructuralProfile, Wine
from cellarwise.utils import clamp, ensure_aware, round_half_up, safe_divide, utcnow

logger = logging.getLogger(__name__)


# Type bases: (body, tannin, acidity, oak, sweetness, alcohol_est, tags)
_TYPE_BASES = {
    WineType.RED: (3, 3, 3, 2, 0, 13.0, ['red-wine']),
    WineType.WHITE: (2, 1, 4, 1, 0, 12.5, ['white-wine']),
    WineType.ROSE: (2, 2, 4, 1, 0, 12.0, ['rose']),
    WineType.SPARKLING: (2, 1, 5, 1, 1, 12.0, ['sparkling', 'refreshing']),
}


class _Axes:
    """Mutable working copy of the profile axes; every bump is clamped."""

    def __init__(self, body, tannin, acidity, oak, sweetness, alcohol_est):
        self.body = body
        self.tannin = tannin
        self.acidity = acidity
        self.oak = oak
        self.sweetness = sweetness
        self.alcohol_est = alcohol_est

    def bump(self, **deltas: int) -> None:
        for axis, delta in deltas.items():
            self.set(**{axis: getattr(self, axis) + delta})

    def set(self, **values: int) -> None:
        for axis, value in values.items():
            if axis == 'sweetness':
                low, high = AlgorithmConstants.SWEETNESS_MIN, AlgorithmConstants.SWEETNESS_MAX
            else:
                low, high = AlgorithmConstants.AXIS_MIN, AlgorithmConstants.AXIS_MAX
            setattr(self, axis, int(clamp(value, low, high)))


def compute_power(body: int, tannin: int, oak: int, acidity: int, sweetness: int) -> int:
    """
    Weighted structure sum scaled to 1-10.

    power = round(10 * (2*body + 1.5*tannin + oak + 0.8*acidity + 0.2*sweetness) / 27.5)
    clamped to [1, 10]. 27.5 is the weighted sum of a maximal (all 5) profile.
    """
    weights = AlgorithmConstants.POWER_WEIGHTS
    axes = ['body', 'tannin', 'oak', 'acidity', 'sweetness']
    w = np.array([weights[a] for a in axes])
    values = np.array([body, tannin, oak, acidity, sweetness], dtype=float)

    max_sum = float(np.dot(w, np.full(len(axes), AlgorithmConstants.AXIS_MAX)))
    scaled = safe_divide(float(np.dot(w, values)), max_sum) * AlgorithmConstants.POWER_MAX

    return round_half_up(clamp(scaled, AlgorithmConstants.POWER_MIN, AlgorithmConstants.POWER_MAX))


def _apply_region(axes: _Axes, region: str, tags: List[str]) -> None:
    if 'bordeaux' in region or 'napa' in region:
        axes.bump(body=1, tannin=1, oak=1)
        tags += ['structured', 'age-worthy']
    elif 'burgundy' in region or 'willamette' in region:
        axes.bump(body=-1, acidity=1, oak=1)
        tags += ['elegant', 'terroir-driven']
    elif 'rioja' in region or 'barolo' in region:
        axes.bump(tannin=1, oak=1)
        tags += ['traditional', 'complex']
    elif 'rhone' in region or 'barossa' in region:
        axes.bump(body=1, oak=-1)
        tags += ['bold', 'fruit-forward']


def _apply_grapes(axes: _Axes, grapes: str, tags: List[str]) -> None:
    if 'cabernet' in grapes or 'syrah' in grapes or 'shiraz' in grapes:
        axes.bump(body=1, tannin=1)
        axes.alcohol_est = 14.0
        tags += ['full-bodied', 'powerful']
    elif 'pinot noir' in grapes:
        axes.bump(body=-1, tannin=-1, acidity=1)
        tags += ['elegant', 'silky']
    elif 'merlot' in grapes:
        axes.set(body=3, tannin=3, oak=3)
        tags += ['smooth', 'approachable']
    elif 'chardonnay' in grapes:
        axes.set(body=3, oak=3)
        tags += ['versatile']
    elif 'sauvignon blanc' in grapes or 'riesling' in grapes:
        axes.set(body=2, acidity=5, oak=1)
        tags += ['crisp', 'refreshing']


def _apply_style(axes: _Axes, style: str, tags: List[str]) -> None:
    if 'reserve' in style or 'gran reserva' in style:
        axes.bump(oak=1, body=1)
        tags += ['premium', 'age-worthy']


def _finalize_tags(tags: List[str], axes: _Axes) -> List[str]:
    unique = list(dict.fromkeys(tags))

    if len(unique) < AlgorithmConstants.MIN_STYLE_TAGS:
        if axes.body >= 4:
            unique.append('full-bodied')
        if axes.tannin >= 4:
            unique.append('structured')
        if axes.acidity >= 4:
            unique.append('fresh')
        unique = list(dict.fromkeys(unique))

    for generic in AlgorithmConstants.GENERIC_STYLE_TAGS:
        if len(unique) >= AlgorithmConstants.MIN_STYLE_TAGS:
            break
        if generic not in unique:
            unique.append(generic)

    return unique[:AlgorithmConstants.MAX_STYLE_TAGS]


def estimate_profile(wine: Wine, now: Optional[datetime] = None) -> StructuralProfile:
    """
    Heuristic structural profile from type, region, grapes and style.

    Never raises: missing metadata simply skips the matching rule, and an
    unknown type starts from the red base.

    Args:
        wine: Wine metadata
        now: Timestamp for the profile (default: current UTC time)

    Returns:
        StructuralProfile with confidence "low" and source "heuristic"
    """
    wine_type = wine.parsed_type or WineType.RED
    body, tannin, acidity, oak, sweetness, alcohol, base_tags = _TYPE_BASES[wine_type]
    axes = _Axes(body, tannin, acidity, oak, sweetness, alcohol)
    tags = list(base_tags)

    region = (wine.region or '').lower()
    grapes = ' '.join(g for g in wine.grapes if g).lower()
    style = (wine.regional_style or '').lower()

    if region:
        _apply_region(axes, region, tags)
    if grapes:
        _apply_grapes(axes, grapes, tags)
    if style:
        _apply_style(axes, style, tags)

    power = compute_power(axes.body, axes.tannin, axes.oak, axes.acidity, axes.sweetness)

    return StructuralProfile(
        body=axes.body,
        tannin=axes.tannin,
        acidity=axes.acidity,
        oak=axes.oak,
        sweetness=axes.sweetness,
        alcohol_est=axes.alcohol_est,
        power=power,
        style_tags=_finalize_tags(tags, axes),
        confidence=ProfileConfidence.LOW,
        source=ProfileSource.HEURISTIC,
        updated_at=now or utcnow(),
    )


def is_stale(profile: StructuralProfile, now: Optional[datetime] = None) -> bool:
    """A profile is stale once it is PROFILE_STALE_DAYS old."""
    age = ensure_aware(now or utcnow()) - ensure_aware(profile.updated_at)
    return age >= timedelta(days=PROFILE_STALE_DAYS)


# =======================
# PROVIDER CHAIN
# =======================

class ProfileCache(Protocol):
    """Lookup/persist structural profiles by wine id."""

    def get(self, wine_id: str) -> Optional[StructuralProfile]:
        ...

    def set(self, wine_id: str, profile: StructuralProfile) -> None:
        ...


class ProfileGenerator(Protocol):
    """External AI profile generator; may raise or time out."""

    def generate(self, wine: Wine) -> StructuralProfile:
        ...


class ProfileProvider(Protocol):
    name: str

    def provide(self, wine: Wine, now: datetime) -> Optional[StructuralProfile]:
        ...


def _cache_key(wine: Wine) -> Optional[str]:
    return wine.id


class CachedProfileProvider:
    """Returns a fresh stored profile unchanged (embedded on the wine or cached)."""

    name = "cache"

    def __init__(self, cache: Optional[ProfileCache] = None):
        self.cache = cache

    def provide(self, wine: Wine, now: datetime) -> Optional[StructuralProfile]:
        candidates = [wine.profile]
        key = _cache_key(wine)
        if self.cache is not None and key:
            candidates.append(self.cache.get(key))

        for profile in candidates:
            if profile is not None and not is_stale(profile, now):
                return profile

        return None


class AIProfileProvider:
    """Calls the AI generator; failures fall through to the next provider."""

    name = "ai"

    def __init__(self, generator: ProfileGenerator, cache: Optional[ProfileCache] = None):
        self.generator = generator
        self.cache = cache

    def provide(self, wine: Wine, now: datetime) -> Optional[StructuralProfile]:
        profile = self.generator.generate(wine)
        key = _cache_key(wine)
        if self.cache is not None and key:
            self.cache.set(key, profile)
        return profile


class HeuristicProfileProvider:
    """Terminal provider: always succeeds and persists its result."""

    name = "heuristic"

    def __init__(self, cache: Optional[ProfileCache] = None):
        self.cache = cache

    def provide(self, wine: Wine, now: datetime) -> StructuralProfile:
        profile = estimate_profile(wine, now=now)
        key = _cache_key(wine)
        if self.cache is not None and key:
            self.cache.set(key, profile)
        return profile


class ProfileChain:
    """
    Ordered profile providers; first non-empty result wins.

    With no providers the chain is cache -> heuristic, so a fresh profile
    already on the wine is kept. A HeuristicProfileProvider is appended if the
    chain does not already end with one, so `resolve` always returns a profile.
    """

    def __init__(self, providers: Optional[List[ProfileProvider]] = None):
        providers = list(providers) if providers else [CachedProfileProvider()]
        if not isinstance(providers[-1], HeuristicProfileProvider):
            providers.append(HeuristicProfileProvider())
        self.providers = providers

    def resolve(self, wine: Wine, now: Optional[datetime] = None) -> StructuralProfile:
        now = now or utcnow()

        for provider in self.providers[:-1]:
            try:
                profile = provider.provide(wine, now)
            except Exception as e:
                # Upstream unavailable: log and fall through, never surface
                logger.warning(
                    f"Profile provider '{provider.name}' failed for {wine.name!r}: "
                    f"{type(e).__name__} - {e}"
                )
                continue

            if profile is not None:
                logger.debug(f"Profile for {wine.name!r} from provider '{provider.name}'")
                return profile

        logger.info(f"Using heuristic profile for {wine.name!r}")
        return self.providers[-1].provide(wine, now)

    @classmethod
    def default(
        cls,
        cache: Optional[ProfileCache] = None,
        generator: Optional[ProfileGenerator] = None
    ) -> 'ProfileChain':
        """cache -> (AI, if a generator is given) -> heuristic, sharing one cache."""
        providers: List[ProfileProvider] = [CachedProfileProvider(cache)]
        if generator is not None:
            providers.append(AIProfileProvider(generator, cache))
        providers.append(HeuristicProfileProvider(cache))
        return cls(providers)


def resolve_profile(
    wine: Wine,
    chain: Optional[ProfileChain] = None,
    now: Optional[datetime] = None
) -> StructuralProfile:
    """Resolve the profile for `wine` through `chain` (default: cache -> heuristic)."""
    return (chain or ProfileChain()).resolve(wine, now=now)


def profile_to_dict(profile: StructuralProfile) -> Dict[str, object]:
    return profile.model_dump(mode='json')
