"""
CellarEngine: orchestration over the readiness & recommendation core.

Wires the pure scoring functions to their external collaborators:
- profile chain (cache -> AI -> heuristic)
- verdict cache keyed by (identity, vintage, profile timestamp, version)
- consumption history for the recently-opened penalty
- rotation store, updated atomically per user

The pure functions stay free of I/O; everything stateful lives here.
"""

import json
import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional

from cellarwise.config import DEFAULT_RECOMMENDATION_COUNT, HISTORY_PENALTY_DAYS, VERDICT_CACHE_SIZE
from cellarwise.insights import bucket_counts, tonight_signal
from cellarwise.pairing import plan_lineup
from cellarwise.profile_estimator import ProfileChain
from cellarwise.readiness import classify_readiness, verdict_cache_key
from cellarwise.recommender import RandomSource, RecommendationResult, recommend
from cellarwise.rotation import InMemoryRotationStore, RotationStore
from cellarwise.schema import (
    Bottle,
    FamilyValidation,
    FoodProfile,
    LineupSlot,
    RecommendationContext,
    StructuralProfile,
    Wine,
)
from cellarwise.stores import ConsumptionHistory, InMemoryProfileCache
from cellarwise.utils import ensure_aware, utcnow
from cellarwise.vintage_validator import validate_family

logger = logging.getLogger(__name__)


@dataclass
class CellarAnalysis:
    """Bottles with fresh verdicts plus the family consistency report."""
    bottles: List[Bottle]
    validation: FamilyValidation
    analyzed_at: datetime = field(default_factory=utcnow)


class CellarEngine:
    """
    Readiness & recommendation engine for one cellar service.

    Example:
        engine = CellarEngine()
        analysis = engine.analyze_cellar(bottles)
        result = engine.recommend_for("user-1", context, analysis.bottles)
    """

    def __init__(
        self,
        profile_chain: Optional[ProfileChain] = None,
        rotation_store: Optional[RotationStore] = None,
        history: Optional[ConsumptionHistory] = None,
        clock: Optional[Callable[[], datetime]] = None,
        verdict_cache_size: int = VERDICT_CACHE_SIZE
    ):
        """
        Args:
            profile_chain: Profile providers (default: cache -> heuristic over an
                in-memory profile cache)
            rotation_store: Per-user rotation state (default: in-memory)
            history: Consumption history source (optional)
            clock: Returns the current time (default: UTC now)
            verdict_cache_size: Maximum cached verdicts
        """
        self.profile_chain = profile_chain or ProfileChain.default(cache=InMemoryProfileCache())
        self.rotation_store = rotation_store or InMemoryRotationStore()
        self.history = history
        self.clock = clock or utcnow
        self.verdict_cache_size = verdict_cache_size
        self._verdicts: OrderedDict = OrderedDict()

    # =======================
    # READINESS
    # =======================

    def profile_for(self, wine: Wine) -> StructuralProfile:
        return self.profile_chain.resolve(wine, now=self.clock())

    def analyze_bottle(self, bottle: Bottle) -> Bottle:
        """Return a copy of `bottle` with its profile attached and a verdict."""
        now = self.clock()
        profile = self.profile_for(bottle.wine)
        wine = bottle.wine.model_copy(update={'profile': profile})

        key = (verdict_cache_key(wine, profile), now.year)
        verdict = self._verdicts.get(key)
        if verdict is None:
            verdict = classify_readiness(wine, profile=profile, now=now)
            self._verdicts[key] = verdict
            while len(self._verdicts) > self.verdict_cache_size:
                self._verdicts.popitem(last=False)
        else:
            self._verdicts.move_to_end(key)
            logger.debug(f"Verdict cache hit for {wine.name!r} {wine.vintage}")

        return bottle.model_copy(update={'wine': wine, 'verdict': verdict})

    def analyze_cellar(self, bottles: List[Bottle]) -> CellarAnalysis:
        """Classify every bottle and check wine families for vintage inversions."""
        analyzed = [self.analyze_bottle(b) for b in bottles]
        validation = validate_family(analyzed)

        if not validation.valid:
            logger.warning(f"{len(validation.issues)} vintage inversion(s) in cellar")

        return CellarAnalysis(bottles=analyzed, validation=validation, analyzed_at=self.clock())

    def clear_cache(self) -> None:
        self._verdicts.clear()

    @property
    def cached_verdicts(self) -> int:
        return len(self._verdicts)

    # =======================
    # RECOMMENDATIONS
    # =======================

    def _with_history(self, user_id: str, bottles: List[Bottle], now: datetime) -> List[Bottle]:
        if self.history is None:
            return bottles

        opened = self.history.opened_since(user_id, now - timedelta(days=HISTORY_PENALTY_DAYS))
        if not opened:
            return bottles

        merged = []
        for bottle in bottles:
            latest = opened.get(bottle.id)
            if latest is not None and (
                bottle.last_opened_at is None
                or ensure_aware(latest) > ensure_aware(bottle.last_opened_at)
            ):
                bottle = bottle.model_copy(update={'last_opened_at': latest})
            merged.append(bottle)
        return merged

    def recommend_for(
        self,
        user_id: str,
        context: RecommendationContext,
        bottles: List[Bottle],
        k: int = DEFAULT_RECOMMENDATION_COUNT,
        random_source: Optional[RandomSource] = None
    ) -> RecommendationResult:
        """
        Recommend bottles for a user and record them in the user's rotation.

        Bottles without a verdict are analyzed first. The rotation read, scoring
        and write happen inside one atomic store update.
        """
        now = self.clock()
        candidates = [b if b.verdict is not None else self.analyze_bottle(b) for b in bottles]
        candidates = self._with_history(user_id, candidates, now)

        outcome: Dict[str, RecommendationResult] = {}

        def apply(state):
            outcome['result'] = recommend(
                context, candidates, state, k=k, random_source=random_source, now=now
            )
            return outcome['result'].rotation_state

        self.rotation_store.update(user_id, apply)
        return outcome['result']

    def plan_evening(
        self,
        bottles: List[Bottle],
        group_size: str,
        food: Optional[FoodProfile] = None,
        reds_only: bool = False,
        min_rating: Optional[float] = None,
        random_source: Optional[RandomSource] = None
    ) -> List[LineupSlot]:
        """Plan a multi-wine evening from analyzed bottles."""
        analyzed = [self.analyze_bottle(b) for b in bottles]
        return plan_lineup(
            analyzed,
            group_size,
            food=food,
            reds_only=reds_only,
            min_rating=min_rating,
            random_source=random_source,
        )

    # =======================
    # UI DATA
    # =======================

    def get_ui_data(self, bottles: List[Bottle]) -> Dict:
        """
        Single dictionary with everything a cellar overview needs.

        Returns:
            Dict with:
            - bottles: id, wine, vintage, label, confidence, window, reasons
            - buckets: readiness bucket summary rows
            - tonight: count of highly-rated drinkable bottles
            - vintage_issues: detected inversions
        """
        analysis = self.analyze_cellar(bottles)

        return {
            "analyzed_at": analysis.analyzed_at.isoformat(),
            "bottles": [
                {
                    "id": b.id,
                    "wine": b.wine.name,
                    "producer": b.wine.producer,
                    "vintage": b.wine.vintage,
                    "label": b.verdict.label.value,
                    "confidence": b.verdict.confidence.value,
                    "drink_window": list(b.verdict.drink_window) if b.verdict.drink_window else None,
                    "reasons": b.verdict.reasons,
                    "assumptions": b.verdict.assumptions,
                    "power": b.wine.profile.power if b.wine.profile else None,
                }
                for b in analysis.bottles
            ],
            "buckets": bucket_counts(analysis.bottles).to_dict(orient='records'),
            "tonight": tonight_signal(analysis.bottles),
            "vintage_issues": [issue.model_dump() for issue in analysis.validation.issues],
        }

    def to_json(self, bottles: List[Bottle]) -> str:
        """UI data as a JSON string."""
        return json.dumps(self.get_ui_data(bottles), indent=2, default=str)
