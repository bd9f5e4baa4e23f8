"""
Cellarwise Constants and Enums

Centralized constants, enums, and threshold tables used by the readiness and
recommendation engine.
"""

from enum import Enum
from typing import Dict, List, NamedTuple, Optional

from pydantic import BaseModel, Field, conint


# =======================
# WINE ATTRIBUTE ENUMS
# =======================

class WineType(str, Enum):
    """Wine type categories."""
    RED = "red"
    WHITE = "white"
    ROSE = "rose"
    SPARKLING = "sparkling"

    @classmethod
    def parse(cls, raw: Optional[str]) -> Optional['WineType']:
        """Parse free-text wine type (e.g. "Rosé", "Sparkling White")."""
        if not raw:
            return None

        text = raw.strip().lower()
        if "sparkling" in text:
            return cls.SPARKLING
        if "white" in text:
            return cls.WHITE
        if "rose" in text or "rosé" in text:
            return cls.ROSE
        if "red" in text:
            return cls.RED
        return None


class ReadinessLabel(str, Enum):
    """Readiness verdict labels."""
    HOLD = "HOLD"
    READY = "READY"
    PEAK_SOON = "PEAK_SOON"

    @property
    def rank(self) -> int:
        """Ordering used by the vintage invariant (HOLD < READY == PEAK_SOON)."""
        return 0 if self is ReadinessLabel.HOLD else 1

    @property
    def is_drinkable(self) -> bool:
        return self is not ReadinessLabel.HOLD


class Confidence(str, Enum):
    """Confidence of a readiness verdict."""
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class AgingPotential(str, Enum):
    """Aging potential tier selecting the red-wine threshold table."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ProfileConfidence(str, Enum):
    """Confidence of a structural profile."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def parse(cls, raw: Optional[str]) -> 'ProfileConfidence':
        """Accepts the short "med" form returned by the profile generator."""
        text = (raw or "").strip().lower()
        if text in ("med", "medium"):
            return cls.MEDIUM
        if text == "high":
            return cls.HIGH
        return cls.LOW


class ProfileSource(str, Enum):
    """Where a structural profile came from."""
    AI = "ai"
    EXTERNAL = "external"
    HEURISTIC = "heuristic"


class SequencePosition(str, Enum):
    """Position of a wine within an evening lineup."""
    FIRST = "first"
    MIDDLE = "middle"
    LAST = "last"


# =======================
# READINESS THRESHOLDS
# =======================

DRINK_WINDOW_VERSION = 2  # Increment when classifier logic changes


class AgingThresholds(NamedTuple):
    """Red-wine age boundaries (years) for one aging-potential tier."""
    young: int
    prime_start: int
    prime_end: int
    mature: int


RED_AGING_THRESHOLDS: Dict[AgingPotential, AgingThresholds] = {
    # e.g. Bordeaux, Barolo, premium Cabernet
    AgingPotential.HIGH: AgingThresholds(young=5, prime_start=5, prime_end=20, mature=25),
    # e.g. Chianti, Rioja, mid-tier Pinot
    AgingPotential.MEDIUM: AgingThresholds(young=3, prime_start=3, prime_end=12, mature=18),
    # e.g. Beaujolais, light reds, entry-level
    AgingPotential.LOW: AgingThresholds(young=2, prime_start=2, prime_end=8, mature=12),
}


# =======================
# ALGORITHM CONSTANTS
# =======================

class AlgorithmConstants:
    """
    Algorithm constants with documentation.
    """

    # STRUCTURAL PROFILE
    # Power = weighted structure sum normalised against its maximum (27.5)
    POWER_WEIGHTS = {
        'body': 2.0,
        'tannin': 1.5,
        'oak': 1.0,
        'acidity': 0.8,
        'sweetness': 0.2,
    }
    AXIS_MIN = 1
    AXIS_MAX = 5
    SWEETNESS_MIN = 0
    SWEETNESS_MAX = 5
    POWER_MIN = 1
    POWER_MAX = 10
    MIN_STYLE_TAGS = 3
    MAX_STYLE_TAGS = 8
    GENERIC_STYLE_TAGS = ['balanced', 'food-friendly', 'versatile']

    # AGING POTENTIAL
    # score = tannin + body + 0.5*oak + 0.5*power + 0.3*acidity
    # normalised as score / 16.5 * 15
    AGING_WEIGHTS = {
        'tannin': 1.0,
        'body': 1.0,
        'oak': 0.5,
        'power': 0.5,
        'acidity': 0.3,
    }
    AGING_MAX_SCORE = 16.5
    AGING_SCALE = 15.0
    AGING_HIGH_CUTOFF = 10.0
    AGING_MEDIUM_CUTOFF = 6.0

    # VINTAGE VALIDATION
    MIN_VINTAGE = 1900

    # RECOMMENDATION SCORING
    BASE_SCORE = 50.0
    READINESS_PEAK_BONUS = 20.0
    READINESS_IN_WINDOW_BONUS = 15.0
    READINESS_READY_BONUS = 10.0
    RECENTLY_OPENED_PENALTY = 40.0
    ROTATION_PENALTY = 25.0
    JITTER_MAX = 25.0

    # EVENING LINEUP
    LINEUP_LABELS = ['Warm-up', 'Mid', 'Main', 'Finale', 'Grand Finale', 'Closer']


class MealRule(NamedTuple):
    """One meal category: keywords matched by substring, bonus per wine type."""
    keywords: tuple
    bonuses: Dict[WineType, float]


# Evaluated in order; only the first matching category contributes.
MEAL_RULES: List[MealRule] = [
    MealRule(('steak', 'beef'), {WineType.RED: 30}),
    MealRule(('fish', 'seafood'), {WineType.WHITE: 30, WineType.SPARKLING: 20}),
    MealRule(('pasta',), {WineType.RED: 20, WineType.WHITE: 15}),
    MealRule(('chicken',), {WineType.WHITE: 20, WineType.RED: 10}),
    MealRule(('cheese',), {WineType.RED: 15, WineType.WHITE: 15, WineType.SPARKLING: 25}),
    MealRule(('spicy', 'asian'), {WineType.WHITE: 25, WineType.ROSE: 20}),
    MealRule(('pizza',), {WineType.RED: 25}),
]


# =======================
# LLM RESPONSE VALIDATION SCHEMAS
# =======================

class LLMProfileResponse(BaseModel):
    """Validation schema for an AI-generated structural profile."""

    body: conint(ge=1, le=5) = Field(..., description="Body (1=very light, 5=very full)")
    tannin: conint(ge=1, le=5) = Field(..., description="Tannin (1=none, 5=very high)")
    acidity: conint(ge=1, le=5) = Field(..., description="Acidity (1=very low, 5=very high)")
    oak: conint(ge=1, le=5) = Field(..., description="Oak (1=unoaked, 5=heavily oaked)")
    sweetness: conint(ge=0, le=5) = Field(..., description="Sweetness (0=bone dry, 5=very sweet)")
    alcohol_est: Optional[float] = Field(None, ge=5.0, le=25.0, description="Estimated ABV")
    style_tags: List[str] = Field(default_factory=list, description="Short style descriptors")
    confidence: str = Field("med", description="Model confidence: med or high")
