"""Pydantic schemas for Cellarwise data validation."""

from datetime import datetime
from typing import List, Optional, Tuple

from pydantic import BaseModel, Field

from cellarwise.constants import (
    Confidence,
    ProfileConfidence,
    ProfileSource,
    ReadinessLabel,
    WineType,
)


class StructuralProfile(BaseModel):
    """Numeric taste/structure profile of a wine."""

    body: int = Field(..., ge=1, le=5, description="Body weight (1=light, 5=full)")
    tannin: int = Field(..., ge=1, le=5, description="Tannin level (1-5)")
    acidity: int = Field(..., ge=1, le=5, description="Acidity level (1-5)")
    oak: int = Field(..., ge=1, le=5, description="Oak influence (1-5)")
    sweetness: int = Field(..., ge=0, le=5, description="Residual sweetness (0-5)")
    alcohol_est: Optional[float] = Field(None, description="Estimated ABV")
    power: int = Field(..., ge=1, le=10, description="Derived overall power (1-10)")
    style_tags: List[str] = Field(default_factory=list, description="Style descriptors")
    confidence: ProfileConfidence = Field(ProfileConfidence.LOW, description="Profile confidence")
    source: ProfileSource = Field(ProfileSource.HEURISTIC, description="Profile provenance")
    updated_at: datetime = Field(..., description="When the profile was produced")


class Wine(BaseModel):
    """Wine identity, provenance and optional cached profile.

    Vintage and type are deliberately unconstrained: bad values are classifier
    input that degrades to a fallback verdict, not a construction error.
    """

    id: Optional[str] = Field(None, description="Wine identifier")
    producer: Optional[str] = Field(None, description="Producer/winery name")
    name: str = Field("", description="Wine name")
    vintage: Optional[int] = Field(None, description="Vintage year")
    wine_type: Optional[str] = Field(None, description="red, white, rosé or sparkling")
    region: Optional[str] = Field(None, description="Wine region")
    country: Optional[str] = Field(None, description="Country of origin")
    grapes: List[str] = Field(default_factory=list, description="Grape varieties")
    regional_style: Optional[str] = Field(None, description="Style descriptor, e.g. Reserva")
    rating: Optional[float] = Field(None, ge=0, le=5, description="Community rating (0-5)")
    profile: Optional[StructuralProfile] = Field(None, description="Cached structural profile")

    @property
    def parsed_type(self) -> Optional[WineType]:
        return WineType.parse(self.wine_type)


class ReadinessVerdict(BaseModel):
    """Readiness classification with explanation."""

    label: ReadinessLabel
    drink_window_start: Optional[int] = Field(None, description="First year of drink window")
    drink_window_end: Optional[int] = Field(None, description="Last year of drink window")
    confidence: Confidence
    reasons: List[str] = Field(..., min_length=2, description="Why this verdict")
    assumptions: Optional[str] = Field(None, description="Assumptions behind the verdict")
    version: int = Field(..., description="Classifier logic version")
    computed_at: datetime

    @property
    def drink_window(self) -> Optional[Tuple[int, int]]:
        if self.drink_window_start is None or self.drink_window_end is None:
            return None
        return (self.drink_window_start, self.drink_window_end)

    def in_window(self, year: int) -> bool:
        window = self.drink_window
        return window is not None and window[0] <= year <= window[1]


class Bottle(BaseModel):
    """A bottle (or stack of identical bottles) in the cellar."""

    id: str = Field(..., description="Bottle identifier")
    wine: Wine
    quantity: int = Field(1, ge=0, description="Bottles remaining")
    price: Optional[float] = Field(None, ge=0, description="Purchase price")
    verdict: Optional[ReadinessVerdict] = Field(None, description="Latest readiness verdict")
    last_opened_at: Optional[datetime] = Field(None, description="Most recent opening")
    serve_temp_c: Optional[int] = Field(None, description="Preferred serving temperature")
    decant_minutes: Optional[int] = Field(None, ge=0, description="Preferred decanting time")


class RecommendationConstraints(BaseModel):
    """Hard filters applied before scoring."""

    max_price: Optional[float] = Field(None, gt=0, description="Maximum bottle price")
    prefer_ready: bool = Field(False, description="Only READY / PEAK_SOON bottles")


class RecommendationContext(BaseModel):
    """Situational context for a recommendation request."""

    meal_type: Optional[str] = Field(None, description="e.g. steak, seafood, pizza")
    occasion: Optional[str] = Field(None, description="e.g. celebration, date night")
    vibe: Optional[str] = Field(None, description="e.g. casual, special surprise")
    constraints: RecommendationConstraints = Field(default_factory=RecommendationConstraints)


class Recommendation(BaseModel):
    """A single ranked recommendation."""

    rank: int = Field(..., ge=1)
    bottle: Bottle
    score: float
    explanation: str
    serving_instructions: str

    @property
    def bottle_id(self) -> str:
        return self.bottle.id


class FoodProfile(BaseModel):
    """Structured description of a dish for pairing."""

    protein: str = Field("none", pattern="^(beef|lamb|chicken|fish|veggie|none)$")
    fat: str = Field("med", pattern="^(low|med|high)$")
    sauce: str = Field("none", pattern="^(tomato|bbq|creamy|none)$")
    spice: str = Field("low", pattern="^(low|med|high)$")
    smoke: str = Field("low", pattern="^(low|med|high)$")


class VintageIssue(BaseModel):
    """A vintage inversion inside one wine family."""

    identity: str
    older_vintage: int
    younger_vintage: int
    issue: str
    suggestion: str


class FamilyValidation(BaseModel):
    """Result of checking wine families for vintage inversions."""

    valid: bool
    issues: List[VintageIssue] = Field(default_factory=list)


class LineupSlot(BaseModel):
    """One wine in an evening lineup."""

    position: int = Field(..., ge=1)
    label: str
    bottle: Bottle
    pairing_score: Optional[int] = None
    explanation: str
