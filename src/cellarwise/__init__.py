"""Cellarwise - readiness and recommendation engine for a personal wine cellar."""

from cellarwise.profile_estimator import estimate_profile, resolve_profile, ProfileChain
from cellarwise.readiness import classify_readiness
from cellarwise.vintage_validator import validate_family
from cellarwise.recommender import recommend, RecommendationResult, SeededRandomSource
from cellarwise.pairing import pairing_score, pairing_explanation, plan_lineup
from cellarwise.cellar_engine import CellarEngine

__version__ = "0.1.0"

__all__ = [
    'estimate_profile',
    'resolve_profile',
    'ProfileChain',
    'classify_readiness',
    'validate_family',
    'recommend',
    'RecommendationResult',
    'SeededRandomSource',
    'pairing_score',
    'pairing_explanation',
    'plan_lineup',
    'CellarEngine',
    '__version__',
]
