"""Shared fixtures: a fixed clock and small record builders."""

from datetime import datetime, timezone

import pytest

from cellarwise.constants import Confidence, ProfileConfidence, ProfileSource, ReadinessLabel
from cellarwise.schema import Bottle, ReadinessVerdict, StructuralProfile, Wine


NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def make_wine():
    def _make(**overrides):
        data = {
            'id': 'w1',
            'producer': 'Test Producer',
            'name': 'Test Wine',
            'vintage': 2015,
            'wine_type': 'red',
        }
        data.update(overrides)
        return Wine(**data)
    return _make


@pytest.fixture
def make_profile():
    def _make(**overrides):
        data = {
            'body': 3,
            'tannin': 3,
            'acidity': 3,
            'oak': 2,
            'sweetness': 0,
            'alcohol_est': 13.0,
            'power': 5,
            'style_tags': ['red-wine', 'balanced', 'food-friendly'],
            'confidence': ProfileConfidence.MEDIUM,
            'source': ProfileSource.EXTERNAL,
            'updated_at': NOW,
        }
        data.update(overrides)
        return StructuralProfile(**data)
    return _make


@pytest.fixture
def make_verdict():
    def _make(label=ReadinessLabel.READY, window=None, confidence=Confidence.HIGH):
        return ReadinessVerdict(
            label=label,
            drink_window_start=window[0] if window else None,
            drink_window_end=window[1] if window else None,
            confidence=confidence,
            reasons=['first reason', 'second reason'],
            assumptions=None,
            version=2,
            computed_at=NOW,
        )
    return _make


@pytest.fixture
def make_bottle(make_wine):
    def _make(bottle_id='b1', quantity=1, price=None, verdict=None, last_opened_at=None, **wine_fields):
        wine_fields.setdefault('id', f"w-{bottle_id}")
        return Bottle(
            id=bottle_id,
            wine=make_wine(**wine_fields),
            quantity=quantity,
            price=price,
            verdict=verdict,
            last_opened_at=last_opened_at,
        )
    return _make
