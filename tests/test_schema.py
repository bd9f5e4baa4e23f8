"""
Tests for Pydantic schemas and enum parsing.
"""

import pytest
from pydantic import ValidationError

from cellarwise.constants import ProfileConfidence, ReadinessLabel, WineType
from cellarwise.schema import Bottle, RecommendationConstraints, StructuralProfile, Wine


class TestWineType:

    @pytest.mark.parametrize('raw, expected', [
        ('Red', WineType.RED),
        ('white', WineType.WHITE),
        ('Rosé', WineType.ROSE),
        ('rose', WineType.ROSE),
        ('Sparkling White', WineType.SPARKLING),
        ('orange', None),
        (None, None),
        ('', None),
    ])
    def test_parse(self, raw, expected):
        assert WineType.parse(raw) is expected

    def test_wine_parsed_type(self):
        assert Wine(wine_type='Sparkling Rosé').parsed_type is WineType.SPARKLING


class TestProfileConfidence:

    def test_parse(self):
        assert ProfileConfidence.parse('med') is ProfileConfidence.MEDIUM
        assert ProfileConfidence.parse('HIGH') is ProfileConfidence.HIGH
        assert ProfileConfidence.parse(None) is ProfileConfidence.LOW


class TestReadinessLabel:

    def test_rank_and_drinkable(self):
        assert ReadinessLabel.HOLD.rank < ReadinessLabel.READY.rank == ReadinessLabel.PEAK_SOON.rank
        assert not ReadinessLabel.HOLD.is_drinkable
        assert ReadinessLabel.PEAK_SOON.is_drinkable


class TestModels:

    def test_profile_axis_bounds(self, make_profile):
        with pytest.raises(ValidationError):
            make_profile(body=6)
        with pytest.raises(ValidationError):
            make_profile(power=0)

    def test_wine_accepts_bad_vintage(self):
        assert Wine(vintage=1500).vintage == 1500

    def test_bottle_quantity_non_negative(self, make_wine):
        with pytest.raises(ValidationError):
            Bottle(id='b1', wine=make_wine(), quantity=-1)

    def test_verdict_requires_two_reasons(self, make_verdict):
        verdict = make_verdict()
        with pytest.raises(ValidationError):
            verdict.model_validate({**verdict.model_dump(), 'reasons': ['only one']})

    def test_verdict_window(self, make_verdict):
        verdict = make_verdict(window=(2020, 2030))
        assert verdict.drink_window == (2020, 2030)
        assert verdict.in_window(2024)
        assert not verdict.in_window(2031)
        assert not make_verdict().in_window(2024)

    def test_max_price_positive(self):
        with pytest.raises(ValidationError):
            RecommendationConstraints(max_price=0)
