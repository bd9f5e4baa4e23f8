"""
Tests for the CellarEngine orchestration layer.
"""

import json
from datetime import timedelta
from unittest.mock import MagicMock

import pandas as pd
import pytest

from cellarwise.cellar_engine import CellarEngine
from cellarwise.constants import ProfileSource, ReadinessLabel
from cellarwise.error_handling import ProfileGenerationError
from cellarwise.profile_estimator import ProfileChain
from cellarwise.rotation import InMemoryRotationStore
from cellarwise.schema import FoodProfile, RecommendationContext
from cellarwise.stores import DataFrameConsumptionHistory, InMemoryProfileCache


@pytest.fixture
def engine(now):
    return CellarEngine(clock=lambda: now)


class TestAnalysis:
    """Test verdict computation and caching."""

    def test_analyze_bottle_attaches_profile_and_verdict(self, engine, make_bottle):
        bottle = make_bottle('b1', vintage=2012, region='Bordeaux', grapes=['Cabernet Sauvignon'])

        analyzed = engine.analyze_bottle(bottle)

        assert analyzed.wine.profile is not None
        assert analyzed.wine.profile.source == ProfileSource.HEURISTIC
        assert analyzed.verdict is not None
        assert bottle.verdict is None

    def test_verdict_cached_per_identity(self, engine, make_bottle):
        first = engine.analyze_bottle(make_bottle('b1'))
        second = engine.analyze_bottle(make_bottle('b2'))
        assert first.verdict is second.verdict

        engine.clear_cache()
        third = engine.analyze_bottle(make_bottle('b1'))
        assert third.verdict is not first.verdict
        assert third.verdict == first.verdict

    def test_different_vintage_not_shared(self, engine, make_bottle):
        a = engine.analyze_bottle(make_bottle('a', vintage=2010))
        b = engine.analyze_bottle(make_bottle('b', vintage=2022))
        assert a.verdict is not b.verdict

    def test_bad_data_never_raises(self, engine, make_bottle):
        analysis = engine.analyze_cellar([
            make_bottle('a', wine_type=None),
            make_bottle('b', vintage=None),
            make_bottle('c', wine_type='orange'),
        ])
        assert all(b.verdict.label == ReadinessLabel.READY for b in analysis.bottles)
        assert analysis.validation.valid

    def test_failing_generator_falls_back(self, now, make_bottle):
        generator = MagicMock()
        generator.generate.side_effect = ProfileGenerationError("timeout")
        cache = InMemoryProfileCache()
        engine = CellarEngine(
            profile_chain=ProfileChain.default(cache=cache, generator=generator),
            clock=lambda: now,
        )

        analyzed = engine.analyze_bottle(make_bottle('b1'))

        generator.generate.assert_called_once()
        assert analyzed.wine.profile.source == ProfileSource.HEURISTIC
        assert cache.get('w-b1') == analyzed.wine.profile

    def test_cached_profile_skips_generator(self, now, make_bottle, make_profile):
        generator = MagicMock()
        cache = InMemoryProfileCache()
        cache.set('w-b1', make_profile(updated_at=now - timedelta(days=2)))
        engine = CellarEngine(
            profile_chain=ProfileChain.default(cache=cache, generator=generator),
            clock=lambda: now,
        )

        analyzed = engine.analyze_bottle(make_bottle('b1'))

        generator.generate.assert_not_called()
        assert analyzed.wine.profile.source == ProfileSource.EXTERNAL


class TestRecommendFor:
    """Test rotation and history wiring."""

    def test_records_rotation(self, now, make_bottle, make_verdict):
        store = InMemoryRotationStore()
        engine = CellarEngine(rotation_store=store, clock=lambda: now)
        bottles = [make_bottle(f"b{i}", verdict=make_verdict()) for i in range(5)]

        result = engine.recommend_for('u1', RecommendationContext(), bottles, k=2)

        shown = {r.bottle_id for r in result.recommendations}
        assert len(shown) == 2
        assert store.get('u1').bottle_ids(now) == shown
        assert store.get('u2').entries == []

    def test_unanalyzed_bottles_get_verdicts(self, engine, make_bottle):
        result = engine.recommend_for('u1', RecommendationContext(), [make_bottle('b1')], k=1)
        assert result.recommendations[0].bottle.verdict is not None

    def test_history_penalises_recent_opening(self, now, make_bottle, make_verdict):
        history = DataFrameConsumptionHistory(pd.DataFrame([
            {'user_id': 'u1', 'bottle_id': 'opened', 'opened_at': now - timedelta(days=1)},
        ]))
        engine = CellarEngine(history=history, clock=lambda: now)
        bottles = [
            make_bottle('opened', verdict=make_verdict()),
            make_bottle('fresh', verdict=make_verdict()),
        ]

        for _ in range(10):
            engine.rotation_store = InMemoryRotationStore()
            result = engine.recommend_for('u1', RecommendationContext(), bottles, k=1)
            assert result.recommendations[0].bottle_id == 'fresh'

    def test_empty_cellar_message(self, engine):
        result = engine.recommend_for('u1', RecommendationContext(), [])
        assert result.recommendations == []
        assert result.message


class TestEveningAndUiData:

    def test_plan_evening(self, engine, make_bottle):
        bottles = [make_bottle(f"b{i}", vintage=2016) for i in range(4)]
        lineup = engine.plan_evening(bottles, '2-4', food=FoodProfile(protein='beef'))
        assert len(lineup) == 3
        assert all(slot.bottle.verdict is not None for slot in lineup)

    def test_get_ui_data(self, engine, make_bottle):
        bottles = [
            make_bottle('a', vintage=2012, rating=4.5),
            make_bottle('b', wine_type='white', vintage=2022),
        ]

        data = engine.get_ui_data(bottles)

        assert set(data) == {'analyzed_at', 'bottles', 'buckets', 'tonight', 'vintage_issues'}
        assert [b['id'] for b in data['bottles']] == ['a', 'b']
        assert len(data['buckets']) == 4
        assert data['vintage_issues'] == []

    def test_to_json(self, engine, make_bottle):
        parsed = json.loads(engine.to_json([make_bottle('a')]))
        assert parsed['bottles'][0]['label'] in ('HOLD', 'READY', 'PEAK_SOON')


class TestDefaults:
    """Test the engine built with no collaborators."""

    def test_external_profile_kept(self, now, make_bottle, make_profile):
        external = make_profile(body=5, tannin=5, oak=5, power=9)
        bottle = make_bottle('b1', vintage=2020, profile=external)

        analyzed = CellarEngine(clock=lambda: now).analyze_bottle(bottle)

        assert analyzed.wine.profile == external
        # high aging potential keeps a four-year-old red on hold
        assert analyzed.verdict.label == ReadinessLabel.HOLD

    def test_verdict_cache_stable_with_real_clock(self, make_bottle):
        engine = CellarEngine()
        bottle = make_bottle('b1')

        for _ in range(50):
            engine.analyze_bottle(bottle)

        assert engine.cached_verdicts == 1

    def test_verdict_cache_bounded(self, now, make_bottle):
        engine = CellarEngine(clock=lambda: now, verdict_cache_size=2)

        for vintage in (2010, 2012, 2014, 2016):
            engine.analyze_bottle(make_bottle(f"b{vintage}", vintage=vintage))

        assert engine.cached_verdicts == 2
