"""
Tests for the profile cache and consumption history stores.
"""

from datetime import timedelta

import pandas as pd
import pytest

from cellarwise.error_handling import DataValidationError
from cellarwise.stores import DataFrameConsumptionHistory, InMemoryProfileCache


class TestInMemoryProfileCache:
    def test_get_set(self, make_profile):
        cache = InMemoryProfileCache()
        assert cache.get('w1') is None
        profile = make_profile()
        cache.set('w1', profile)
        assert cache.get('w1') == profile
        assert len(cache) == 1


class TestDataFrameConsumptionHistory:

    def test_missing_columns_rejected(self):
        with pytest.raises(DataValidationError):
            DataFrameConsumptionHistory(pd.DataFrame({'user_id': ['u1']}))

    def test_empty_history(self, now):
        assert DataFrameConsumptionHistory().opened_since('u1', now - timedelta(days=7)) == {}

    def test_recent_openings_per_user(self, now):
        df = pd.DataFrame([
            {'user_id': 'u1', 'bottle_id': 'b1', 'opened_at': now - timedelta(days=2)},
            {'user_id': 'u1', 'bottle_id': 'b1', 'opened_at': now - timedelta(days=1)},
            {'user_id': 'u1', 'bottle_id': 'b2', 'opened_at': now - timedelta(days=20)},
            {'user_id': 'u2', 'bottle_id': 'b3', 'opened_at': now - timedelta(days=1)},
        ])
        history = DataFrameConsumptionHistory(df)

        opened = history.opened_since('u1', now - timedelta(days=7))

        assert set(opened) == {'b1'}
        assert opened['b1'] == now - timedelta(days=1)

    def test_string_timestamps_parsed(self, now):
        df = pd.DataFrame([
            {'user_id': 'u1', 'bottle_id': 7, 'opened_at': '2024-05-30T18:00:00Z'},
        ])
        opened = DataFrameConsumptionHistory(df).opened_since('u1', now - timedelta(days=7))
        assert list(opened) == ['7']
