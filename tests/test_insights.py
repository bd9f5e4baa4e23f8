"""
Tests for readiness buckets and the tonight signal.
"""

import pandas as pd

from cellarwise.constants import ReadinessLabel
from cellarwise.insights import bucket_counts, categorize_bottles, tonight_signal


class TestInsights:

    def _cellar(self, make_bottle, make_verdict):
        return [
            make_bottle('a', quantity=2, verdict=make_verdict(ReadinessLabel.READY), rating=4.5),
            make_bottle('b', quantity=1, verdict=make_verdict(ReadinessLabel.HOLD), rating=4.6),
            make_bottle('c', quantity=3, verdict=make_verdict(ReadinessLabel.PEAK_SOON), rating=4.2),
            make_bottle('d', quantity=1, verdict=make_verdict(ReadinessLabel.READY), rating=3.9),
            make_bottle('e', quantity=2, verdict=None, rating=4.9),
        ]

    def test_categorize(self, make_bottle, make_verdict):
        categories = categorize_bottles(self._cellar(make_bottle, make_verdict))
        assert [b.id for b in categories['READY']] == ['a', 'd']
        assert [b.id for b in categories['HOLD']] == ['b']
        assert [b.id for b in categories['PEAK_SOON']] == ['c']
        assert [b.id for b in categories['UNKNOWN']] == ['e']

    def test_bucket_counts(self, make_bottle, make_verdict):
        df = bucket_counts(self._cellar(make_bottle, make_verdict))
        assert isinstance(df, pd.DataFrame)
        assert list(df['bucket']) == ['HOLD', 'PEAK_SOON', 'READY', 'UNKNOWN']
        assert list(df['bottles']) == [1, 1, 2, 1]
        assert list(df['quantity']) == [1, 3, 3, 2]
        assert abs(df['share'].sum() - 1.0) < 0.01

    def test_bucket_counts_empty(self):
        df = bucket_counts([])
        assert len(df) == 4
        assert df['quantity'].sum() == 0

    def test_tonight_signal(self, make_bottle, make_verdict):
        # a (READY 4.5) and c (PEAK_SOON 4.2); b is HOLD, e has no verdict
        assert tonight_signal(self._cellar(make_bottle, make_verdict)) == 2
        assert tonight_signal(self._cellar(make_bottle, make_verdict), threshold=4.4) == 1
