"""
Cellar readiness insights: bucket counts and the "tonight" signal.
"""

import logging
from typing import Dict, Iterable, List

import pandas as pd

from cellarwise.config import TONIGHT_RATING_THRESHOLD
from cellarwise.constants import ReadinessLabel
from cellarwise.schema import Bottle

logger = logging.getLogger(__name__)

UNKNOWN_BUCKET = 'UNKNOWN'
BUCKETS = [ReadinessLabel.HOLD.value, ReadinessLabel.PEAK_SOON.value, ReadinessLabel.READY.value, UNKNOWN_BUCKET]


def categorize_bottles(bottles: Iterable[Bottle]) -> Dict[str, List[Bottle]]:
    """Split bottles by verdict label; bottles without a verdict go to UNKNOWN."""
    categories: Dict[str, List[Bottle]] = {bucket: [] for bucket in BUCKETS}
    for bottle in bottles:
        bucket = bottle.verdict.label.value if bottle.verdict is not None else UNKNOWN_BUCKET
        categories[bucket].append(bottle)
    return categories


def bucket_counts(bottles: Iterable[Bottle]) -> pd.DataFrame:
    """
    Summary table of readiness buckets.

    Columns: bucket, bottles (distinct entries), quantity (bottles in stock),
    share (of in-stock quantity). One row per bucket, always all four.
    """
    categories = categorize_bottles(bottles)
    rows = [
        {
            'bucket': bucket,
            'bottles': len(members),
            'quantity': sum(b.quantity for b in members),
        }
        for bucket, members in categories.items()
    ]
    df = pd.DataFrame(rows, columns=['bucket', 'bottles', 'quantity'])

    total = df['quantity'].sum()
    df['share'] = (df['quantity'] / total).round(3) if total > 0 else 0.0

    logger.debug(f"Readiness buckets: {dict(zip(df['bucket'], df['bottles']))}")
    return df


def tonight_signal(bottles: Iterable[Bottle], threshold: float = TONIGHT_RATING_THRESHOLD) -> int:
    """Count of READY / PEAK_SOON bottles rated at least `threshold`."""
    return sum(
        1 for b in bottles
        if b.verdict is not None
        and b.verdict.label.is_drinkable
        and (b.wine.rating or 0) >= threshold
    )
