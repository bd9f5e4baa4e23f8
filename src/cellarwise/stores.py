"""
External-collaborator stores consumed by the engine.

- ProfileCache: structural profiles keyed by wine id
- ConsumptionHistory: which bottles a user opened recently

The in-process implementations here back the CLI and tests; production
deployments plug in their own database-backed equivalents.
"""

import logging
import threading
from datetime import datetime
from typing import Dict, Optional, Protocol

import pandas as pd

from cellarwise.error_handling import DataValidationError
from cellarwise.profile_estimator import ProfileCache
from cellarwise.schema import StructuralProfile
from cellarwise.utils import ensure_aware

logger = logging.getLogger(__name__)


class InMemoryProfileCache:
    """Dict-backed ProfileCache."""

    def __init__(self):
        self._profiles: Dict[str, StructuralProfile] = {}
        self._lock = threading.Lock()

    def get(self, wine_id: str) -> Optional[StructuralProfile]:
        with self._lock:
            return self._profiles.get(wine_id)

    def set(self, wine_id: str, profile: StructuralProfile) -> None:
        with self._lock:
            self._profiles[wine_id] = profile

    def __len__(self) -> int:
        return len(self._profiles)


class ConsumptionHistory(Protocol):
    """Recent openings per user."""

    def opened_since(self, user_id: str, since: datetime) -> Dict[str, datetime]:
        """Map bottle id -> latest opening at or after `since`."""
        ...


class DataFrameConsumptionHistory:
    """
    ConsumptionHistory over a pandas DataFrame of openings.

    Required columns: user_id, bottle_id, opened_at.
    """

    REQUIRED_COLUMNS = ['user_id', 'bottle_id', 'opened_at']

    def __init__(self, df: Optional[pd.DataFrame] = None):
        if df is None:
            df = pd.DataFrame(columns=self.REQUIRED_COLUMNS)

        missing = [c for c in self.REQUIRED_COLUMNS if c not in df.columns]
        if missing:
            raise DataValidationError(f"Consumption history missing columns: {missing}")

        self.df = df.copy()
        self.df['opened_at'] = pd.to_datetime(self.df['opened_at'], utc=True)
        self.df['bottle_id'] = self.df['bottle_id'].astype(str)
        self.df['user_id'] = self.df['user_id'].astype(str)

    def opened_since(self, user_id: str, since: datetime) -> Dict[str, datetime]:
        cutoff = pd.Timestamp(ensure_aware(since))
        recent = self.df[(self.df['user_id'] == str(user_id)) & (self.df['opened_at'] >= cutoff)]
        if recent.empty:
            return {}

        latest = recent.groupby('bottle_id')['opened_at'].max()
        logger.debug(f"{len(latest)} bottles opened by {user_id} since {cutoff}")
        return {bottle_id: ts.to_pydatetime() for bottle_id, ts in latest.items()}
