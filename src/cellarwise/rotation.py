"""
Rotation state: short-term memory of recently recommended bottles.

State is threaded explicitly through `recommend()` and returned updated; the
input state is never mutated. `RotationStore` implementations hold state per
user/session and must apply read-modify-write updates atomically.
"""

import logging
import threading
from datetime import datetime, timedelta
from typing import Callable, Dict, Iterable, List, Protocol

from pydantic import BaseModel, Field

from cellarwise.config import ROTATION_WINDOW_DAYS
from cellarwise.utils import ensure_aware

logger = logging.getLogger(__name__)


class RotationEntry(BaseModel):
    """A bottle shown to the user at a point in time."""

    bottle_id: str
    shown_at: datetime


class RotationState(BaseModel):
    """Time-bounded set of recently shown bottles."""

    entries: List[RotationEntry] = Field(default_factory=list)
    window_days: int = Field(ROTATION_WINDOW_DAYS, ge=0)

    def pruned(self, now: datetime) -> 'RotationState':
        """Return a copy without entries older than the retention window."""
        cutoff = ensure_aware(now) - timedelta(days=self.window_days)
        kept = [e for e in self.entries if ensure_aware(e.shown_at) >= cutoff]
        if len(kept) != len(self.entries):
            logger.debug(f"Pruned {len(self.entries) - len(kept)} expired rotation entries")
        return RotationState(entries=kept, window_days=self.window_days)

    def bottle_ids(self, now: datetime) -> set:
        """Ids shown within the window (pruning first)."""
        return {e.bottle_id for e in self.pruned(now).entries}

    def with_shown(self, bottle_ids: Iterable[str], now: datetime) -> 'RotationState':
        """Prune, then record `bottle_ids` as shown at `now`."""
        state = self.pruned(now)
        added = [RotationEntry(bottle_id=bid, shown_at=now) for bid in bottle_ids]
        return RotationState(entries=state.entries + added, window_days=self.window_days)


class RotationStore(Protocol):
    """Per-scope (user or session) rotation state storage."""

    def get(self, scope: str) -> RotationState:
        ...

    def update(self, scope: str, fn: Callable[[RotationState], RotationState]) -> RotationState:
        """Atomically replace the state for `scope` with `fn(current)`."""
        ...


class InMemoryRotationStore:
    """Process-local rotation store; a lock serialises concurrent updates."""

    def __init__(self, window_days: int = ROTATION_WINDOW_DAYS):
        self.window_days = window_days
        self._states: Dict[str, RotationState] = {}
        self._lock = threading.Lock()

    def get(self, scope: str) -> RotationState:
        with self._lock:
            return self._states.get(scope, RotationState(window_days=self.window_days))

    def update(self, scope: str, fn: Callable[[RotationState], RotationState]) -> RotationState:
        with self._lock:
            current = self._states.get(scope, RotationState(window_days=self.window_days))
            updated = fn(current)
            self._states[scope] = updated
            return updated
