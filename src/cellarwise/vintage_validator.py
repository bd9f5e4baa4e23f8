"""
Vintage Consistency Validator

Within a wine family sorted by ascending vintage, an older vintage must never
be HOLD while the next younger one is READY or PEAK_SOON. Inversions are
reported as data; nothing is corrected.
"""

import logging
from collections import defaultdict
from typing import Dict, Iterable, List

from cellarwise.constants import ReadinessLabel
from cellarwise.identity import family_identity
from cellarwise.schema import Bottle, FamilyValidation, VintageIssue

logger = logging.getLogger(__name__)


def group_by_family(bottles: Iterable[Bottle]) -> Dict[str, List[Bottle]]:
    """Group bottles by case-insensitive producer/name identity."""
    families: Dict[str, List[Bottle]] = defaultdict(list)
    for bottle in bottles:
        families[family_identity(bottle.wine.producer, bottle.wine.name)].append(bottle)
    return dict(families)


def validate_family(bottles: Iterable[Bottle]) -> FamilyValidation:
    """
    Check every wine family in `bottles` for vintage inversions.

    Bottles without a vintage or without a verdict are ignored. Bottles sharing
    a vintage are pooled, and adjacent distinct vintages are compared after
    sorting oldest first.

    Args:
        bottles: Bottles, possibly spanning several families

    Returns:
        FamilyValidation(valid, issues)
    """
    issues: List[VintageIssue] = []

    for identity, members in group_by_family(bottles).items():
        by_vintage: Dict[int, List[ReadinessLabel]] = defaultdict(list)
        for b in members:
            if b.wine.vintage and b.verdict is not None:
                by_vintage[b.wine.vintage].append(b.verdict.label)
        if len(by_vintage) < 2:
            continue

        vintages = sorted(by_vintage)

        # Least ready label of the older vintage against most ready of the younger
        for older, younger in zip(vintages, vintages[1:]):
            older_label = min(by_vintage[older], key=lambda label: (label.rank, label.value))
            younger_label = max(by_vintage[younger], key=lambda label: (label.rank, label.value))

            if older_label.rank >= younger_label.rank:
                continue

            issues.append(VintageIssue(
                identity=identity,
                older_vintage=older,
                younger_vintage=younger,
                issue=(
                    f"{older} is marked {ReadinessLabel.HOLD.value} "
                    f"but {younger} is marked {younger_label.value}"
                ),
                suggestion="Older vintage should be at least as ready as younger vintage",
            ))
            logger.warning(
                f"Vintage inversion in {identity}: {older} {older_label.value} "
                f"vs {younger} {younger_label.value}"
            )

    return FamilyValidation(valid=not issues, issues=issues)
