# judgments.py
"""
Pairwise judgments for one survey section.

A survey section arrives as a list of records
    {"left": "A1", "right": "A2", "ahp_ratio_aij": 3}
meaning "A1 is 3 times as important as A2". This module turns such a list into
a canonical JudgmentSet: the sorted item identifiers plus the usable judgments.
Defective records are dropped (and logged), never raised.
"""

from __future__ import annotations

import logging
import math
import sys
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Iterable, Optional, Tuple

logger = logging.getLogger(__name__)

RATIO_KEY = "ahp_ratio_aij"


@dataclass(frozen=True)
class Judgment:
    left: str
    right: str
    ratio: float


def parse_ratio(value: Any) -> Optional[float]:
    """Return the ratio as a positive finite float, or None if it is unusable."""
    if value is None or isinstance(value, bool):
        return None
    try:
        ratio = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(ratio) or ratio <= 0:
        return None
    # the reciprocal fills the mirrored cell and must stay finite
    if ratio < 1.0 / sys.float_info.max:
        return None
    return ratio


def _item_id(value: Any) -> Optional[str]:
    if isinstance(value, str) and value:
        return value
    return None


@dataclass(frozen=True)
class JudgmentSet:
    """
    section:
        Name of the survey section the judgments belong to.
    items:
        Distinct identifiers referenced by any record (even one without a usable
        ratio), sorted ascending. This ordering indexes the comparison matrix.
    judgments:
        At most one judgment per unordered pair; the last record wins.
    """
    section: str
    items: Tuple[str, ...]
    judgments: Tuple[Judgment, ...]

    @property
    def n(self) -> int:
        return len(self.items)

    @property
    def is_empty(self) -> bool:
        return not self.items

    @classmethod
    def from_records(cls, section: str, records: Iterable[Any]) -> "JudgmentSet":
        items = set()
        by_pair: Dict[FrozenSet[str], Judgment] = {}

        for idx, rec in enumerate(records):
            if not isinstance(rec, dict):
                logger.warning("[%s] record %d is not an object, skipped: %r", section, idx, rec)
                continue

            left, right = _item_id(rec.get("left")), _item_id(rec.get("right"))
            if left is None or right is None:
                logger.warning("[%s] record %d has no valid left/right ids, skipped: %r", section, idx, rec)
                continue
            items.update((left, right))

            raw = rec.get(RATIO_KEY)
            if raw is None:
                # unanswered pair
                continue
            ratio = parse_ratio(raw)
            if ratio is None:
                logger.warning("[%s] invalid ratio %r for %s/%s, judgment discarded", section, raw, left, right)
                continue
            if left == right:
                logger.warning("[%s] self-comparison of %s discarded", section, left)
                continue

            pair = frozenset((left, right))
            if pair in by_pair:
                logger.debug("[%s] duplicate judgment for %s/%s, keeping the later one", section, left, right)
                # re-insert so the pair keeps its latest position
                del by_pair[pair]
            by_pair[pair] = Judgment(left=left, right=right, ratio=ratio)

        return cls(
            section=section,
            items=tuple(sorted(items)),
            judgments=tuple(by_pair.values()),
        )
