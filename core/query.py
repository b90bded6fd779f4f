"""Filtering, sorting and dashboard aggregation over a record snapshot."""

from __future__ import annotations

import unicodedata
from collections import Counter
from dataclasses import dataclass, field
from functools import cmp_to_key
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from core.bidding_record import SEARCH_FIELDS, BiddingRecord, StatusDisputa

ASCENDING = "asc"
DESCENDING = "desc"
DEFAULT_SORT_FIELD = "num_disputa"
TOP_ENTITIES_LIMIT = 5


def filter_records(
    records: Iterable[BiddingRecord],
    search_text: str = "",
    *,
    status: Optional[str] = None,
) -> List[BiddingRecord]:
    """Return records where ``search_text`` occurs in any searchable field.

    Matching is case-insensitive; empty text matches everything.
    """
    needle = (search_text or "").lower()
    matched = []
    for record in records:
        if status and record.status_disputa != status:
            continue
        if needle and not any(
            needle in str(getattr(record, name) or "").lower() for name in SEARCH_FIELDS
        ):
            continue
        matched.append(record)
    return matched


def collation_key(text: str) -> Tuple[str, str, str]:
    """Locale-style ordering: base letters first, then accents, then case."""
    decomposed = unicodedata.normalize("NFD", text)
    base = "".join(ch for ch in decomposed if unicodedata.category(ch) != "Mn")
    return base.casefold(), text.casefold(), text.swapcase()


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _compare(left: Any, right: Any) -> int:
    if isinstance(left, str) and isinstance(right, str):
        left_key, right_key = collation_key(left), collation_key(right)
        return (left_key > right_key) - (left_key < right_key)
    if _is_number(left) and _is_number(right):
        return (left > right) - (left < right)
    # Mixed or unsupported types keep their relative order.
    return 0


def sort_records(
    records: Iterable[BiddingRecord],
    field_name: str,
    direction: str = ASCENDING,
) -> List[BiddingRecord]:
    """Stable sort by one field; equal keys keep their original order."""
    sign = -1 if direction == DESCENDING else 1

    def compare(a: BiddingRecord, b: BiddingRecord) -> int:
        return sign * _compare(getattr(a, field_name, None), getattr(b, field_name, None))

    return sorted(records, key=cmp_to_key(compare))


@dataclass
class SortState:
    """Column sort selection of the table view."""

    field: str = DEFAULT_SORT_FIELD
    direction: str = ASCENDING

    def choose(self, field_name: str) -> "SortState":
        """Toggle direction for the current field, reset to ascending for a new one."""
        if field_name == self.field:
            self.direction = DESCENDING if self.direction == ASCENDING else ASCENDING
        else:
            self.field = field_name
            self.direction = ASCENDING
        return self

    def apply(self, records: Iterable[BiddingRecord]) -> List[BiddingRecord]:
        return sort_records(records, self.field, self.direction)


@dataclass
class DashboardSummary:
    total: int = 0
    completed: int = 0
    completed_percent: float = 0
    total_saving: float = 0
    average_lead_time: float = 0
    over_goal: int = 0
    status_counts: List[Tuple[str, int]] = field(default_factory=list)
    top_entities: List[Tuple[str, int]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "completed": self.completed,
            "completed_percent": self.completed_percent,
            "total_saving": self.total_saving,
            "average_lead_time": self.average_lead_time,
            "over_goal": self.over_goal,
            "status_counts": [{"name": name, "value": count} for name, count in self.status_counts],
            "top_entities": [{"name": name, "value": count} for name, count in self.top_entities],
        }


def top_entities(
    records: Sequence[BiddingRecord], limit: int = TOP_ENTITIES_LIMIT
) -> List[Tuple[str, int]]:
    """Most frequent entity names; ties keep first-encounter order."""
    counts = Counter(record.entidade for record in records)
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return ranked[:limit]


def aggregate(records: Sequence[BiddingRecord]) -> DashboardSummary:
    """Summarize the full record set for the dashboard."""
    total = len(records)
    if not total:
        return DashboardSummary()

    completed = sum(1 for r in records if r.status_disputa == StatusDisputa.CONCLUIDA.value)
    lead_times = [r.lead_time_indicador or 0 for r in records]
    statuses = Counter(r.status_disputa for r in records)

    return DashboardSummary(
        total=total,
        completed=completed,
        completed_percent=completed / total * 100,
        total_saving=sum(r.valor_saving or 0 for r in records),
        average_lead_time=sum(lead_times) / total,
        over_goal=sum(1 for r in records if (r.lead_time_indicador or 0) > (r.meta_dias or 0)),
        status_counts=[
            (status.value, statuses[status.value])
            for status in StatusDisputa
            if statuses[status.value] > 0
        ],
        top_entities=top_entities(records),
    )
