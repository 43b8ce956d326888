"""Summary statistics and trend series derived from the analysis history."""

from collections import Counter
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from analyzer import round_half_up

IMPROVEMENT_WINDOW = 5


@dataclass(frozen=True)
class HistoryStats:
    total: int = 0
    avg_match: int = 0
    avg_ats: int = 0
    top_role: Optional[str] = None
    improvement: int = 0

    def to_dict(self) -> Dict[str, object]:
        return asdict(self)


@dataclass(frozen=True)
class ChartPoint:
    date: str
    timestamp: str
    match_percentage: int
    ats_score: int
    role_name: str

    def to_dict(self) -> Dict[str, object]:
        return asdict(self)


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def _top_role(role_names: Sequence[str]) -> Optional[str]:
    if not role_names:
        return None
    counts = Counter(role_names)
    # ties go to the role seen first
    return max(counts, key=counts.get)


def compute_stats(entries: Sequence) -> HistoryStats:
    """Aggregate a newest-first sequence of history entries.

    ``improvement`` compares the mean match percentage of the newest
    IMPROVEMENT_WINDOW entries with that of the oldest IMPROVEMENT_WINDOW.
    With fewer than 2 * IMPROVEMENT_WINDOW entries the two windows overlap
    (a known quirk, left as is).
    """
    total = len(entries)
    if total == 0:
        return HistoryStats()

    match_scores = [entry.result.match_percentage for entry in entries]
    ats_scores = [entry.result.ats_score for entry in entries]

    improvement = 0
    if total >= 2:
        window = min(IMPROVEMENT_WINDOW, total)
        recent = match_scores[:window]
        old = match_scores[-window:]
        improvement = round_half_up(_mean(recent) - _mean(old))

    return HistoryStats(
        total=total,
        avg_match=round_half_up(_mean(match_scores)),
        avg_ats=round_half_up(_mean(ats_scores)),
        top_role=_top_role([entry.role_name for entry in entries]),
        improvement=improvement,
    )


def _short_date(timestamp: str) -> str:
    moment = datetime.fromisoformat(timestamp)
    return f"{moment:%b} {moment.day}"


def chart_series(entries: Sequence) -> List[ChartPoint]:
    """One point per entry, oldest first."""
    return [
        ChartPoint(
            date=_short_date(entry.timestamp),
            timestamp=entry.timestamp,
            match_percentage=entry.result.match_percentage,
            ats_score=entry.result.ats_score,
            role_name=entry.role_name,
        )
        for entry in reversed(list(entries))
    ]
