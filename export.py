"""
Export helpers - flat, named records of history entries for report writers.
"""

import csv
import io
from pathlib import Path
from typing import Dict, Iterable, List

from history import HistoryEntry

EXPORT_FIELDS: List[str] = [
    "id",
    "timestamp",
    "resume_name",
    "role_id",
    "role_name",
    "match_percentage",
    "ats_score",
    "matched_skills",
    "missing_skills",
    "suggestions",
    "detailed_feedback",
    "is_ai_powered",
]


def entry_to_record(entry: HistoryEntry) -> Dict[str, object]:
    """Every entry and result field under its own name; lists joined with '; '."""
    result = entry.result
    return {
        "id": entry.id,
        "timestamp": entry.timestamp,
        "resume_name": entry.resume_name,
        "role_id": entry.role_id,
        "role_name": entry.role_name,
        "match_percentage": result.match_percentage,
        "ats_score": result.ats_score,
        "matched_skills": "; ".join(result.matched_skills),
        "missing_skills": "; ".join(result.missing_skills),
        "suggestions": "; ".join(result.suggestions),
        "detailed_feedback": result.detailed_feedback or "",
        "is_ai_powered": result.is_ai_powered,
    }


def history_to_csv(entries: Iterable[HistoryEntry]) -> str:
    output = io.StringIO()
    writer = csv.DictWriter(output, fieldnames=EXPORT_FIELDS)
    writer.writeheader()
    for entry in entries:
        writer.writerow(entry_to_record(entry))
    return output.getvalue()


def write_history_csv(entries: Iterable[HistoryEntry], path: str) -> Path:
    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding="utf-8", newline="") as f:
        f.write(history_to_csv(entries))
    return output_path
