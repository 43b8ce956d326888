"""
History Store - rolling, newest-first log of past analyses.

Entries live in a pluggable backend addressed by a scope key: "local" when
nobody is signed in, "user:<id>" otherwise. The local backend is authoritative;
an optional mirror receives the same writes on a best-effort basis.
"""

import json
import logging
import os
import random
import string
import tempfile
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

from analyzer import AnalysisResult
from config import HISTORY_LIMIT, HISTORY_PATH
from errors import PersistenceError
from stats import ChartPoint, HistoryStats, chart_series, compute_stats

logger = logging.getLogger(__name__)

LOCAL_SCOPE = "local"
DEFAULT_RESUME_NAME = "My Resume"
_ID_ALPHABET = string.ascii_lowercase + string.digits


def scope_for_user(user_id: Optional[str]) -> str:
    return f"user:{user_id}" if user_id else LOCAL_SCOPE


def generate_entry_id(now: Optional[float] = None) -> str:
    """Time-derived id with a random suffix, e.g. ``analysis_1718000000000_k3j9x0a1b``."""
    millis = int((time.time() if now is None else now) * 1000)
    suffix = "".join(random.choices(_ID_ALPHABET, k=9))
    return f"analysis_{millis}_{suffix}"


@dataclass(frozen=True)
class HistoryEntry:
    """One persisted analysis outcome."""
    id: str
    timestamp: str
    role_id: str
    role_name: str
    result: AnalysisResult
    resume_name: str = DEFAULT_RESUME_NAME

    @property
    def created_at(self) -> datetime:
        return datetime.fromisoformat(self.timestamp)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "role_id": self.role_id,
            "role_name": self.role_name,
            "resume_name": self.resume_name,
            "result": self.result.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "HistoryEntry":
        return cls(
            id=data["id"],
            timestamp=data["timestamp"],
            role_id=data["role_id"],
            role_name=data["role_name"],
            resume_name=data.get("resume_name", DEFAULT_RESUME_NAME),
            result=AnalysisResult.from_dict(data["result"]),
        )


class HistoryBackend(ABC):
    """Key-value persistence for serialized history records, one list per scope."""

    @abstractmethod
    def load(self, scope: str) -> List[Dict]:
        """Return the stored records for *scope* (newest first), or an empty list."""
        pass

    @abstractmethod
    def save(self, scope: str, records: List[Dict]) -> None:
        """Replace the records stored for *scope*."""
        pass

    @abstractmethod
    def delete(self, scope: str) -> None:
        """Drop everything stored for *scope*."""
        pass


@dataclass
class InMemoryHistoryBackend(HistoryBackend):
    """Process-local backend, used in tests and for throwaway sessions."""
    data: Dict[str, List[Dict]] = field(default_factory=dict)

    def load(self, scope: str) -> List[Dict]:
        return [dict(record) for record in self.data.get(scope, [])]

    def save(self, scope: str, records: List[Dict]) -> None:
        self.data[scope] = [dict(record) for record in records]

    def delete(self, scope: str) -> None:
        self.data.pop(scope, None)


class JsonFileHistoryBackend(HistoryBackend):
    """Durable backend: a single JSON document mapping scope -> records."""

    def __init__(self, path: str = HISTORY_PATH):
        self.path = Path(path).expanduser()

    def _read(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                document = json.load(f)
        except (OSError, ValueError) as exc:
            raise PersistenceError(f"Could not read history file {self.path}: {exc}") from exc
        if not isinstance(document, dict):
            raise PersistenceError(f"History file {self.path} is not a JSON object.")
        return document

    def _write(self, document: dict) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=".history-", suffix=".json")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(document, f, indent=2)
                os.replace(tmp_path, self.path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except OSError as exc:
            raise PersistenceError(f"Could not write history file {self.path}: {exc}") from exc

    def load(self, scope: str) -> List[Dict]:
        records = self._read().get(scope, [])
        if not isinstance(records, list):
            raise PersistenceError(f"History for scope {scope!r} is not a list.")
        return records

    def save(self, scope: str, records: List[Dict]) -> None:
        document = self._read()
        document[scope] = records
        self._write(document)

    def delete(self, scope: str) -> None:
        document = self._read()
        if scope in document:
            del document[scope]
            self._write(document)


class HistoryStore:
    """Capped, newest-first history of analyses.

    Args:
        backend: Authoritative persistence; its failures propagate as PersistenceError.
        mirror: Optional secondary backend; its failures are logged and swallowed.
        limit: Maximum number of entries kept per scope.
    """

    def __init__(
        self,
        backend: Optional[HistoryBackend] = None,
        mirror: Optional[HistoryBackend] = None,
        limit: int = HISTORY_LIMIT,
    ):
        self.backend = backend if backend is not None else InMemoryHistoryBackend()
        self.mirror = mirror
        self.limit = limit

    def append(
        self,
        result: AnalysisResult,
        role_id: str,
        role_name: str,
        resume_name: str = DEFAULT_RESUME_NAME,
        scope: str = LOCAL_SCOPE,
    ) -> str:
        """Record *result* as the newest entry and return its assigned id."""
        entry = HistoryEntry(
            id=generate_entry_id(),
            timestamp=datetime.now(timezone.utc).isoformat(),
            role_id=role_id,
            role_name=role_name,
            resume_name=resume_name or DEFAULT_RESUME_NAME,
            result=result,
        )
        records = self.backend.load(scope)
        records.insert(0, entry.to_dict())
        if len(records) > self.limit:
            logger.info("History: evicting %s oldest entr(ies) from scope %s", len(records) - self.limit, scope)
            del records[self.limit:]
        self._save(scope, records)
        return entry.id

    def list(self, scope: str = LOCAL_SCOPE) -> List[HistoryEntry]:
        records = self.backend.load(scope)
        try:
            return [HistoryEntry.from_dict(record) for record in records]
        except (KeyError, TypeError, ValueError) as exc:
            raise PersistenceError(f"Corrupt history record in scope {scope!r}: {exc}") from exc

    def get(self, entry_id: str, scope: str = LOCAL_SCOPE) -> Optional[HistoryEntry]:
        for entry in self.list(scope):
            if entry.id == entry_id:
                return entry
        return None

    def remove(self, entry_id: str, scope: str = LOCAL_SCOPE) -> bool:
        records = self.backend.load(scope)
        remaining = [record for record in records if record.get("id") != entry_id]
        if len(remaining) == len(records):
            return False
        self._save(scope, remaining)
        return True

    def clear(self, scope: str = LOCAL_SCOPE) -> None:
        self.backend.delete(scope)
        if self.mirror is not None:
            try:
                self.mirror.delete(scope)
            except Exception as exc:
                logger.warning("History mirror clear failed for scope %s: %s", scope, exc)

    def stats(self, scope: str = LOCAL_SCOPE) -> HistoryStats:
        return compute_stats(self.list(scope))

    def chart_series(self, scope: str = LOCAL_SCOPE) -> List[ChartPoint]:
        return chart_series(self.list(scope))

    def _save(self, scope: str, records: List[Dict]) -> None:
        self.backend.save(scope, records)
        if self.mirror is None:
            return
        try:
            self.mirror.save(scope, records)
        except Exception as exc:
            logger.warning("History mirror write failed for scope %s: %s", scope, exc)
