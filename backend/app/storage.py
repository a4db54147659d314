"""
Persistence strategies for the student record store.

A repository loads the whole record list once and saves the whole list
after every mutation. The store never touches files directly, so the
on-disk format can change without changing the store's contract.
"""

import copy
import json
import os
from abc import ABC, abstractmethod
from typing import List

from app.logging_config import get_logger, log_with_context

logger = get_logger("store")


class RecordRepository(ABC):
    """Loads and saves the full ordered list of serialized records."""

    @abstractmethod
    def load(self) -> List[dict]:
        """Return the stored records, oldest first. Never raises for missing data."""

    @abstractmethod
    def save(self, records: List[dict]) -> None:
        """Replace the stored records with `records`. Raises OSError on failure."""


class InMemoryRepository(RecordRepository):
    """Keeps records in process memory only."""

    def __init__(self, records: List[dict] = None):
        self._records = copy.deepcopy(list(records or []))
        self.save_count = 0

    def load(self) -> List[dict]:
        return copy.deepcopy(self._records)

    def save(self, records: List[dict]) -> None:
        self._records = copy.deepcopy(list(records))
        self.save_count += 1


class JsonFileRepository(RecordRepository):
    """
    Stores records as a human-readable JSON array in a single file.

    Writes go to a sibling temp file which then replaces the mirror, so a
    crash mid-write leaves the previous mirror intact.
    """

    def __init__(self, path: str):
        self.path = path

    def load(self) -> List[dict]:
        if not os.path.exists(self.path):
            log_with_context(logger, "INFO", "No student mirror at {}, starting empty".format(self.path))
            return []

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError, UnicodeDecodeError) as e:
            log_with_context(logger, "WARNING",
                "Student mirror {} is unreadable, starting empty".format(self.path),
                extra_data={"error": str(e)})
            return []

        if not isinstance(data, list):
            log_with_context(logger, "WARNING",
                "Student mirror {} does not hold a JSON array, starting empty".format(self.path),
                extra_data={"type": type(data).__name__})
            return []

        return data

    def save(self, records: List[dict]) -> None:
        directory = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(directory, exist_ok=True)

        tmp_path = self.path + ".tmp"
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(records, f, indent=2, ensure_ascii=False)
            f.write("\n")
        os.replace(tmp_path, self.path)
