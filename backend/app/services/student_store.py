"""
Student Store - owns the in-memory student snapshot and its durable mirror.

Rules enforced on create:
1. studentID and fullName are required (strict mode requires every field)
2. Blank strings count as missing; other values are stored verbatim
3. gmail, when present, must look like local@domain.tld
4. studentID is unique across the store

Every mutation rewrites the full mirror through the repository before it
returns. If the write fails the in-memory change is undone, so the snapshot
never runs ahead of what is on disk. One lock serializes mutations and the
mirror write that follows them.
"""

import re
import threading
import time
from typing import List, Optional

from pydantic import ValidationError

from app.errors import RecordValidationError, DuplicateKeyError, NotFoundError, PersistenceError
from app.models.student import StudentRecord, StudentCandidate, STUDENT_FIELDS
from app.storage import RecordRepository
from app.logging_config import get_logger, log_with_context

logger = get_logger("store")

LENIENT_REQUIRED_FIELDS = ["studentID", "fullName"]
STRICT_REQUIRED_FIELDS = list(STUDENT_FIELDS)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def is_valid_email(value: str) -> bool:
    return bool(EMAIL_PATTERN.match(value))


def _clean(value: Optional[str]) -> Optional[str]:
    """Map blank strings to None, keep everything else verbatim."""
    if value is None or not value.strip():
        return None
    return value


class StudentStore:
    """
    Ordered, uniquely keyed collection of student records.

    Args:
        repository: Persistence strategy for the durable mirror
        strict: Require every student field instead of only studentID and fullName
    """

    def __init__(self, repository: RecordRepository, strict: bool = False):
        self.repository = repository
        self.strict = strict
        self.required_fields = STRICT_REQUIRED_FIELDS if strict else LENIENT_REQUIRED_FIELDS
        self._lock = threading.Lock()
        self._records: List[StudentRecord] = self._load()

    def _load(self) -> List[StudentRecord]:
        records = []
        seen_ids = set()
        for index, raw in enumerate(self.repository.load()):
            if not isinstance(raw, dict):
                log_with_context(logger, "WARNING", "Skipping non-object entry at index {}".format(index))
                continue
            try:
                record = StudentRecord.model_validate(raw)
            except ValidationError as e:
                log_with_context(logger, "WARNING", "Skipping invalid record at index {}".format(index),
                                 extra_data={"error": str(e)})
                continue
            if record.studentID in seen_ids:
                log_with_context(logger, "WARNING", "Skipping duplicate studentID {}".format(record.studentID),
                                 context={"student_id": record.studentID})
                continue
            seen_ids.add(record.studentID)
            records.append(record)

        log_with_context(logger, "INFO", "Loaded {} student records".format(len(records)),
                         extra_data={"record_count": len(records), "strict": self.strict})
        return records

    def _persist(self):
        """Write the full snapshot to the mirror. Caller must hold the lock."""
        start_time = time.time()
        self.repository.save([r.to_dict() for r in self._records])
        duration_ms = (time.time() - start_time) * 1000
        log_with_context(logger, "DEBUG", "Persisted {} student records".format(len(self._records)),
                         extra_data={"duration_ms": round(duration_ms, 2)})

    def validate(self, candidate: StudentCandidate) -> StudentRecord:
        """Check a candidate against the required-field and email rules."""
        values = {name: _clean(getattr(candidate, name)) for name in STUDENT_FIELDS}

        missing = [name for name in self.required_fields if not values[name]]
        if missing:
            raise RecordValidationError("{} {} required.".format(
                " and ".join(missing) if len(missing) <= 2 else ", ".join(missing),
                "is" if len(missing) == 1 else "are"))

        if values["gmail"] and not is_valid_email(values["gmail"]):
            raise RecordValidationError("gmail must be a valid email address.")

        return StudentRecord(**values)

    def list(self) -> List[StudentRecord]:
        """Return the current snapshot in insertion order."""
        with self._lock:
            return list(self._records)

    def count(self) -> int:
        with self._lock:
            return len(self._records)

    def get(self, student_id: str) -> Optional[StudentRecord]:
        with self._lock:
            for record in self._records:
                if record.studentID == student_id:
                    return record
        return None

    def create(self, candidate: StudentCandidate) -> StudentRecord:
        """Validate and append a record, then persist the full snapshot."""
        record = self.validate(candidate)

        with self._lock:
            if any(r.studentID == record.studentID for r in self._records):
                raise DuplicateKeyError("Student with this ID already exists.")

            self._records.append(record)
            try:
                self._persist()
            except OSError as e:
                self._records.pop()
                log_with_context(logger, "ERROR", "Failed to persist new student: {}".format(e),
                                 context={"student_id": record.studentID})
                raise PersistenceError("Failed to save student records.") from e

        log_with_context(logger, "INFO", "Created student {}".format(record.studentID),
                         context={"student_id": record.studentID})
        return record

    def delete_by_id(self, student_id: str) -> StudentRecord:
        """Remove the record with `student_id`, then persist the full snapshot."""
        with self._lock:
            index = next((i for i, r in enumerate(self._records) if r.studentID == student_id), None)
            if index is None:
                raise NotFoundError("Student not found.")

            removed = self._records.pop(index)
            try:
                self._persist()
            except OSError as e:
                self._records.insert(index, removed)
                log_with_context(logger, "ERROR", "Failed to persist student removal: {}".format(e),
                                 context={"student_id": student_id})
                raise PersistenceError("Failed to save student records.") from e

        log_with_context(logger, "INFO", "Deleted student {}".format(student_id),
                         context={"student_id": student_id})
        return removed
