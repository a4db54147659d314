"""
Student API routes - list, create and delete student records.

Validation, uniqueness and persistence are handled by the StudentStore;
its errors propagate to the AppError handler registered in main.py.
"""

from fastapi import APIRouter, Depends

from app.dependencies import get_store
from app.models.student import StudentCandidate
from app.services.student_store import StudentStore
from app.logging_config import get_logger, log_with_context

router = APIRouter()
logger = get_logger("http")


@router.get("/students")
def list_students(store: StudentStore = Depends(get_store)):
    """Return every student record in insertion order."""
    records = store.list()
    log_with_context(logger, "DEBUG", "Listed {} students".format(len(records)))
    return [r.to_dict() for r in records]


@router.post("/students", status_code=201)
def create_student(candidate: StudentCandidate, store: StudentStore = Depends(get_store)):
    """Create a student. Returns the stored record."""
    record = store.create(candidate)
    return record.to_dict()


@router.delete("/students/{student_id}")
def delete_student(student_id: str, store: StudentStore = Depends(get_store)):
    """Delete a student by studentID."""
    removed = store.delete_by_id(student_id)
    return {"success": True, "removed": removed.to_dict()}
