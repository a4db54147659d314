"""
Student record model.

A record is identified by its studentID, which is unique across the store.
Records are never updated in place: they are created once and removed by id.
Field names follow the JSON wire format (camelCase) so the durable mirror and
API payloads use the same shape.
"""

from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


STUDENT_FIELDS = [
    "studentID", "fullName", "program", "yearLevel", "gender", "gmail", "university"
]


class StudentRecord(BaseModel):
    """A stored student entry. Unset optional fields are omitted when serialized."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    studentID: str = Field(..., description="Unique student identifier, e.g. 2025-001")
    fullName: str = Field(..., description="Student's full name")
    program: Optional[str] = Field(None, description="Degree program, e.g. BSIT")
    yearLevel: Optional[str] = Field(None, description="Year level as entered, e.g. 3")
    gender: Optional[str] = None
    gmail: Optional[str] = Field(None, description="Contact email (local@domain.tld)")
    university: Optional[str] = None

    def to_dict(self) -> dict:
        return self.model_dump(exclude_none=True)


class StudentCandidate(BaseModel):
    """Request body for creating a student. Required fields are enforced by the store."""

    model_config = ConfigDict(extra="ignore")

    studentID: Optional[str] = None
    fullName: Optional[str] = None
    program: Optional[str] = None
    yearLevel: Optional[str] = None
    gender: Optional[str] = None
    gmail: Optional[str] = None
    university: Optional[str] = None
