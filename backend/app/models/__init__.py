from app.models.student import StudentRecord, StudentCandidate, STUDENT_FIELDS
from app.models.chat import ChatRole, ChatTurn, ChatRequest, PromptPair, ProviderResult

__all__ = [
    "StudentRecord", "StudentCandidate", "STUDENT_FIELDS",
    "ChatRole", "ChatTurn", "ChatRequest", "PromptPair", "ProviderResult",
]
