"""
Chat API route - natural-language questions about the student records.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from app.dependencies import get_chat_service
from app.errors import RecordValidationError
from app.models.chat import ChatRequest
from app.services.chat_service import ChatService
from app.logging_config import get_logger, log_with_context

router = APIRouter()
logger = get_logger("http")


@router.post("/chat")
def chat(request: ChatRequest, chat_service: ChatService = Depends(get_chat_service)):
    """
    Answer a question using the current student records.

    Success: {"success": true, "model": ..., "message": ...}
    Failure: {"error": ..., "kind": ...} with the status for the error kind
    """
    if not request.message or not request.message.strip():
        raise RecordValidationError("Message is required and must be a string.")

    result = chat_service.answer(request.message, request.context)

    if not result.success:
        log_with_context(logger, "WARNING", "Chat request failed: {}".format(result.detail),
                         extra_data={"kind": result.error_kind.value, "status_code": result.status_code})
        return JSONResponse(
            status_code=result.status_code,
            content={"error": result.detail, "kind": result.error_kind.value},
        )

    return {"success": True, "model": result.model, "message": result.message}
