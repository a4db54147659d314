"""
Chat models: conversation turns, the chat request body, assembled prompts
and the normalized provider result.
"""

from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field

from app.errors import ErrorKind, status_for


class ChatRole(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class ChatTurn(BaseModel):
    role: ChatRole
    content: str

    def to_message(self) -> dict:
        return {"role": self.role.value, "content": self.content}


class ChatRequest(BaseModel):
    """Request body for POST /chat."""
    message: Optional[str] = Field(None, description="The user's question")
    context: Optional[List[ChatTurn]] = Field(None, description="Prior conversation turns, oldest first")


class PromptPair(BaseModel):
    model_config = ConfigDict(frozen=True)

    system_prompt: str
    user_prompt: str


class ProviderResult(BaseModel):
    """
    Normalized outcome of a completion call.

    Either success=True with a message, or success=False with an error_kind
    and a human-readable detail. upstream_status is set when the provider
    answered with an error status.
    """

    success: bool
    message: Optional[str] = None
    model: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    detail: Optional[str] = None
    upstream_status: Optional[int] = None

    @classmethod
    def ok(cls, message: str, model: Optional[str] = None) -> "ProviderResult":
        return cls(success=True, message=message, model=model)

    @classmethod
    def failure(cls, error_kind: ErrorKind, detail: str,
                upstream_status: Optional[int] = None) -> "ProviderResult":
        return cls(success=False, error_kind=error_kind, detail=detail,
                   upstream_status=upstream_status)

    @property
    def status_code(self) -> int:
        if self.success:
            return 200
        return status_for(self.error_kind, self.upstream_status)
