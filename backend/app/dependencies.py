"""
FastAPI dependencies for the objects built in create_app().

The store and chat service live on app.state, so tests can construct an
app around their own instances.
"""

from fastapi import Request

from app.services.chat_service import ChatService
from app.services.student_store import StudentStore


def get_store(request: Request) -> StudentStore:
    return request.app.state.store


def get_chat_service(request: Request) -> ChatService:
    return request.app.state.chat_service
