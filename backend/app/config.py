"""
Runtime configuration read from environment variables.

Values are resolved once at import time. Provider credentials are optional
here; their absence is reported per chat request as ConfigurationMissing.
"""

import os


def int_env(name: str):
    """Read an integer variable, None when unset or blank."""
    value = os.getenv(name, "").strip()
    return int(value) if value else None


LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# ── Record store ──────────────────────────────────────────────
STUDENTS_FILE = os.getenv("STUDENTS_FILE", "./data/students.json")

# "lenient" requires studentID and fullName, "strict" requires every field
STUDENT_VALIDATION = os.getenv("STUDENT_VALIDATION", "lenient").lower()

# ── Completion provider ───────────────────────────────────────
COMPLETION_PROVIDER = os.getenv("COMPLETION_PROVIDER", "openrouter").lower()
COMPLETION_TEMPERATURE = float(os.getenv("COMPLETION_TEMPERATURE", "0.2"))

# Response cap; unset means no cap for OpenRouter and OPENAI_DEFAULT_MAX_TOKENS for OpenAI
COMPLETION_MAX_TOKENS = int_env("COMPLETION_MAX_TOKENS")

OPENROUTER_API_KEY = os.getenv("OPENROUTER_API_KEY")
OPENROUTER_BASE_URL = os.getenv("OPENROUTER_BASE_URL", "https://openrouter.ai/api/v1")
OPENROUTER_MODEL = os.getenv("OPENROUTER_MODEL", "mistralai/mistral-7b-instruct")

OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
OPENAI_DEFAULT_MAX_TOKENS = 600

# Sent to OpenRouter for request attribution
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5500")
CHAT_APP_TITLE = os.getenv("CHAT_APP_TITLE", "Student Info Chat")

# Maximum number of records embedded in a chat prompt
PROMPT_RECORD_LIMIT = int(os.getenv("PROMPT_RECORD_LIMIT", "500"))

# ── HTTP ──────────────────────────────────────────────────────
CORS_ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv(
        "CORS_ALLOWED_ORIGINS", "http://localhost:5500,http://localhost:3000"
    ).split(",")
    if origin.strip()
]
