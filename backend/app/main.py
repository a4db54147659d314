"""
Student Records Chat - FastAPI Application Entry Point.

This is the main application module that:
1. Sets up structured JSON logging
2. Builds the student store (loaded once from its durable mirror)
   and the chat pipeline for the configured completion provider
3. Adds CORS and request ID middleware (X-Request-ID header)
4. Maps every error to a JSON {"error", "kind"} body
5. Registers the student and chat routes plus health endpoints

The application follows a modular architecture:
- routes/: API endpoint handlers
- models/: Pydantic models for records and chat payloads
- services/: Record store, prompt builder, completion gateway, chat service
- storage.py: Persistence strategies for the durable mirror
- logging_config.py: Structured logging configuration
"""

import time
from datetime import datetime, timezone
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app import config
from app.errors import AppError, ErrorKind, STATUS_CODES
from app.logging_config import (
    setup_logging, get_logger, log_with_context,
    request_id_var, generate_request_id
)
from app.routes import students, chat
from app.services.chat_service import ChatService
from app.services.completion_gateway import CompletionGateway, build_gateway
from app.services.student_store import StudentStore
from app.storage import JsonFileRepository

# ──────────────────────────────────────────────────────────────
# Initialize structured logging BEFORE anything else
# ──────────────────────────────────────────────────────────────
setup_logging()
logger = get_logger("http")

SERVICE_NAME = "student-backend"
VERSION = "1.0.0"


def _validation_message(exc: RequestValidationError) -> str:
    """Render the first request validation error as 'field: problem'."""
    errors = exc.errors()
    if not errors:
        return "Invalid request."
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    return "{}: {}".format(location, first.get("msg")) if location else str(first.get("msg"))


def register_exception_handlers(app: FastAPI):
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        log_with_context(logger, "WARNING",
            "{} {} failed: {}".format(request.method, request.url.path, exc.message),
            extra_data={"kind": exc.kind.value, "status_code": exc.status_code})
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=STATUS_CODES[ErrorKind.VALIDATION],
            content={"error": _validation_message(exc), "kind": ErrorKind.VALIDATION.value},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        message = "Not Found" if exc.status_code == 404 else str(exc.detail)
        return JSONResponse(status_code=exc.status_code, content={"error": message})

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on {} {}".format(request.method, request.url.path))
        return JSONResponse(status_code=500, content={"error": "Internal server error."})


def create_app(store: StudentStore = None, gateway: CompletionGateway = None,
               record_limit: int = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        store: Student store to serve; defaults to one backed by STUDENTS_FILE
        gateway: Completion gateway; defaults to the configured provider
        record_limit: Cap on records embedded in chat prompts
    """
    if store is None:
        store = StudentStore(JsonFileRepository(config.STUDENTS_FILE),
                             strict=config.STUDENT_VALIDATION == "strict")
    if gateway is None:
        gateway = build_gateway()

    app = FastAPI(
        title="Student Records Chat",
        description=(
            "Student record management with a JSON-file mirror, plus a chat endpoint "
            "that answers questions about the records through a hosted language model."
        ),
        version=VERSION,
        docs_url="/docs",
        redoc_url="/redoc"
    )
    app.state.store = store
    app.state.chat_service = ChatService(
        store, gateway,
        record_limit=config.PROMPT_RECORD_LIMIT if record_limit is None else record_limit,
    )

    # ──────────────────────────────────────────────────────────
    # CORS Middleware
    # ──────────────────────────────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ALLOWED_ORIGINS,
        allow_credentials=False,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"]
    )

    # ──────────────────────────────────────────────────────────
    # Request ID Middleware
    #
    # Generates a UUID per request, stores it in a context variable
    # for every log entry, returns it as X-Request-ID and logs
    # request start/end with latency.
    # ──────────────────────────────────────────────────────────
    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next):
        req_id = generate_request_id()
        request_id_var.set(req_id)
        start_time = time.time()

        log_with_context(logger, "INFO",
            f"Request started: {request.method} {request.url.path}",
            context={"request_id": req_id},
            extra_data={
                "ip": request.client.host if request.client else "unknown",
                "user_agent": request.headers.get("user-agent", ""),
            })

        response = await call_next(request)

        duration_ms = (time.time() - start_time) * 1000
        response.headers["X-Request-ID"] = req_id

        log_with_context(logger, "INFO",
            f"Request completed: {request.method} {request.url.path} → {response.status_code}",
            context={"request_id": req_id},
            extra_data={
                "duration_ms": round(duration_ms, 2),
                "status_code": response.status_code
            })

        return response

    register_exception_handlers(app)

    # ──────────────────────────────────────────────────────────
    # Register API routes
    # ──────────────────────────────────────────────────────────
    app.include_router(students.router, tags=["Students"])
    app.include_router(chat.router, tags=["Chat"])

    @app.get("/", tags=["Root"])
    def root():
        return {"status": "ok", "service": SERVICE_NAME,
                "time": datetime.now(timezone.utc).isoformat()}

    @app.get("/health", tags=["Health"])
    def health_check():
        """Health check endpoint for container health checks and monitoring."""
        return {"status": "healthy", "service": SERVICE_NAME, "version": VERSION}

    return app


app = create_app()
