"""
Question Bank Admin API - FastAPI Application Entry Point.

This is the main application module that:
1. Builds the FastAPI app from Settings (create_app)
2. Sets up structured JSON logging
3. Opens the database handle and AI client on startup, closes them on shutdown
4. Implements request ID middleware (X-Request-ID header)
5. Maps the error taxonomy onto JSON error responses
6. Registers all API route handlers

The application follows a modular architecture:
- routes/: API endpoint handlers
- models/: SQLAlchemy ORM models
- services/: Bulk insert, test authoring, queries, AI generation
- schemas.py: Request payload schemas
- errors.py: Error taxonomy
- logging_config.py: Structured logging configuration
- database.py: Database handle and session dependency
"""

import time
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from quizbank import __version__
from quizbank.config import Settings
from quizbank.database import Database
from quizbank.errors import QuestionBankError
from quizbank.logging_config import (
    setup_logging, get_logger, log_with_context,
    request_id_var, generate_request_id
)
from quizbank.routes import questions, tests
from quizbank.services.generation import QuestionGenerator

logger = get_logger("http")


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


def _describe_validation_error(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        location = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append("{}: {}".format(location, err.get("msg")) if location else err.get("msg"))
    return "Invalid payload. " + "; ".join(parts)


def register_exception_handlers(app: FastAPI):
    """Turn every failure into a JSON body with an error field."""

    @app.exception_handler(QuestionBankError)
    async def question_bank_error_handler(request: Request, exc: QuestionBankError):
        level = "ERROR" if exc.status_code >= 500 else "WARNING"
        log_with_context(logger, level, "{} on {} {}: {}".format(
            type(exc).__name__, request.method, request.url.path, exc.message),
            extra_data={"status_code": exc.status_code})
        return _error_response(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        message = _describe_validation_error(exc)
        log_with_context(logger, "WARNING", "Rejected {} {}: {}".format(
            request.method, request.url.path, message))
        return _error_response(400, message)

    @app.exception_handler(SQLAlchemyError)
    async def store_error_handler(request: Request, exc: SQLAlchemyError):
        log_with_context(logger, "ERROR", "Database error on {} {}: {}".format(
            request.method, request.url.path, str(exc)))
        return _error_response(500, "A database error occurred.")

    @app.exception_handler(Exception)
    async def unknown_error_handler(request: Request, exc: Exception):
        log_with_context(logger, "ERROR", "Unhandled exception on {} {}: {}".format(
            request.method, request.url.path, str(exc)), exc_info=True)
        return _error_response(500, "An internal server error occurred.")


def create_app(settings: Settings = None) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Configuration to use; read from the environment when omitted
    """
    settings = settings or Settings.from_env()
    setup_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        database = Database(
            settings.database_url,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            echo=settings.db_echo,
        )
        # SQLite has no migrations; create tables directly
        if database.is_sqlite:
            log_with_context(logger, "INFO", "Using SQLite, creating tables directly")
            database.create_tables()

        generator = QuestionGenerator(
            api_key=settings.gemini_api_key,
            model=settings.gemini_model,
            base_url=settings.gemini_base_url,
            timeout=settings.gemini_timeout_seconds,
        )

        app.state.database = database
        app.state.generator = generator
        log_with_context(logger, "INFO", "Application startup complete")
        try:
            yield
        finally:
            generator.close()
            database.dispose()
            log_with_context(logger, "INFO", "Application shutdown complete")

    app = FastAPI(
        title="Question Bank Admin API",
        description=(
            "Admin API for a quiz question bank: bulk question creation, "
            "AI-drafted questions, random sampling, and atomically authored timed tests."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"]
    )

    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next):
        """
        Generate a request ID, expose it in X-Request-ID, and log the
        request's start and completion with latency.
        """
        req_id = generate_request_id()
        request_id_var.set(req_id)
        start_time = time.time()

        log_with_context(logger, "INFO",
            f"Request started: {request.method} {request.url.path}",
            context={"request_id": req_id},
            extra_data={
                "ip": request.client.host if request.client else "unknown",
                "user_agent": request.headers.get("user-agent", ""),
                "query_params": dict(request.query_params)
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

    app.include_router(questions.router, tags=["Questions"])
    app.include_router(tests.router, tags=["Tests"])

    @app.get("/health", tags=["Health"])
    def health_check():
        """Health check endpoint for Docker health checks and monitoring."""
        return {"status": "healthy", "service": "question-bank-backend", "version": __version__}

    @app.get("/", tags=["Root"])
    def root():
        """Root endpoint with API information."""
        return {
            "service": "Question Bank Admin API",
            "version": __version__,
            "docs": "/docs",
            "health": "/health",
            "endpoints": {
                "questions_list": "GET /api/questions",
                "questions_update": "PUT /api/questions",
                "questions_delete": "DELETE /api/questions?id=",
                "questions_create": "POST /api/questions/create",
                "questions_find": "GET /api/questions/find?language=&difficulty=&limit=",
                "questions_generate": "POST /api/questions/generate",
                "tests_list": "GET /api/tests",
                "tests_create": "POST /api/tests/create",
                "test_detail": "GET /api/tests/{id}",
                "test_update": "PUT /api/tests/{id}",
                "test_delete": "DELETE /api/tests/{id}",
                "test_add_questions": "POST /api/tests/{id}/questions",
                "test_remove_question": "DELETE /api/tests/{id}/questions"
            }
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("quizbank.main:app", host="0.0.0.0", port=8000)
