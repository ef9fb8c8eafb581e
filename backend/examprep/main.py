"""
Exam Prep Platform - FastAPI Application Entry Point.

This is the main application module that:
1. Initializes the FastAPI app with CORS middleware
2. Sets up structured JSON logging
3. Implements request ID middleware (X-Request-ID header)
4. Registers all API route handlers and the error handlers
5. Provides health check endpoint

The application follows a modular architecture:
- routes/: API endpoint handlers
- models/: SQLAlchemy ORM models
- services/: Business logic (scoring engine, validators)
- logging_config.py: Structured logging configuration
- database.py: Database connection management
"""

import time
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from examprep.logging_config import (
    setup_logging, get_logger, log_with_context,
    request_id_var, user_id_var, generate_request_id
)
from examprep.security import decode_access_token
from examprep.routes import auth, questions, tests, results, analytics
from examprep.database import DATABASE_URL, create_tables

# Import all models so they are registered with Base.metadata
from examprep.models import User, Question, Test, TestQuestion, Result  # noqa: F401

# ──────────────────────────────────────────────────────────────
# Initialize structured logging BEFORE anything else
# ──────────────────────────────────────────────────────────────
setup_logging()
logger = get_logger("http")

# Auto-create tables for SQLite local development
if DATABASE_URL.startswith("sqlite"):
    logger.info("Using SQLite, creating tables directly")
    create_tables()

app = FastAPI(
    title="Exam Prep Platform",
    description=(
        "Question bank and timed tests for school exam preparation. "
        "Submissions are scored with chapter-wise analysis and "
        "strengths/weaknesses feedback."
    ),
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

# Allows the web/mobile client to call the API from another origin.
# In production, restrict origins to the actual frontend domain.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"]
)


def _token_subject(authorization: str) -> str:
    """User id from a bearer header, for log context only; routes still authenticate."""
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        return ""
    return decode_access_token(token) or ""


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    """
    Generate a UUID per request and note the caller's user id for log
    context, return the request id as X-Request-ID, and log start and
    completion with latency.
    """
    req_id = generate_request_id()
    request_id_var.set(req_id)
    user_id_var.set(_token_subject(request.headers.get("authorization", "")))

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


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError):
    """Unique/foreign-key violations become a 400 instead of a 500."""
    log_with_context(logger, "ERROR",
        f"Integrity error on {request.method} {request.url.path}",
        extra_data={"error": str(exc.orig)})
    return JSONResponse(status_code=400, content={"detail": "Duplicate field value entered"})


# ──────────────────────────────────────────────────────────────
# Register API routes. analytics goes before results so that
# /api/results/analytics is not captured by /api/results/{result_id}.
# ──────────────────────────────────────────────────────────────
app.include_router(auth.router, tags=["Auth"])
app.include_router(questions.router, tags=["Questions"])
app.include_router(tests.router, tags=["Tests"])
app.include_router(analytics.router, tags=["Analytics"])
app.include_router(results.router, tags=["Results"])


@app.get("/health", tags=["Health"])
def health_check():
    """Health check endpoint for container health checks and monitoring."""
    return {"status": "healthy", "service": "exam-prep-backend", "version": "1.0.0"}


@app.get("/", tags=["Root"])
def root():
    """Root endpoint with API information."""
    return {
        "service": "Exam Prep Platform",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health",
        "endpoints": {
            "register": "POST /api/auth/register",
            "login": "POST /api/auth/login",
            "questions": "GET|POST /api/questions",
            "tests": "GET|POST /api/tests",
            "submit": "POST /api/results/submit",
            "my_results": "GET /api/results/student",
            "result_detail": "GET /api/results/{id}",
            "analytics": "GET /api/results/analytics"
        }
    }
