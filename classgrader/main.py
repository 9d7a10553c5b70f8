# /classgrader/main.py

import time

# --- Core FastAPI Imports ---
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

# --- Application-specific Imports ---
from .core import config
from .core.logging_config import (
    setup_logging, get_logger, log_with_context,
    request_id_var, generate_request_id,
)
from .db.database import create_tables
from .routers import activities_router, classes_router, live_router
from .services import ai_service

# Initialize structured logging before anything else logs.
setup_logging()
logger = get_logger("http")


# --- Application Lifecycle Management ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    # Runs once when the application starts up.
    if config.DATABASE_URL.startswith("sqlite"):
        logger.info("Using SQLite, creating tables directly")
        create_tables()
    yield
    # Runs once when the application shuts down.
    await ai_service.close_ai_client()


# --- FastAPI Application Instance Creation ---
app = FastAPI(
    title="Classgrader Backend API",
    description="Classes, rosters and AI-assisted grading of handwritten exam papers.",
    version="1.0.0",
    lifespan=lifespan,
)

# --- Middleware Configuration ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"],
)


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    """Tags every request with an ID, echoed in X-Request-ID and in every log line it produces."""
    req_id = request.headers.get("X-Request-ID") or generate_request_id()
    request_id_var.set(req_id)
    start_time = time.time()

    response = await call_next(request)

    response.headers["X-Request-ID"] = req_id
    log_with_context(
        logger, "INFO",
        f"{request.method} {request.url.path} -> {response.status_code}",
        context={"professor_id": request.headers.get("X-Professor-Id", "")},
        extra_data={"duration_ms": round((time.time() - start_time) * 1000, 2)},
    )
    return response


# --- API Router Inclusion ---
app.include_router(classes_router.router, prefix="/api/classes", tags=["Classes"])
app.include_router(activities_router.router, prefix="/api/classes", tags=["Activities & Scores"])
app.include_router(live_router.router, prefix="/api/live", tags=["Live Views"])


# --- Root / Health Check Endpoint ---
@app.get("/", tags=["Health Check"])
async def read_root():
    """A simple health check endpoint to confirm the API is online."""
    return {"status": "Classgrader Backend is running!", "version": app.version}
