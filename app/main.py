from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator

from app.base.config import settings
from app.base.database import init_db
from app.base.error_handlers import register_exception_handlers
from app.base.logging_config import app_logger as logger

from app.routers import (
    booking,
    interviewers,
    matching,
    time_blocks,
)

# --- Schema ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info(f"[Startup] Tables ready on {settings.DB_HOST}")
    yield


# --- FastAPI app instance ---
app = FastAPI(
    lifespan=lifespan,
    title="Interviewer Matching API",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json"
)

# --- CORS config ---
origins = [
    "http://localhost:3000",     # Local React dev
    "http://localhost:5173",     # Local Vite dev
]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Prometheus metrics ---
Instrumentator().instrument(app).expose(app)

# --- Exception handlers ---
register_exception_handlers(app)


# --- Logging middleware ---
@app.middleware("http")
async def log_requests(request: Request, call_next):
    logger.info(f"📥 {request.method} request to {request.url}")
    response = await call_next(request)
    logger.info(f"📤 Response: {response.status_code} for {request.url}")
    return response


# --- API Routers ---
app.include_router(interviewers.router, prefix="/interviewers", tags=["Interviewers"])
app.include_router(matching.router, prefix="/match", tags=["Matching"])
app.include_router(booking.router, prefix="/booking", tags=["Booking"])
app.include_router(time_blocks.router, prefix="/blocks", tags=["Time Blocks"])


# --- System endpoints ---
@app.get("/health", tags=["System"])
def health_check():
    return {"status": "ok"}


@app.get("/version", tags=["System"])
def version_check():
    return {
        "version": "1.0.0",
        "api_version": settings.API_VERSION,
        "environment": settings.ENVIRONMENT,
        "time_match_mode": settings.TIME_MATCH_MODE,
        "carve_out_weekly_template": settings.CARVE_OUT_WEEKLY_TEMPLATE,
    }
