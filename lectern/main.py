"""
Lectern API application.

    uvicorn lectern.main:app --reload
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from lectern import __version__
from lectern.api.errors import register_exception_handlers
from lectern.api.middleware.request_id import RequestIdMiddleware
from lectern.api.v1 import router as api_v1_router
from lectern.config import get_settings
from lectern.database import close_db, init_db
from lectern.logging_config import configure_logging, get_logger
from lectern.schemas.common import HealthResponse

settings = get_settings()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(log_level=settings.log_level, environment=settings.environment, debug=settings.debug)
    await init_db()
    logger.info(
        "%s %s started (%s)",
        settings.project_name,
        __version__,
        "OpenAI breakdowns" if settings.ai_configured else "built-in breakdowns",
    )
    yield
    await close_db()
    logger.info("Database connections closed")


app = FastAPI(
    title=settings.project_name,
    description=(
        "Learn a lecture one subtopic at a time. Lectures (pasted text or PDF) are "
        "broken into ordered subtopics with quizzes; mastering a subtopic unlocks the "
        "next. ELO, streaks, ranks, follows and a leaderboard keep learners going."
    ),
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

# Added last so it wraps everything, including the request id middleware
app.add_middleware(RequestIdMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"],
)
register_exception_handlers(app, settings.allowed_origins, debug=settings.debug)


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    return HealthResponse(version=__version__, ai_configured=settings.ai_configured)


@app.get("/", tags=["Health"])
async def root():
    return {"name": settings.project_name, "version": __version__, "api": settings.api_v1_prefix}


app.include_router(api_v1_router, prefix=settings.api_v1_prefix)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("lectern.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
