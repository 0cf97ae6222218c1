import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from interview_app.api.v1 import candidates, dashboard, sessions
from interview_app.core.config import settings
from interview_app.core.database import SessionLocal, init_db
from interview_app.services.candidate_repository import CandidateRepository
from interview_app.services.interview_backend import InterviewBackendClient
from interview_app.services.session_controller import SessionController

logger = logging.getLogger(__name__)


def build_controller() -> SessionController:
    init_db()
    repository = CandidateRepository(SessionLocal)
    return SessionController(repository, InterviewBackendClient())


def create_app(controller: SessionController | None = None) -> FastAPI:
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if getattr(app.state, "controller", None) is None:
            app.state.controller = build_controller()

        resumable = app.state.controller.find_resumable()
        if resumable is not None:
            logger.info("Unfinished interview found for candidate %s", resumable.id)

        yield

        app.state.controller.close_session()
        await app.state.controller.drain()

    app = FastAPI(
        title=settings.PROJECT_NAME,
        description="Timed interview sessions: questions, countdowns, grading and summaries",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.controller = controller

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Health check
    @app.get("/health", tags=["Health"])
    async def health_check():
        return {"status": "ok"}

    # API Routers
    app.include_router(candidates.router, prefix=settings.API_V1_PREFIX, tags=["Candidates"])
    app.include_router(sessions.router, prefix=settings.API_V1_PREFIX, tags=["Sessions"])
    app.include_router(dashboard.router, prefix=settings.API_V1_PREFIX, tags=["Dashboard"])

    return app


app = create_app()
