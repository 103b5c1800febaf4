from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from contacthub.api.routes import contacts, health
from contacthub.core.config import settings
from contacthub.core.logging_setup import logger
from contacthub.db import session as db_session
from contacthub.services.contact_resolver import ContactCollapseError
from contacthub.services.workspace import WorkspaceAccessError


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncGenerator[None, None]:
    db_session.init_db()
    yield


def _normalize_origin(value: str | None) -> str | None:
    if not value:
        return None
    cleaned = value.strip().rstrip("/")
    return cleaned or None


def create_app() -> FastAPI:
    application = FastAPI(
        title=settings.project_name,
        debug=settings.debug,
        lifespan=lifespan,
    )

    origins: list[str] = []
    for item in settings.allowed_origins:
        normalized = _normalize_origin(item)
        if normalized and normalized not in origins:
            origins.append(normalized)
    logger.info("CORS origins: %s", origins)

    application.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @application.exception_handler(WorkspaceAccessError)
    async def workspace_access_handler(_: Request, exc: WorkspaceAccessError) -> JSONResponse:
        return JSONResponse(status_code=status.HTTP_403_FORBIDDEN, content={"detail": str(exc)})

    @application.exception_handler(ContactCollapseError)
    async def contact_collapse_handler(_: Request, exc: ContactCollapseError) -> JSONResponse:
        logger.error("Contact resolution failed: %s", exc)
        return JSONResponse(status_code=status.HTTP_409_CONFLICT, content={"detail": str(exc)})

    application.include_router(health.router, prefix="/health")
    application.include_router(contacts.router, prefix=settings.api_v1_str)

    @application.get("/")
    def root():
        return {"service": settings.project_name}

    logger.info("ContactHub API initialized")
    return application


app = create_app()
