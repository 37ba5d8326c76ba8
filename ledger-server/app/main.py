import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app import __version__
from app.api import create_api_router
from app.core.config import get_settings
from app.infrastructure.database import dispose_engine, init_db
from app.interfaces.http.errors import register_exception_handlers

settings = get_settings()


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    yield
    await dispose_engine()


def create_app(*, use_lifespan: bool = True) -> FastAPI:
    configure_logging(settings.log_level)

    app = FastAPI(
        title=settings.project_name,
        description="Per-account balances and operation history",
        version=__version__,
        lifespan=lifespan if use_lifespan else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    app.include_router(create_api_router(settings.api_prefix))

    @app.get("/")
    async def root():
        return {"message": "Ledger service running"}

    return app


app = create_app()


def serve() -> None:
    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.server.reload,
    )


if __name__ == "__main__":
    serve()
