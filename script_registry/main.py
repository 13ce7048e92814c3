from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from script_registry import __version__
from script_registry.core.config import get_settings
from script_registry.core.logging import configure_logging
from script_registry.infrastructure.database import init_db
from script_registry.infrastructure.database.session import dispose_engine
from script_registry.interfaces.http import create_api_router
from script_registry.interfaces.http.errors import setup_error_handling

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    yield
    await dispose_engine()


def create_app(*, manage_database: bool = True) -> FastAPI:
    configure_logging(settings)

    app = FastAPI(
        title=settings.project_name,
        description="Versioned script registry",
        version=__version__,
        lifespan=lifespan if manage_database else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Script-Id", "X-Version-Id"],
    )

    setup_error_handling(app)
    app.include_router(create_api_router(settings.api_prefix))

    return app


app = create_app()
