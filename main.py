from contextlib import asynccontextmanager

from fastapi import FastAPI

from mover_api.config import get_settings
from mover_api.infrastructure.database import engine, initialize_database
from mover_api.interfaces.api.routes import register_routes


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create missing tables on startup and release the pool on shutdown."""

    initialize_database()
    yield
    engine.dispose()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""

    app = FastAPI(title="Mover API notifications", lifespan=lifespan)
    register_routes(app)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run("main:app", host=settings.host, port=settings.port)
