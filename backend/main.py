"""
quotedesk API application
"""
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from quotedesk.api.v1.router import api_router
from quotedesk.core.config import settings
from quotedesk.core.database import close_db, init_db
from quotedesk.core.middleware import setup_error_handling
from quotedesk.core.redis_client import close_redis


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.APP_NAME} {settings.APP_VERSION}")
    await init_db()
    yield
    await close_redis()
    await close_db()
    logger.info(f"{settings.APP_NAME} stopped")


def create_app(use_lifespan: bool = True) -> FastAPI:
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Quotation, invoice and receipt backend for interior design studios",
        lifespan=lifespan if use_lifespan else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    setup_error_handling(app)

    app.include_router(api_router, prefix=settings.API_V1_PREFIX)

    @app.get("/api/health", tags=["health"])
    async def health():
        return {
            "status": "ok",
            "app": settings.APP_NAME,
            "timestamp": datetime.now().isoformat(),
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=settings.DEBUG)
