"""FastAPI server for virtual try-on.

Endpoints:
- POST /api/virtual-tryon: userImage, garmentImage (base64 data URLs), garmentType, userId, autoDelete
- GET /api/size-recommendation/{product_id}?userId=...
- GET /api/metrics, DELETE /api/cache: engine telemetry and cache control
"""

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Body, Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from fit_vton import __version__
from fit_vton.config import EngineConfig, load_config
from fit_vton.errors import InvalidRequest, TryOnError
from fit_vton.pipeline import TryOnEngine

logger = logging.getLogger(__name__)


def get_engine(request: Request) -> TryOnEngine:
    """The engine instance owned by the running application."""
    return request.app.state.engine


def create_app(engine: TryOnEngine | None = None, config: EngineConfig | None = None) -> FastAPI:
    """Build the application around a single engine instance."""
    if config is None:
        config = engine.config if engine is not None else load_config()
    logging.basicConfig(level=config.log_level.upper())

    engine = engine or TryOnEngine(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if not engine.ready:
            await engine.initialize()
        yield
        await engine.shutdown()

    app = FastAPI(
        title="FIT-VTON API",
        description="Photo-based virtual try-on with fit scoring",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.engine = engine

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.api.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(TryOnError)
    async def handle_tryon_error(request: Request, exc: TryOnError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.get("/")
    async def root():
        """Health check endpoint."""
        return {"status": "ok", "service": "Virtual Try-On API", "version": __version__}

    @app.get("/health")
    async def health(engine: TryOnEngine = Depends(get_engine)):
        """Detailed health check."""
        return {
            "status": "ok" if engine.ready else "degraded",
            "engine": "ready" if engine.ready else "initializing",
            "backend": engine.config.inference.backend,
        }

    @app.post("/api/virtual-tryon")
    async def virtual_tryon(
        payload: dict[str, Any] = Body(...),
        engine: TryOnEngine = Depends(get_engine),
    ):
        """Composite a garment onto the user's photo and score the fit.

        Returns the serialized TryOnResult (camelCase fields).
        """
        result = await engine.process(payload)
        return result.to_response()

    @app.get("/api/size-recommendation/{product_id}")
    async def size_recommendation(
        product_id: int,
        userId: str | None = None,
        engine: TryOnEngine = Depends(get_engine),
    ):
        if not userId or not userId.strip():
            raise InvalidRequest("User ID is required for size recommendations")
        recommendation = engine.get_size_recommendation(userId, product_id)
        return recommendation.model_dump(by_alias=True)

    @app.get("/api/metrics")
    async def metrics(engine: TryOnEngine = Depends(get_engine)):
        return engine.get_performance_metrics().model_dump(by_alias=True)

    @app.delete("/api/cache")
    async def clear_cache(engine: TryOnEngine = Depends(get_engine)):
        engine.clear_cache()
        return {"status": "cleared"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    settings = app.state.engine.config.api
    uvicorn.run(app, host=settings.host, port=settings.port)
