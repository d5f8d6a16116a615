"""
REST API main application.
Entry point for the FastAPI REST server backing the store's remote mode.
"""

from fastapi import FastAPI

from rest_api.core import configure_cors, lifespan, register_exception_handlers
from rest_api.routers.harvests import router as harvests_router
from rest_api.routers.health import router as health_router
from rest_api.routers.inventory import router as inventory_router
from rest_api.routers.losses import router as losses_router
from shared.config.settings import settings
from shared.infrastructure.correlation import CorrelationIdMiddleware


def create_app() -> FastAPI:
    app = FastAPI(
        title="Cooperativa REST API",
        description="Cosechas, inventario y mermas de la cooperativa",
        version="0.1.0",
        lifespan=lifespan,
    )

    configure_cors(app)
    app.add_middleware(CorrelationIdMiddleware)
    register_exception_handlers(app)

    # =========================================================================
    # Include Routers
    # =========================================================================

    app.include_router(health_router)
    app.include_router(harvests_router)
    app.include_router(inventory_router)
    app.include_router(losses_router)

    return app


app = create_app()


# =============================================================================
# Development entry point
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "rest_api.main:app",
        host="0.0.0.0",
        port=settings.rest_api_port,
        reload=settings.debug,
    )
