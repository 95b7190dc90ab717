"""
REST API main application.
Entry point for the FastAPI REST server.
"""

from fastapi import FastAPI
from slowapi.errors import RateLimitExceeded

from shared.config.settings import settings
from shared.security.rate_limit import limiter, rate_limit_exceeded_handler
from rest_api.core.cors import configure_cors
from rest_api.core.lifespan import lifespan
from rest_api.core.middlewares import register_middlewares
from rest_api.routers.health import router as health_router
from rest_api.routers.orders import router as orders_router
from rest_api.routers.departments import kitchen_router, bar_router


app = FastAPI(
    title="Room Service API",
    description="Order item status reconciliation and department dashboards",
    version="0.1.0",
    lifespan=lifespan,
)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

register_middlewares(app)
configure_cors(app)


# =============================================================================
# Include Routers
# =============================================================================

app.include_router(health_router)
app.include_router(orders_router)
app.include_router(kitchen_router)
app.include_router(bar_router)


# =============================================================================
# Development entry point
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "rest_api.main:app",
        host="0.0.0.0",
        port=settings.rest_api_port,
        reload=True,
    )
