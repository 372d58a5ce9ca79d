"""FastAPI application for the FlexiDesk web gateway.

Serves page-ready views for the listing, client, owner and admin pages,
built from the FlexiDesk REST API with the caller's credentials.
"""

from datetime import UTC, datetime
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from mangum import Mangum

from flexidesk.config import get_settings
from flexidesk.utils.logging import configure_logging, get_logger
from flexidesk_api.exceptions import register_exception_handlers
from flexidesk_api.middleware.correlation import CorrelationIdMiddleware
from flexidesk_api.routes.admin import router as admin_router
from flexidesk_api.routes.client import router as client_router
from flexidesk_api.routes.health import router as health_router
from flexidesk_api.routes.listings import router as listings_router
from flexidesk_api.routes.owner import router as owner_router

settings = get_settings()
configure_logging(settings.log_level)
logger = get_logger(__name__)

app = FastAPI(
    title="FlexiDesk Gateway",
    description="Backend-for-frontend serving FlexiDesk page views",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Correlation-ID"],
)
app.add_middleware(CorrelationIdMiddleware)

register_exception_handlers(app)

app.include_router(health_router, prefix="/api")
app.include_router(listings_router, prefix="/api")
app.include_router(client_router, prefix="/api")
app.include_router(owner_router, prefix="/api")
app.include_router(admin_router, prefix="/api")


@app.get("/api/ping")
async def ping() -> dict[str, Any]:
    return {
        "status": "ok",
        "timestamp": datetime.now(UTC).isoformat(),
        "service": "flexidesk-gateway",
    }


# AWS Lambda entry point
handler = Mangum(app, lifespan="off")


def run_server(host: str = "0.0.0.0", port: int = 8080, reload: bool = True) -> None:
    """Serve the gateway with uvicorn; ``reload`` watches ``src`` for changes."""
    import uvicorn

    logger.info("Starting gateway against %s", settings.api_base_url)
    if not reload:
        uvicorn.run(app, host=host, port=port)
        return
    # reload needs an import string, not the app object
    uvicorn.run("flexidesk_api.main:app", host=host, port=port, reload=True, reload_dirs=["src"])


if __name__ == "__main__":
    run_server()
