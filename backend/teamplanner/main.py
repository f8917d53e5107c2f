"""Main FastAPI application for the Team Planner backend."""
from fastapi import FastAPI, Request

from teamplanner.api.routes.plans import router as plans_router
from teamplanner.core.config import settings
from teamplanner.core.logging import configure_logging
from teamplanner.core.middleware import RequestIDMiddleware
from teamplanner.observability.client import init_opik
from teamplanner.observability.tracing import trace

configure_logging(log_level=settings.log_level)

app = FastAPI(title=settings.app_name, version="0.1.0", debug=settings.debug)
app.add_middleware(RequestIDMiddleware)
app.include_router(plans_router)


@app.on_event("startup")
async def startup_observability() -> None:
    """Initialize observability backends after the event loop starts."""
    init_opik()


@app.get("/health", tags=["health"], summary="Readiness probe")
async def health_check(request: Request) -> dict[str, str]:
    """Return a simple status payload so automation can probe the API."""
    with trace("http.health_check", metadata={"route": "/health"}, request_id=request.state.request_id):
        return {"status": "ok"}
