# ================================================================
# CIVIC REPORTS - Backend
# Reports + Department Routing + Lifecycle Simulation + Analytics
# ================================================================

import logging
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from app.analytics import register_analytics_routes
from app.config import get_config
from app.lifecycle import init_lifecycle_scheduler, shutdown_lifecycle_scheduler
from app.reports.routes import router as reports_router
from app.reports.uploads import UPLOADS_URL_PREFIX

APP_NAME = "Civic Reports API"

logger = logging.getLogger("civic.main")


def _configure_logging():
    logging.basicConfig(
        level=str(get_config("log_level", "INFO")).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app() -> FastAPI:
    """Build the FastAPI application from the current configuration."""
    _configure_logging()

    civic_app = FastAPI(title=APP_NAME)

    civic_app.add_middleware(
        CORSMiddleware,
        allow_origins=get_config("cors_origins", ["*"]),
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @civic_app.on_event("startup")
    async def _startup():
        init_lifecycle_scheduler()
        logger.info(f"[Startup] {APP_NAME} ready, data file {get_config('data_file')}")

    @civic_app.on_event("shutdown")
    async def _shutdown():
        shutdown_lifecycle_scheduler()

    @civic_app.get("/api/ping")
    async def api_ping():
        return {"message": get_config("ping_message", "ping")}

    civic_app.include_router(reports_router)
    register_analytics_routes(civic_app)

    # Uploaded photo/voice attachments
    uploads_dir = Path(get_config("uploads_dir"))
    uploads_dir.mkdir(parents=True, exist_ok=True)
    civic_app.mount(UPLOADS_URL_PREFIX, StaticFiles(directory=uploads_dir), name="uploads")

    return civic_app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=8000)
