import logging

from fastapi import FastAPI


from ctiengine.api.v1.routes_health import router as health_router
from ctiengine.api.v1.routes_analysis import router as analysis_router
from ctiengine.api.v1.routes_graph import router as graph_router
from ctiengine.api.v1.routes_alerts import router as alerts_router

from ctiengine.db.init_db import init_db
from ctiengine.core.config import settings

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="CTI Engine",
    version="0.1.0",
    description="Threat scoring, noise filtering, relationship graph and pattern detection.",
)

@app.on_event("startup")
def on_startup() -> None:
    # Create DB tables if they don't exist (dev only)
    init_db()

@app.get("/", tags=["root"])
async def root() -> dict:
    return {
        "status": "ok",
        "service": settings.APP_NAME,
        "environment": settings.ENVIRONMENT,
    }


# API v1
app.include_router(health_router, prefix="/api/v1")
app.include_router(analysis_router, prefix="/api/v1")
app.include_router(graph_router, prefix="/api/v1")
app.include_router(alerts_router, prefix="/api/v1")
