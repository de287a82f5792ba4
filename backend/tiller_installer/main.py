import asyncio
import logging

from fastapi import FastAPI
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from tiller_installer.api.tiller import router as tiller_router
from tiller_installer.core.config import get_settings
from tiller_installer.schemas.health import HealthResponse
from tiller_installer.workers.installer import build_installer
from tiller_installer.workers.reconciler import ReconcileWorker

settings = get_settings()
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="Tiller Installer", version="0.1.0")
app.include_router(tiller_router)
app.state.worker = ReconcileWorker(build_installer(settings), settings.reconcile_interval_seconds)

worker_task: asyncio.Task | None = None


@app.on_event("startup")
async def startup_event() -> None:
    global worker_task
    if settings.reconcile_interval_seconds > 0:
        worker_task = asyncio.create_task(app.state.worker.start())


@app.on_event("shutdown")
async def shutdown_event() -> None:
    app.state.worker.stop()
    if worker_task:
        worker_task.cancel()


@app.get("/healthz", response_model=HealthResponse)
def healthz() -> HealthResponse:
    return HealthResponse(status="ok")


@app.get("/metrics")
def metrics() -> Response:
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
