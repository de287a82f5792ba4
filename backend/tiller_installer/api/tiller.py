from fastapi import APIRouter, HTTPException, Request, status

from tiller_installer.models.enums import InstallPhase
from tiller_installer.schemas.install import InstallStatus
from tiller_installer.workers.reconciler import ReconcileWorker

router = APIRouter(prefix="/tiller", tags=["tiller"])


def _worker(request: Request) -> ReconcileWorker:
    return request.app.state.worker


@router.get("", response_model=InstallStatus)
def get_status(request: Request) -> InstallStatus:
    return _worker(request).status


@router.post("/install", response_model=InstallStatus)
def install_tiller(request: Request) -> InstallStatus:
    result = _worker(request).reconcile_once()
    if result.phase == InstallPhase.FAILED:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=result.last_error)
    return result
