import asyncio
import logging
import threading
from datetime import datetime, timezone

from prometheus_client import Counter

from tiller_installer.models.enums import InstallPhase
from tiller_installer.schemas.install import InstallStatus
from tiller_installer.workers.installer import TillerInstaller

logger = logging.getLogger(__name__)

tiller_install_attempts_total = Counter("tiller_install_attempts_total", "Total tiller install attempts")
tiller_install_failures_total = Counter("tiller_install_failures_total", "Total failed tiller install attempts")


class ReconcileWorker:
    def __init__(self, installer: TillerInstaller, interval_seconds: float):
        self.installer = installer
        self.interval_seconds = interval_seconds
        self._previous_on_phase = installer.on_phase
        self.installer.on_phase = self._record_phase
        self._status = InstallStatus()
        self._lock = threading.Lock()
        self._running = False

    @property
    def status(self) -> InstallStatus:
        return self._status.model_copy()

    async def start(self) -> None:
        self._running = True
        while self._running:
            await asyncio.to_thread(self.reconcile_once)
            await asyncio.sleep(self.interval_seconds)

    def stop(self) -> None:
        self._running = False

    def reconcile_once(self) -> InstallStatus:
        with self._lock:
            self._status.attempts += 1
            self._status.last_attempt_at = datetime.now(timezone.utc)
            tiller_install_attempts_total.inc()
            try:
                state = self.installer.install()
            except Exception as exc:  # noqa: BLE001
                logger.error(f"Tiller reconcile failed: {exc}")
                tiller_install_failures_total.inc()
                self._status.phase = InstallPhase.FAILED
                self._status.deployment_state = None
                self._status.tiller_tag = None
                self._status.last_error = str(exc)
            else:
                self._status.deployment_state = state
                self._status.tiller_tag = self.installer.tiller_tag
                self._status.last_error = None
                self._status.last_success_at = datetime.now(timezone.utc)
            return self.status

    def _record_phase(self, phase: InstallPhase) -> None:
        self._status.phase = phase
        if self._previous_on_phase is not None:
            self._previous_on_phase(phase)
