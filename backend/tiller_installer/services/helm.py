import json
import subprocess

from tiller_installer.schemas.install import InstallOptions
from tiller_installer.services.errors import AlreadyExistsError, HelmCommandError

ALREADY_INSTALLED_MARKERS = ("already installed", "already exists")


class HelmService:
    def __init__(self, helm_binary: str = "helm", timeout_seconds: int = 120, tiller_namespace: str = "kube-system"):
        self.helm_binary = helm_binary
        self.timeout_seconds = timeout_seconds
        self.tiller_namespace = tiller_namespace

    def install(self, options: InstallOptions) -> None:
        cmd = [self.helm_binary, "init", *self._tiller_args(options)]
        try:
            process = self._run(cmd)
        except HelmCommandError as exc:
            if _mentions_existing(str(exc)):
                raise AlreadyExistsError(str(exc)) from exc
            raise
        # helm init exits 0 and only warns when tiller is already deployed
        if _mentions_existing(process.stdout) or _mentions_existing(process.stderr):
            raise AlreadyExistsError(f"Tiller already exists in namespace {options.namespace}")

    def upgrade(self, options: InstallOptions) -> None:
        cmd = [self.helm_binary, "init", "--upgrade", "--force-upgrade", *self._tiller_args(options)]
        self._run(cmd)

    def list_releases(self) -> list[dict]:
        cmd = [
            self.helm_binary,
            "list",
            "--all",
            "--output",
            "json",
            "--tiller-namespace",
            self.tiller_namespace,
        ]
        process = self._run(cmd)
        # helm 2 prints nothing at all when there are no releases
        if not process.stdout.strip():
            return []
        try:
            payload = json.loads(process.stdout)
        except json.JSONDecodeError as exc:
            raise HelmCommandError("helm list returned invalid JSON") from exc
        return payload.get("Releases") or []

    def _tiller_args(self, options: InstallOptions) -> list[str]:
        return [
            "--service-account",
            options.service_account,
            "--tiller-namespace",
            options.namespace,
            "--tiller-image",
            options.image_spec,
            "--skip-refresh",
        ]

    def _run(self, cmd: list[str]) -> subprocess.CompletedProcess:
        try:
            process = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout_seconds,
            )
        except subprocess.TimeoutExpired as exc:
            raise HelmCommandError(f"Helm command timed out after {self.timeout_seconds}s: {' '.join(cmd)}") from exc
        if process.returncode != 0:
            stderr = process.stderr.strip()
            stdout = process.stdout.strip()
            raise HelmCommandError(f"Helm command failed: {' '.join(cmd)}\nstdout: {stdout}\nstderr: {stderr}")
        return process


def _mentions_existing(output: str | None) -> bool:
    lowered = (output or "").lower()
    return any(marker in lowered for marker in ALREADY_INSTALLED_MARKERS)
