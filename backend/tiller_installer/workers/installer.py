import logging
from collections.abc import Callable
from typing import Protocol

from prometheus_client import Counter

from tiller_installer.core.config import Settings
from tiller_installer.models.enums import DeploymentState, InstallPhase
from tiller_installer.schemas.install import ExistingDeployment, InstallOptions, RegistryConfig
from tiller_installer.services.errors import AlreadyExistsError, InstallError, UpgradeError
from tiller_installer.services.helm import HelmService
from tiller_installer.services.kube import KubeService
from tiller_installer.services.readiness import ReadinessService
from tiller_installer.services.registry import PrivateRegistrySetup
from tiller_installer.services.versions import is_newer_version

logger = logging.getLogger(__name__)

SERVICE_ACCOUNT = "tiller"
NAMESPACE = "kube-system"
DEPLOYMENT_NAME = "tiller-deploy"
DEFAULT_MAX_WAIT_SECONDS = 60.0

tiller_upgrades_total = Counter("tiller_upgrades_total", "Total tiller upgrades issued")


class HelmClient(Protocol):
    def install(self, options: InstallOptions) -> None: ...

    def upgrade(self, options: InstallOptions) -> None: ...

    def list_releases(self) -> list[dict]: ...


class ClusterAccessor(Protocol):
    def get_deployment(self, namespace: str, name: str) -> ExistingDeployment: ...

    def apply_manifest(self, manifest: dict) -> None: ...


class RegistrySetup(Protocol):
    def setup(self) -> None: ...


class TillerInstaller:
    """Install tiller, or upgrade it when the deployed image is older, then wait for it to be healthy.

    Safe to call on every reconciliation tick: an existing deployment with the
    same image is left alone, and an existing deployment with a newer or equal
    version is never downgraded.
    """

    def __init__(
        self,
        tiller_tag: str,
        cluster: ClusterAccessor,
        client: HelmClient,
        registry_config: RegistryConfig | None = None,
        image_host: str = "gcr.io/kubernetes-helm",
        readiness: ReadinessService | None = None,
        registry_setup_factory: Callable[[RegistryConfig], RegistrySetup] | None = None,
        on_phase: Callable[[InstallPhase], None] | None = None,
    ):
        self.tiller_tag = tiller_tag
        self.cluster = cluster
        self.client = client
        self.registry_config = registry_config or RegistryConfig()
        self.image_host = image_host
        self.readiness = readiness or ReadinessService()
        self.registry_setup_factory = registry_setup_factory or self._default_registry_setup
        self.on_phase = on_phase
        self.max_wait = DEFAULT_MAX_WAIT_SECONDS

    def set_max_wait(self, seconds: float) -> None:
        if seconds < 0:
            raise ValueError("max wait must not be negative")
        self.max_wait = seconds

    def install(self) -> DeploymentState:
        logger.debug(f"Installing helm with Tiller version {self.tiller_tag}")
        options = InstallOptions(
            namespace=NAMESPACE,
            service_account=SERVICE_ACCOUNT,
            image_spec=self.resolve_image(),
        )

        state = self._install_or_upgrade(options)

        self._enter(InstallPhase.POLLING)
        logger.info("Waiting for tiller to become healthy")
        self.readiness.wait_until_healthy(self.is_healthy, self.max_wait)
        self._enter(InstallPhase.HEALTHY)
        return state

    def resolve_image(self) -> str:
        if not self.registry_config.has_registry_config():
            return f"{self.image_host}/tiller:{self.tiller_tag}"

        self.registry_setup_factory(self.registry_config).setup()
        return f"{self.registry_config.server}/tiller:{self.tiller_tag}"

    def is_healthy(self) -> bool:
        try:
            self.client.list_releases()
        except Exception as exc:  # noqa: BLE001
            logger.debug(f"Tiller health check failed: {exc}")
            return False
        return True

    def classify(self, existing_image: str, new_image: str) -> DeploymentState:
        if existing_image == new_image:
            return DeploymentState.CURRENT
        if is_newer_version(existing_image, new_image):
            return DeploymentState.STALE
        return DeploymentState.NEWER_OR_EQUAL

    def _install_or_upgrade(self, options: InstallOptions) -> DeploymentState:
        self._enter(InstallPhase.ABSENT)
        try:
            self.client.install(options)
        except AlreadyExistsError:
            pass
        except Exception as exc:
            raise InstallError(f"error installing new helm: {exc}") from exc
        else:
            logger.info(f"Installed tiller {options.image_spec}")
            return DeploymentState.ABSENT

        existing = self.cluster.get_deployment(NAMESPACE, DEPLOYMENT_NAME)
        state = self.classify(existing.first_image, options.image_spec)
        if state is not DeploymentState.STALE:
            logger.info(f"Tiller {existing.first_image} is {state.value.lower()}, not upgrading to {options.image_spec}")
            return state

        self._enter(InstallPhase.UPGRADING)
        logger.info(f"Upgrading tiller from {existing.first_image} to {options.image_spec}")
        try:
            self.client.upgrade(options)
        except Exception as exc:
            raise UpgradeError(f"error upgrading helm: {exc}") from exc
        tiller_upgrades_total.inc()
        return state

    def _enter(self, phase: InstallPhase) -> None:
        logger.debug(f"Tiller install phase: {phase.value}")
        if self.on_phase is not None:
            self.on_phase(phase)

    def _default_registry_setup(self, registry_config: RegistryConfig) -> RegistrySetup:
        return PrivateRegistrySetup(NAMESPACE, SERVICE_ACCOUNT, self.cluster, registry_config)


def build_installer(settings: Settings) -> TillerInstaller:
    registry_config = RegistryConfig(
        server=settings.registry_server,
        username=settings.registry_username,
        password=settings.registry_password,
        email=settings.registry_email,
    )
    installer = TillerInstaller(
        tiller_tag=settings.tiller_tag,
        cluster=KubeService(settings.kubectl_binary, settings.kubectl_timeout_seconds),
        client=HelmService(settings.helm_binary, settings.helm_timeout_seconds, tiller_namespace=NAMESPACE),
        registry_config=registry_config,
        image_host=settings.tiller_image_host,
    )
    installer.set_max_wait(settings.tiller_max_wait_seconds)
    return installer
