import base64
import logging
from typing import Protocol

from tiller_installer.schemas.install import RegistryConfig

logger = logging.getLogger(__name__)

REGISTRY_SECRET_NAME = "registry-secret"


class ManifestApplier(Protocol):
    def apply_manifest(self, manifest: dict) -> None: ...


class PrivateRegistrySetup:
    """Provision pull credentials for a private registry.

    Applies a docker-registry secret and a service account that references it
    in ``imagePullSecrets``. Both are applied with create-or-update semantics,
    so running setup repeatedly is safe.
    """

    def __init__(self, namespace: str, service_account: str, cluster: ManifestApplier, registry_config: RegistryConfig):
        self.namespace = namespace
        self.service_account = service_account
        self.cluster = cluster
        self.registry_config = registry_config

    def setup(self) -> None:
        if not self.registry_config.has_registry_config():
            return

        logger.info(f"Provisioning pull secret for registry {self.registry_config.server} in {self.namespace}")
        self.cluster.apply_manifest(self._secret_manifest())
        self.cluster.apply_manifest(self._service_account_manifest())

    def _secret_manifest(self) -> dict:
        docker_config = self.registry_config.docker_config_json().encode("utf-8")
        return {
            "apiVersion": "v1",
            "kind": "Secret",
            "type": "kubernetes.io/dockerconfigjson",
            "metadata": {"name": REGISTRY_SECRET_NAME, "namespace": self.namespace},
            "data": {".dockerconfigjson": base64.b64encode(docker_config).decode("utf-8")},
        }

    def _service_account_manifest(self) -> dict:
        return {
            "apiVersion": "v1",
            "kind": "ServiceAccount",
            "metadata": {"name": self.service_account, "namespace": self.namespace},
            "imagePullSecrets": [{"name": REGISTRY_SECRET_NAME}],
        }
