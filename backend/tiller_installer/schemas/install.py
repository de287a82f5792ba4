import base64
import json
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from tiller_installer.models.enums import DeploymentState, InstallPhase


class InstallOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    namespace: str
    service_account: str
    image_spec: str


class RegistryConfig(BaseModel):
    server: str = ""
    username: str = ""
    password: str = ""
    email: str = ""

    def has_registry_config(self) -> bool:
        return bool(self.server)

    def docker_config_json(self) -> str:
        auth = base64.b64encode(f"{self.username}:{self.password}".encode("utf-8")).decode("utf-8")
        payload = {
            "auths": {
                self.server: {
                    "username": self.username,
                    "password": self.password,
                    "email": self.email,
                    "auth": auth,
                }
            }
        }
        return json.dumps(payload)


class ExistingDeployment(BaseModel):
    name: str
    namespace: str
    images: list[str] = Field(min_length=1)

    @property
    def first_image(self) -> str:
        return self.images[0]


class InstallStatus(BaseModel):
    phase: InstallPhase = InstallPhase.ABSENT
    deployment_state: DeploymentState | None = None
    tiller_tag: str | None = None
    last_error: str | None = None
    attempts: int = 0
    last_attempt_at: datetime | None = None
    last_success_at: datetime | None = None
