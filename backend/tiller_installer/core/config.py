from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "tiller-installer"
    environment: str = "local"
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    log_level: str = "info"

    helm_binary: str = "helm"
    kubectl_binary: str = "kubectl"
    helm_timeout_seconds: int = 120
    kubectl_timeout_seconds: int = 60

    tiller_tag: str = "v2.16.12"
    tiller_image_host: str = "gcr.io/kubernetes-helm"
    tiller_max_wait_seconds: float = 60.0

    registry_server: str = ""
    registry_username: str = ""
    registry_password: str = ""
    registry_email: str = ""

    # 0 disables the background loop; POST /tiller/install still works.
    reconcile_interval_seconds: float = 300.0


@lru_cache
def get_settings() -> Settings:
    return Settings()
