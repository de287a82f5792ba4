from tiller_installer.models.enums import DeploymentState, InstallPhase

__all__ = ["DeploymentState", "InstallPhase"]
