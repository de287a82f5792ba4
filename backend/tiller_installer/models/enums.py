import enum


class DeploymentState(str, enum.Enum):
    ABSENT = "ABSENT"
    CURRENT = "CURRENT"
    STALE = "STALE"
    NEWER_OR_EQUAL = "NEWER_OR_EQUAL"


class InstallPhase(str, enum.Enum):
    ABSENT = "ABSENT"
    UPGRADING = "UPGRADING"
    POLLING = "POLLING"
    HEALTHY = "HEALTHY"
    FAILED = "FAILED"
