class HelmCommandError(RuntimeError):
    pass


class AlreadyExistsError(HelmCommandError):
    pass


class InstallError(RuntimeError):
    pass


class UpgradeError(RuntimeError):
    pass


class HealthTimeoutError(TimeoutError):
    pass
