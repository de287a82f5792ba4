from types import SimpleNamespace

import pytest

from tiller_installer.schemas.install import InstallOptions
from tiller_installer.services.errors import AlreadyExistsError, HelmCommandError
from tiller_installer.services.helm import HelmService

OPTIONS = InstallOptions(
    namespace="kube-system",
    service_account="tiller",
    image_spec="gcr.io/kubernetes-helm/tiller:v2.16.12",
)


def test_install_raises_runtime_error_on_failure(monkeypatch):
    service = HelmService(helm_binary="helm")

    def fake_run(*_args, **_kwargs):
        return SimpleNamespace(returncode=1, stdout="", stderr="boom")

    monkeypatch.setattr("subprocess.run", fake_run)

    try:
        service.install(OPTIONS)
    except RuntimeError as exc:
        assert "Helm command failed" in str(exc)
        assert not isinstance(exc, AlreadyExistsError)
    else:
        raise AssertionError("Expected RuntimeError")


def test_install_passes_tiller_options(monkeypatch):
    service = HelmService(helm_binary="helm")
    seen = {}

    def fake_run(cmd, **_kwargs):
        seen["cmd"] = cmd
        return SimpleNamespace(returncode=0, stdout="Tiller has been installed into your Kubernetes Cluster.", stderr="")

    monkeypatch.setattr("subprocess.run", fake_run)

    service.install(OPTIONS)

    assert seen["cmd"][:2] == ["helm", "init"]
    assert "--upgrade" not in seen["cmd"]
    assert seen["cmd"][seen["cmd"].index("--tiller-image") + 1] == OPTIONS.image_spec
    assert seen["cmd"][seen["cmd"].index("--service-account") + 1] == "tiller"


def test_install_detects_existing_tiller_warning(monkeypatch):
    service = HelmService(helm_binary="helm")

    def fake_run(*_args, **_kwargs):
        return SimpleNamespace(
            returncode=0,
            stdout="Warning: Tiller is already installed in the cluster.",
            stderr="",
        )

    monkeypatch.setattr("subprocess.run", fake_run)

    with pytest.raises(AlreadyExistsError):
        service.install(OPTIONS)


def test_install_detects_already_exists_api_error(monkeypatch):
    service = HelmService(helm_binary="helm")

    def fake_run(*_args, **_kwargs):
        return SimpleNamespace(
            returncode=1,
            stdout="",
            stderr='Error: deployments.extensions "tiller-deploy" already exists',
        )

    monkeypatch.setattr("subprocess.run", fake_run)

    with pytest.raises(AlreadyExistsError):
        service.install(OPTIONS)


def test_upgrade_forces_new_image(monkeypatch):
    service = HelmService(helm_binary="helm")
    seen = {}

    def fake_run(cmd, **_kwargs):
        seen["cmd"] = cmd
        return SimpleNamespace(returncode=0, stdout="", stderr="")

    monkeypatch.setattr("subprocess.run", fake_run)

    service.upgrade(OPTIONS)

    assert "--upgrade" in seen["cmd"]
    assert "--force-upgrade" in seen["cmd"]


def test_list_releases_parses_json_and_empty_output(monkeypatch):
    service = HelmService(helm_binary="helm")
    outputs = iter(['{"Next":"","Releases":[{"Name":"redis"}]}', ""])

    def fake_run(*_args, **_kwargs):
        return SimpleNamespace(returncode=0, stdout=next(outputs), stderr="")

    monkeypatch.setattr("subprocess.run", fake_run)

    assert service.list_releases() == [{"Name": "redis"}]
    assert service.list_releases() == []


def test_list_releases_fails_when_tiller_unreachable(monkeypatch):
    service = HelmService(helm_binary="helm")

    def fake_run(*_args, **_kwargs):
        return SimpleNamespace(returncode=1, stdout="", stderr="Error: could not find tiller")

    monkeypatch.setattr("subprocess.run", fake_run)

    with pytest.raises(HelmCommandError):
        service.list_releases()
