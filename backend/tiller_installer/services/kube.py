import json
import subprocess

from tiller_installer.schemas.install import ExistingDeployment


class KubeService:
    def __init__(self, kubectl_binary: str = "kubectl", timeout_seconds: int = 60):
        self.kubectl_binary = kubectl_binary
        self.timeout_seconds = timeout_seconds

    def get_deployment(self, namespace: str, name: str) -> ExistingDeployment:
        cmd = [self.kubectl_binary, "get", "deployment", name, "-n", namespace, "-o", "json"]
        process = subprocess.run(cmd, capture_output=True, text=True, timeout=self.timeout_seconds)
        if process.returncode != 0:
            stderr = process.stderr.strip()
            stdout = process.stdout.strip()
            raise RuntimeError(f"kubectl get deployment failed\nstdout: {stdout}\nstderr: {stderr}")

        try:
            payload = json.loads(process.stdout or "{}")
        except json.JSONDecodeError as exc:
            raise RuntimeError("kubectl get deployment returned invalid JSON") from exc

        containers = payload.get("spec", {}).get("template", {}).get("spec", {}).get("containers") or []
        images = [container.get("image", "") for container in containers]
        if not images:
            raise RuntimeError(f"Deployment '{namespace}/{name}' has no containers")

        return ExistingDeployment(name=name, namespace=namespace, images=images)

    def apply_manifest(self, manifest: dict) -> None:
        cmd = [self.kubectl_binary, "apply", "-f", "-"]
        process = subprocess.run(
            cmd,
            input=json.dumps(manifest),
            capture_output=True,
            text=True,
            timeout=self.timeout_seconds,
        )
        if process.returncode != 0:
            stderr = process.stderr.strip()
            stdout = process.stdout.strip()
            kind = manifest.get("kind", "object")
            name = manifest.get("metadata", {}).get("name", "")
            raise RuntimeError(f"kubectl apply {kind} '{name}' failed\nstdout: {stdout}\nstderr: {stderr}")
