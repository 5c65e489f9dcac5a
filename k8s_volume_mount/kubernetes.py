"""Module wrapping the kubectl command-line tool."""

import subprocess
from typing import List

import k8s_volume_mount.constants as constants
from k8s_volume_mount.errors import DependencyMissing, KubectlError
from k8s_volume_mount.logger import log
import k8s_volume_mount.system as system


class Kubectl:
    """Thin client for the handful of kubectl operations that are needed."""

    def __init__(self, binary: str = "kubectl"):
        """Instantiate a client that invokes the given kubectl binary."""
        self._binary = binary

    def pvc_exists(self, name: str, namespace: str = "") -> bool:
        """Check if a PersistentVolumeClaim exists in the cluster."""
        try:
            self._run(["get", "pvc", name] + self._namespace_args(namespace))
            return True
        except KubectlError as e:
            log.debug(f"pvc lookup failed: {e}")
            return False

    def apply(self, manifest_path: str) -> None:
        """Apply a manifest file."""
        self._run(["apply", "-f", manifest_path], "failed to apply manifest")

    def delete(self, manifest_path: str) -> None:
        """Delete the resources defined in a manifest file without waiting."""
        self._run(
            ["delete", "-f", manifest_path, "--wait=false"],
            "failed to delete resources",
        )

    def wait_for_deployment(self, name: str, namespace: str, timeout: int) -> None:
        """Wait for a deployment to become available within the timeout (seconds)."""
        self._run(
            [
                "wait",
                "--for=condition=Available",
                f"deployment/{name}",
                f"--timeout={timeout}s",
            ]
            + self._namespace_args(namespace),
            "deployment not ready",
        )

    def get_pod_logs(self, selector: str, namespace: str = "") -> str:
        """Retrieve the logs of the first pod that matches the label selector."""
        output = self._run(
            ["get", "pods", "-l", selector, "-o", "name"]
            + self._namespace_args(namespace),
            "failed to get pods",
        )

        pod_names = [line for line in output.splitlines() if line.strip()]

        if len(pod_names) == 0:
            raise KubectlError(f"no pods found with selector: {selector}")

        pod_name = pod_names[0].strip()
        if pod_name.startswith("pod/"):
            pod_name = pod_name[len("pod/") :]

        return self._run(
            ["logs", pod_name] + self._namespace_args(namespace), "failed to get logs"
        )

    def port_forward(
        self,
        service: str,
        namespace: str,
        local_port: int,
        remote_port: int,
        log_path: str,
    ) -> int:
        """
        Start forwarding a local port to a service in the background.

        The kubectl process is detached so that it keeps running after this program
        exits. Its pid is returned and its output goes to the log file.
        """
        command = [
            self._binary,
            "port-forward",
            f"svc/{service}",
            f"{local_port}:{remote_port}",
        ] + self._namespace_args(namespace)

        try:
            return system.spawn_detached(command, log_path)
        except FileNotFoundError:
            raise self._missing_binary()
        except OSError as e:
            raise KubectlError(f"failed to start port forwarding: {e}")

    def _missing_binary(self) -> DependencyMissing:
        return DependencyMissing(
            f"{self._binary} is not installed",
            f"kubectl: {constants.KUBECTL_INSTALL_URL}",
        )

    @staticmethod
    def _namespace_args(namespace: str) -> List[str]:
        if namespace:
            return ["-n", namespace]
        else:
            return []

    def _run(self, args: List[str], description: str = "kubectl failed") -> str:
        """Run kubectl with the given arguments and return its combined output."""
        try:
            proc = system.run([self._binary] + args)
        except FileNotFoundError:
            raise self._missing_binary()
        except subprocess.CalledProcessError as e:
            raise KubectlError(
                f"{description}: exit status {e.returncode}\n"
                f"Output: {system.output_of(e)}"
            )

        return proc.stdout.decode(errors="replace")
