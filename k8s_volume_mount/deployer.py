"""Module that stands up the in-cluster file server for a session and tunnels to it."""

import k8s_volume_mount.constants as constants
from k8s_volume_mount.errors import KubectlError, RemoteDeployError
from k8s_volume_mount.kubernetes import Kubectl
from k8s_volume_mount.logger import log, status
import k8s_volume_mount.network as network
from k8s_volume_mount.providers import Provider, render_manifest
from k8s_volume_mount.session import Session
import k8s_volume_mount.system as system


class Deployer:
    """
    Class that realizes a file server for a PVC that is reachable on a local port.

    Only the steps that nothing downstream can do without are fatal: writing and
    applying the manifest and starting the port forward. Readiness of the deployment
    and reachability of the port are only checked to produce warnings, because
    readiness reporting is unreliable across clusters and the server may simply need
    a bit more time.
    """

    def __init__(
        self,
        kubectl: Kubectl,
        ready_timeout: int = constants.DEPLOYMENT_READY_TIMEOUT,
        reachable_timeout: int = constants.PORT_FORWARD_TIMEOUT,
    ):
        """Instantiate a deployer that talks to the cluster through kubectl."""
        self._kubectl = kubectl
        self._ready_timeout = ready_timeout
        self._reachable_timeout = reachable_timeout

    def deploy(self, provider: Provider, session: Session) -> None:
        """Deploy the file server, start the port forward and record its pid."""
        self._write_manifest(provider, session)

        try:
            self._kubectl.apply(session.manifest_path)
        except KubectlError as e:
            raise RemoteDeployError(f"error applying manifest: {e}")

        self._wait_until_ready(provider, session)

        self._start_port_forwarding(session)

        if network.wait_reachable(
            session.local_hostname, session.local_port, self._reachable_timeout
        ):
            status.info(f"LocalPort {session.local_port} is reachable.")
        else:
            log.warning(f"LocalPort {session.local_port} does not seem to be reachable")
            status.info("Attempting to continue anyway...")

    @staticmethod
    def _write_manifest(provider: Provider, session: Session) -> None:
        """Render the manifest into the session's scratch directory."""
        try:
            manifest = render_manifest(provider, session)

            system.ensure_directory(session.config_dir)

            with open(session.manifest_path, "w") as f:
                f.write(manifest)
        except (OSError, RuntimeError, KeyError, ValueError) as e:
            raise RemoteDeployError(f"error writing manifest file: {e}")

    def _wait_until_ready(self, provider: Provider, session: Session) -> None:
        """Wait for the deployment to become available, but never fail on it."""
        status.info(
            f"Waiting for {provider.serve_command} server for {session.pvc_name} "
            "to be ready..."
        )

        try:
            self._kubectl.wait_for_deployment(
                session.provisioner_name, session.namespace, self._ready_timeout
            )
            return
        except KubectlError as e:
            log.warning(f"timeout waiting for {provider.serve_command} server: {e}")

        # Show logs for debugging
        try:
            logs = self._kubectl.get_pod_logs(
                f"app={session.provisioner_name}", session.namespace
            )
            status.info(f"Pod logs:\n{logs}")
        except KubectlError as e:
            log.debug(f"no pod logs available: {e}")

        status.info("Attempting to continue anyway...")

    def _start_port_forwarding(self, session: Session) -> None:
        """
        Start the port forward and immediately persist its pid.

        An existing port forward of a resumed session is reused as long as its process
        is still alive, since the local port would otherwise already be taken.
        """
        if system.process_alive(session.port_forwarding_pid):
            status.info(
                f"Reusing port forwarding on port {session.local_port} "
                f"(PID: {session.port_forwarding_pid})"
            )
            return

        status.info(f"Starting port forwarding on port {session.local_port}...")

        try:
            pid = self._kubectl.port_forward(
                session.provisioner_name,
                session.namespace,
                session.local_port,
                session.remote_port,
                session.log_file_path,
            )
        except (KubectlError, OSError) as e:
            raise RemoteDeployError(f"error starting port forwarding: {e}")

        session.port_forwarding_pid = pid

        try:
            session.save()
        except RuntimeError as e:
            raise RemoteDeployError(str(e))
