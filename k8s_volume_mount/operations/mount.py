"""Module that implements the mount and forward commands."""

import contextlib

from k8s_volume_mount.deployer import Deployer
from k8s_volume_mount.errors import MountError, VolumeMountError
from k8s_volume_mount.logger import log, status
import k8s_volume_mount.mounters as mounters
from k8s_volume_mount.mounters.rclone import RCLONE_BINARY, write_config
from k8s_volume_mount.session import Session
import k8s_volume_mount.system as system
from .common import Operations
from .cleanup import teardown


class MountOperations(Operations):
    """
    Deploy a file server for a PVC, tunnel to it and mount it locally.

    If any step fails after the session has been constructed, then everything that was
    set up so far is torn down again before the error is reported.
    """

    def _run(self, stack: contextlib.ExitStack) -> int:
        """Run the mount command."""
        provider, session = self._prepare_session()

        # Undone once the volume has been mounted successfully
        stack.callback(self._cleanup_after_failure, session)

        status.info(
            f"Creating {provider.type.value} provider for PVC {session.pvc_name}..."
        )
        Deployer(self._kubectl).deploy(provider, session)

        status.info(f"Mounting volume {session.pvc_name} to {session.mount_dir}...")

        try:
            self._mount(session)
        except VolumeMountError as e:
            log.error(f"error mounting volume: {e}")
            raise MountError("failed to mount volume")

        stack.pop_all()

        status.info(
            f"Volume {session.pvc_name} successfully mounted at {session.mount_dir} "
            f"using {session.mount_method}"
        )

        return 0

    @staticmethod
    def _mount(session: Session) -> None:
        """Attach the local mount and record how it was attached."""
        if session.mount_method and system.is_mount_point(session.mount_dir):
            status.info(f"{session.mount_dir} is already mounted")
            return

        mounter = mounters.select_mounter(session)

        session.mount_method = mounter.name()
        session.save()

        status.info(f"Using {session.mount_method}...")
        session.mount_pid = mounter.mount()
        session.save()

    def _cleanup_after_failure(self, session: Session) -> None:
        """Tear down the partially set up session, optionally after a pause."""
        if self._args.pause_on_error:
            status.info("Press Enter to continue with cleanup...")

            try:
                input()
            except EOFError:
                pass

        status.info("Cleaning up resources...")
        teardown(session, self._kubectl)


class ForwardOperations(Operations):
    """Deploy a file server for a PVC and tunnel to it without mounting it."""

    def _run(self, stack: contextlib.ExitStack) -> int:
        """Run the forward command."""
        provider, session = self._prepare_session()

        stack.callback(self._cleanup_after_failure, session)

        status.info(
            f"Creating {provider.type.value} provider for PVC {session.pvc_name}..."
        )
        Deployer(self._kubectl).deploy(provider, session)

        stack.pop_all()

        status.info(
            f"Volume {session.pvc_name} available at port {session.local_port} "
            f"via {provider.type.value} server"
        )
        status.info(f"k8s-volume-mount config file: {session.config_file_path}")

        self._write_rclone_config(session)

        return 0

    @staticmethod
    def _write_rclone_config(session: Session) -> None:
        """Write an rclone config for connecting to the forwarded port, if possible."""
        if session.provider_type not in ("webdav", "sftp"):
            return

        if not system.has_binary(RCLONE_BINARY):
            log.warning("rclone is not installed, not generating an rclone config")
            return

        try:
            path = write_config(session)
        except VolumeMountError as e:
            log.warning(f"error generating rclone config: {e}")
            return

        status.info(f"rclone config file: {path}")

    def _cleanup_after_failure(self, session: Session) -> None:
        status.info("Cleaning up resources...")
        teardown(session, self._kubectl)
