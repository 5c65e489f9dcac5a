"""Module that implements the list command."""

import contextlib
import glob
import os
from typing import List

from k8s_volume_mount.errors import VolumeMountError
from k8s_volume_mount.logger import status
from k8s_volume_mount.session import CONFIG_FILE_NAME, Session
from .common import Operations

SEPARATOR = "---------------------------"


def mount_status(mount_dir: str) -> str:
    """
    Describe whether a mount directory is currently accessible.

    This is checked independently of the session record, since the mount may have
    died without the record being updated.
    """
    if not os.path.exists(mount_dir):
        return "Mount directory not found"

    try:
        os.listdir(mount_dir)
    except OSError as e:
        return f"Mount may be stale (error: {e})"

    return "Active"


class ListOperations(Operations):
    """List all sessions that have a persisted record."""

    def _run(self, stack: contextlib.ExitStack) -> int:
        """Run the list command."""
        status.info("Mounted Kubernetes Volumes:")
        status.info(SEPARATOR)

        pattern = os.path.join(self._config.paths.temp_dir, "*", CONFIG_FILE_NAME)
        config_files = sorted(glob.glob(pattern))

        if len(config_files) == 0:
            status.info("No mounted volumes found")
            return 0

        errors: List[str] = []

        for config_file in config_files:
            try:
                session = Session.load(config_file)
            except VolumeMountError as e:
                errors.append(f"error loading metadata from {config_file}: {e}")
                continue

            self._print_session(session)

        if len(errors) > 0:
            raise VolumeMountError("\n".join(errors))

        return 0

    @staticmethod
    def _print_session(session: Session) -> None:
        status.info(f"PVC: {session.pvc_name}")
        if session.namespace:
            status.info(f"  Namespace: {session.namespace}")
        status.info(f"  Mount Directory: {session.mount_dir}")
        status.info(f"  Provider: {session.provider_type}")
        status.info(f"  Mount Method: {session.mount_method or 'none'}")
        status.info(f"  LocalPort: {session.local_port}")
        if session.port_forwarding_pid:
            status.info(f"  Port Forwarding PID: {session.port_forwarding_pid}")
        status.info(f"  Status: {mount_status(session.mount_dir)}")
        status.info(SEPARATOR)
