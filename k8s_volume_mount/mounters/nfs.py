"""Module that mounts NFS volumes with the native NFS client of the host."""

import os
import subprocess
from typing import List

from k8s_volume_mount.errors import MountError, MountVerificationError
from k8s_volume_mount.logger import log, status
import k8s_volume_mount.system as system
from .base import Mounter, MountMethod

# Mount helpers that indicate an installed NFS client
LINUX_NFS_BINARY = "mount.nfs"
MACOS_NFS_BINARY = "mount_nfs"


def nfs_client_binary() -> str:
    """Return the name of the NFS mount helper for the current platform."""
    if system.is_macos():
        return MACOS_NFS_BINARY
    else:
        return LINUX_NFS_BINARY


class NFSMounter(Mounter):
    """
    Mount an NFS server with the kernel's NFS client.

    There is no process that keeps the mount alive, so no pid is ever tracked. The
    port forward only exposes a single port, which is why both the NFS and the mount
    protocol are pointed at it explicitly.
    """

    method = MountMethod.NFS

    def mount(self) -> int:
        """Mount the NFS export and verify that the mount point appeared."""
        system.ensure_directory(self._mount_dir)

        macos = system.is_macos()

        try:
            if macos:
                # Privileged ports and sudo are needed, which may prompt for a password
                status.info(
                    "Mounting NFS volume. You may be prompted for your password."
                )
                system.run(self._mount_command(macos), interactive=True)
            else:
                system.run(self._mount_command(macos))
        except (OSError, subprocess.CalledProcessError) as e:
            raise MountError(
                f"failed to mount with NFS: {system.describe_failure(e)}"
            )

        if not self._is_mounted():
            # Try to unmount in case of a partial mount
            try:
                system.run(self._unmount_command(macos))
            except (OSError, subprocess.CalledProcessError) as e:
                log.warning(f"failed to unmount NFS: {system.describe_failure(e)}")

            raise MountVerificationError(
                f"expected {self._mount_dir} to be a mount point but it is not"
            )

        return 0

    def unmount(self) -> None:
        """Unmount the NFS export if it is mounted."""
        if not os.path.exists(self._mount_dir) or not self._is_mounted():
            return

        macos = system.is_macos()

        try:
            if macos:
                status.info(
                    "Unmounting NFS volume. You may be prompted for your password."
                )
                system.run(self._unmount_command(macos), interactive=True)
            else:
                system.run(self._unmount_command(macos))
        except (OSError, subprocess.CalledProcessError) as e:
            raise MountError(
                f"failed to unmount NFS: {system.describe_failure(e)}"
            )

    def _mount_options(self, macos: bool) -> List[str]:
        port = self._session.local_port

        if macos:
            options = ["resvport", "noowners", "nolocks"]
        else:
            options = [
                "nolock",
                "vers=3",
                "tcp",
                "rsize=1048576",
                "wsize=1048576",
            ]

        return options + [f"port={port}", f"mountport={port}"]

    def _mount_command(self, macos: bool) -> List[str]:
        source = f"{self._session.local_hostname}:/"
        options = ",".join(self._mount_options(macos))

        command = ["mount", "-t", "nfs", "-o", options, source, self._mount_dir]

        if macos:
            return ["sudo"] + command
        else:
            return system.privileged(command)

    def _unmount_command(self, macos: bool) -> List[str]:
        if macos:
            return ["sudo", "umount", self._mount_dir]
        else:
            return system.privileged(["umount", self._mount_dir])
