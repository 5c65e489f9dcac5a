"""Module that mounts WebDAV volumes with the davfs2 kernel file system driver."""

import os
import subprocess

from k8s_volume_mount.errors import (
    DependencyMissing,
    MountError,
    MountVerificationError,
)
from k8s_volume_mount.logger import log
import k8s_volume_mount.system as system
from .base import Mounter, MountMethod

# Binary that indicates that davfs2 is installed
DAVFS_BINARY = "mount.davfs"

SECRETS_FILE_NAME = "davfs2.secrets"


class DavFSMounter(Mounter):
    """Mount a WebDAV server with davfs2 (no process to track)."""

    method = MountMethod.DAVFS

    def mount(self) -> int:
        """Mount the WebDAV endpoint using a session-private secrets file."""
        if not system.has_binary(DAVFS_BINARY):
            raise DependencyMissing("davfs2 is not installed", "davfs2")

        system.ensure_directory(self._mount_dir)

        self._write_secrets()

        options = [
            f"uid={os.getuid()}",
            f"gid={os.getgid()}",
            "conf=/dev/null",
            f"secrets={self._secrets_path}",
        ]

        try:
            system.run(
                system.privileged(
                    [
                        "mount",
                        "-t",
                        "davfs",
                        "-o",
                        ",".join(options),
                        self._http_source,
                        self._mount_dir,
                    ]
                )
            )
        except (OSError, subprocess.CalledProcessError) as e:
            self._remove_secrets()
            raise MountError(
                f"failed to mount with davfs2: {system.describe_failure(e)}"
            )

        if not self._is_mounted():
            self._undo_mount()
            raise MountVerificationError(
                f"expected {self._mount_dir} to be a mount point but it is not"
            )

        return 0

    def unmount(self) -> None:
        """Unmount the WebDAV volume and remove the secrets file."""
        try:
            if self._is_mounted():
                system.run(system.privileged(["umount", self._mount_dir]))
        except (OSError, subprocess.CalledProcessError) as e:
            raise MountError(f"failed to unmount davfs: {system.describe_failure(e)}")
        finally:
            self._remove_secrets()

    def _undo_mount(self) -> None:
        """Unwind a mount attempt, attempting every step regardless of failures."""
        try:
            system.run(system.privileged(["umount", self._mount_dir]))
        except (OSError, subprocess.CalledProcessError) as e:
            log.warning(f"failed to unmount davfs: {system.describe_failure(e)}")

        self._remove_secrets()

    @property
    def _secrets_path(self) -> str:
        return os.path.join(self._session.config_dir, SECRETS_FILE_NAME)

    def _write_secrets(self) -> None:
        """Write the davfs2 secrets file readable only by the current user."""
        system.ensure_directory(self._session.config_dir)

        content = (
            f"{self._http_source} {self._session.mount_username} "
            f"{self._session.decoded_password()}\n"
        )

        try:
            fd = os.open(
                self._secrets_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600
            )
            with os.fdopen(fd, "w") as f:
                f.write(content)
        except OSError as e:
            raise MountError(f"failed to write credentials file: {e}")

    def _remove_secrets(self) -> None:
        try:
            os.remove(self._secrets_path)
        except FileNotFoundError:
            pass
        except OSError as e:
            log.warning(f"failed to remove credentials file: {e}")

