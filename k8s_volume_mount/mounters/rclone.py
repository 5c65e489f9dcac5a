"""Module that mounts WebDAV and SFTP volumes with `rclone mount`."""

import os
import subprocess
import time

import k8s_volume_mount.constants as constants
from k8s_volume_mount.errors import (
    DependencyMissing,
    MountError,
    MountVerificationError,
)
from k8s_volume_mount.logger import log, status
from k8s_volume_mount.session import Session
import k8s_volume_mount.system as system
from .base import Mounter, MountMethod

RCLONE_BINARY = "rclone"

CONFIG_FILE_NAME = "rclone.conf"
LOG_FILE_NAME = "rclone.log"

# Interval at which the mount table is checked while rclone attaches
_POLL_INTERVAL = 0.25


def obscure_password(password: str) -> str:
    """
    Obscure a password the way rclone expects it in its config file.

    This is a reversible obfuscation, not encryption.
    """
    try:
        proc = system.run([RCLONE_BINARY, "obscure", password])
    except FileNotFoundError:
        raise DependencyMissing(
            "rclone is not installed", f"rclone: {constants.RCLONE_INSTALL_URL}"
        )
    except subprocess.CalledProcessError as e:
        raise MountError(f"failed to obscure password: {system.describe_failure(e)}")

    return proc.stdout.decode().strip()


def render_config(session: Session) -> str:
    """Render an rclone remote definition that connects to the session's tunnel."""
    host = session.local_hostname
    port = session.local_port
    password = obscure_password(session.decoded_password())

    if session.provider_type == "webdav":
        return (
            "[webdav]\n"
            "type = webdav\n"
            f"url = http://{host}:{port}\n"
            "vendor = other\n"
            f"user = {session.mount_username}\n"
            f"pass = {password}\n"
        )
    elif session.provider_type == "sftp":
        return (
            "[sftp]\n"
            "type = sftp\n"
            f"host = {host}\n"
            f"port = {port}\n"
            f"user = {session.mount_username}\n"
            f"pass = {password}\n"
        )
    else:
        raise MountError(
            f"unsupported provider type for rclone: {session.provider_type}"
        )


def config_file_path(session: Session) -> str:
    """Return the path of the rclone config file of a session."""
    return os.path.join(session.config_dir, CONFIG_FILE_NAME)


def write_config(session: Session) -> str:
    """Write the rclone config file of a session and return its path."""
    path = config_file_path(session)
    content = render_config(session)

    try:
        system.ensure_directory(session.config_dir)

        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w") as f:
            f.write(content)
    except (OSError, RuntimeError) as e:
        raise MountError(f"failed to write rclone config: {e}")

    return path


class RcloneMounter(Mounter):
    """Mount a WebDAV or SFTP server with a detached `rclone mount` process."""

    method = MountMethod.RCLONE

    def __init__(
        self, session: Session, attach_timeout: float = constants.MOUNT_ATTACH_TIMEOUT
    ):
        """Instantiate the mounter with a bound on how long attaching may take."""
        super().__init__(session)
        self._attach_timeout = attach_timeout

    def mount(self) -> int:
        """Start rclone in the background and wait for the mount to appear."""
        if not system.has_binary(RCLONE_BINARY):
            raise DependencyMissing(
                "rclone is not installed", f"rclone: {constants.RCLONE_INSTALL_URL}"
            )

        system.ensure_directory(self._mount_dir)

        config_file = write_config(self._session)
        remote_name = f"{self._session.provider_type}:/"

        command = [
            RCLONE_BINARY,
            "mount",
            remote_name,
            self._mount_dir,
            "--config",
            config_file,
            "--vfs-cache-mode",
            "writes",
            "--log-file",
            os.path.join(self._session.config_dir, LOG_FILE_NAME),
        ]

        try:
            pid = system.spawn_detached(command)
        except OSError as e:
            raise MountError(f"failed to start rclone mount command: {e}")

        log.debug(f"rclone process started with pid {pid}")

        if not self._wait_until_mounted():
            self._undo_mount(pid)
            raise MountVerificationError(
                f"expected {self._mount_dir} to be a mount point but it is not"
            )

        return pid

    def unmount(self) -> None:
        """
        Stop the rclone process and make sure that the mount is gone.

        Without a recorded pid (or if killing rclone is not enough) the FUSE mount is
        detached directly.
        """
        pid = self._session.mount_pid

        # rclone can outlive its mount, so the pid is stopped even when unmounted
        if pid > 0:
            status.info(f"Stopping rclone (PID: {pid})...")

            try:
                system.kill_process(pid)
            except OSError as e:
                log.warning(f"failed to kill rclone process: {e}")

            if self._wait_until_unmounted():
                return
        elif not self._is_mounted():
            return
        else:
            log.warning("no rclone pid recorded, detaching mount directly")

        self._detach()

    def _wait_until_mounted(self) -> bool:
        deadline = time.monotonic() + self._attach_timeout

        while time.monotonic() < deadline:
            if self._is_mounted():
                return True

            time.sleep(_POLL_INTERVAL)

        return self._is_mounted()

    def _wait_until_unmounted(self) -> bool:
        deadline = time.monotonic() + self._attach_timeout

        while time.monotonic() < deadline:
            if not self._is_mounted():
                return True

            time.sleep(_POLL_INTERVAL)

        return not self._is_mounted()

    def _detach(self) -> None:
        """Detach the FUSE mount without the help of the rclone process."""
        if system.is_macos():
            command = ["umount", self._mount_dir]
        else:
            command = ["fusermount", "-u", self._mount_dir]

        try:
            system.run(command)
        except (OSError, subprocess.CalledProcessError) as e:
            raise MountError(
                f"failed to unmount rclone mount: {system.describe_failure(e)}"
            )

    def _undo_mount(self, pid: int) -> None:
        """Unwind a failed mount attempt, attempting every step regardless."""
        try:
            system.kill_process(pid)
        except OSError as e:
            log.warning(f"failed to kill rclone process: {e}")

        if self._is_mounted():
            try:
                self._detach()
            except MountError as e:
                log.warning(str(e))
