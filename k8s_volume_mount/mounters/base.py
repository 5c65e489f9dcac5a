"""Shared functionality between the mount backends."""

from abc import ABC, abstractmethod
from enum import Enum

from k8s_volume_mount.session import Session
import k8s_volume_mount.system as system


class MountMethod(str, Enum):
    """Local mechanisms that can attach a served volume."""

    DAVFS = "davfs2"
    RCLONE = "rclone"
    NFS = "nfs"


class Mounter(ABC):
    """
    Base class for attaching the tunneled file server as a local directory.

    mount() returns the pid of the process that keeps the mount alive, or 0 if the
    mount is mediated by the kernel and there is no such process. Both mount() and
    unmount() consult the mount table rather than trusting exit codes.
    """

    method: MountMethod

    def __init__(self, session: Session):
        """Instantiate the mounter for the session's mount directory."""
        self._session = session

    def name(self) -> str:
        """Return the name under which the mount method is recorded."""
        return self.method.value

    @abstractmethod
    def mount(self) -> int:
        """Attach the volume and return the pid of the mount process, if any."""
        raise NotImplementedError()

    @abstractmethod
    def unmount(self) -> None:
        """Detach the volume, doing nothing if it is not mounted."""
        raise NotImplementedError()

    @property
    def _mount_dir(self) -> str:
        return self._session.mount_dir

    @property
    def _http_source(self) -> str:
        return f"http://{self._session.local_hostname}:{self._session.local_port}/"

    def _is_mounted(self) -> bool:
        return system.is_mount_point(self._mount_dir)
