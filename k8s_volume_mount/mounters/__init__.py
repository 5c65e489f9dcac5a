"""
Modules that attach a tunneled file server as a local directory.

Which mounter is used is never configured, but determined by probing for the tools
that are installed on the local machine. Since a later invocation (like `unmount`) has
no access to the mounter that was used to mount, it simply runs the same probe again.
"""

from typing import List, Optional

import k8s_volume_mount.constants as constants
from k8s_volume_mount.errors import DependencyMissing
from k8s_volume_mount.session import Session
import k8s_volume_mount.system as system
from .base import Mounter, MountMethod
from .davfs import DAVFS_BINARY, DavFSMounter
from .nfs import nfs_client_binary, NFSMounter
from .rclone import RCLONE_BINARY, RcloneMounter

__all__ = [
    "Mounter",
    "MountMethod",
    "DavFSMounter",
    "NFSMounter",
    "RcloneMounter",
    "available_methods",
    "create_mounter",
    "select_mounter",
]


def available_methods(provider_type: str) -> List[MountMethod]:
    """Return the installed mount methods for a protocol in order of preference."""
    if provider_type == "webdav":
        candidates = [
            (MountMethod.DAVFS, DAVFS_BINARY),
            (MountMethod.RCLONE, RCLONE_BINARY),
        ]
    elif provider_type == "sftp":
        candidates = [(MountMethod.RCLONE, RCLONE_BINARY)]
    elif provider_type == "nfs":
        candidates = [(MountMethod.NFS, nfs_client_binary())]
    else:
        raise ValueError(f"unknown provider type: {provider_type}")

    return [method for method, binary in candidates if system.has_binary(binary)]


def create_mounter(method: MountMethod, session: Session) -> Mounter:
    """Instantiate the mounter implementing a mount method."""
    if method == MountMethod.DAVFS:
        return DavFSMounter(session)
    elif method == MountMethod.RCLONE:
        return RcloneMounter(session)
    else:
        return NFSMounter(session)


def select_mounter(session: Session, preferred: Optional[str] = None) -> Mounter:
    """
    Pick the mounter for the session's protocol based on the installed tools.

    A preferred method (like the one recorded in the session) is used if it is one of
    the available methods, otherwise the most preferred available method is used.
    """
    methods = available_methods(session.provider_type)

    if len(methods) == 0:
        raise _missing_dependency(session.provider_type)

    for method in methods:
        if preferred and method.value == preferred:
            return create_mounter(method, session)

    return create_mounter(methods[0], session)


def _missing_dependency(provider_type: str) -> DependencyMissing:
    if provider_type == "webdav":
        return DependencyMissing(
            "no WebDAV mount method available",
            f"rclone: {constants.RCLONE_INSTALL_URL}",
        )
    elif provider_type == "sftp":
        return DependencyMissing(
            "no SFTP mount method available",
            f"rclone: {constants.RCLONE_INSTALL_URL}",
        )
    else:
        return DependencyMissing(
            "no NFS mount method available",
            f"an NFS client ({nfs_client_binary()})",
        )
