"""
Module that reverses everything a volume session has set up.

Teardown only relies on what can be recovered from the session record, since it usually
runs in a different process than the one that set the session up. Every step is best
effort: a failing step is reported as a warning and the remaining steps still run,
because a partial cleanup is better than none. Resources that are already gone are
treated as successfully removed, which makes it safe to tear down a session twice.
"""

import os

from k8s_volume_mount.kubernetes import Kubectl
from k8s_volume_mount.logger import log, status
from k8s_volume_mount.mounters import select_mounter
from k8s_volume_mount.session import Session
import k8s_volume_mount.system as system


def teardown(session: Session, kubectl: Kubectl) -> None:
    """Unmount, stop the tunnel, delete the server and remove all local state."""
    _unmount(session)
    _stop_port_forwarding(session)
    _delete_deployment(session, kubectl)
    _delete_metadata(session)
    _remove_mount_dir(session)

    status.info(
        f"Volume {session.pvc_name} successfully unmounted and resources cleaned up"
    )


def _unmount(session: Session) -> None:
    """Detach the local mount using whichever mounter is available now."""
    if not session.mount_dir:
        return

    status.info(f"Unmounting {session.mount_dir}...")

    try:
        mounter = select_mounter(session, preferred=session.mount_method)
    except Exception as e:
        log.warning(f"error identifying mounter: {e}")
        return

    try:
        mounter.unmount()
    except Exception as e:
        log.warning(f"error unmounting volume: {e}")


def _stop_port_forwarding(session: Session) -> None:
    pid = session.port_forwarding_pid

    if pid <= 0:
        return

    status.info(f"Stopping port forwarding (PID: {pid})...")

    try:
        system.kill_process(pid)
    except Exception as e:
        log.warning(f"failed to stop port forwarding: {e}")


def _delete_deployment(session: Session, kubectl: Kubectl) -> None:
    """Delete the in-cluster resources if their manifest is still around."""
    status.info(
        f"Deleting {session.provider_type} deployment {session.provisioner_name}..."
    )

    if not session.config_dir or not os.path.exists(session.manifest_path):
        status.info(
            f"No manifest found for {session.provider_type} deployment "
            f"{session.provisioner_name}"
        )
        return

    try:
        kubectl.delete(session.manifest_path)
    except Exception as e:
        log.warning(f"error deleting manifest: {e}")


def _delete_metadata(session: Session) -> None:
    try:
        session.delete()
    except Exception as e:
        log.warning(f"error deleting metadata: {e}")


def _remove_mount_dir(session: Session) -> None:
    if not session.mount_dir:
        return

    try:
        os.rmdir(session.mount_dir)
    except FileNotFoundError:
        pass
    except Exception as e:
        log.warning(f"failed to delete mount directory: {e}")
