"""Module that implements the unmount (cleanup) command."""

import contextlib

from k8s_volume_mount.logger import status
from k8s_volume_mount.session import Session
from .common import Operations
from .cleanup import teardown


class UnmountOperations(Operations):
    """Tear down the session of a PVC using only its persisted record."""

    def _run(self, stack: contextlib.ExitStack) -> int:
        """Run the unmount command."""
        pvc_name = self._require_pvc_name()

        # Fails without touching anything if there is no record
        session = Session.load_for_pvc(self._config, pvc_name)

        status.info(f"Disconnecting volume {pvc_name}...")
        teardown(session, self._kubectl)

        return 0
