"""Shared functionality between the commands that operate on volume sessions."""

from abc import ABC
import contextlib
from typing import Optional, Tuple

from k8s_volume_mount.args import Arguments
from k8s_volume_mount.config import Config
import k8s_volume_mount.constants as constants
from k8s_volume_mount.errors import ValidationError
from k8s_volume_mount.kubernetes import Kubectl
from k8s_volume_mount.logger import log
import k8s_volume_mount.network as network
from k8s_volume_mount.providers import get_provider, Provider
from k8s_volume_mount.session import Session


class Operations(ABC):
    """Base class for the logic of a single command."""

    def __init__(
        self, args: Arguments, config: Config, kubectl: Optional[Kubectl] = None
    ):
        """Initialize operations based on command-line arguments and configuration."""
        self._args = args
        self._config = config
        self._kubectl = kubectl or Kubectl()

    def run(self) -> int:
        """Run the operations and clean up properly in case of errors."""
        with contextlib.ExitStack() as stack:
            return self._run(stack)

        # https://github.com/python/mypy/issues/7726
        assert False, "unreachable"

    def _run(self, stack: contextlib.ExitStack) -> int:
        """Run the actual operations."""
        raise NotImplementedError()

    def _require_pvc_name(self) -> str:
        """Return the PVC name argument or fail if it was not specified."""
        if not self._args.pvc:
            raise ValidationError("PVC name must be specified")

        return self._args.pvc

    def _prepare_session(self) -> Tuple[Provider, Session]:
        """
        Validate the target PVC and construct (or resume) its session.

        Nothing is created locally or in the cluster until the PVC is known to exist.
        """
        pvc_name = self._require_pvc_name()
        namespace = self._args.namespace or ""

        provider = get_provider(self._args.provider)

        if not self._kubectl.pvc_exists(pvc_name, namespace):
            raise ValidationError(f"PVC {pvc_name} does not exist")

        port = self._args.port
        if not port:
            port = network.find_free_port(
                self._config.ports.range_start, self._config.ports.range_end
            )

        if port == constants.REMOTE_PORT:
            raise ValidationError(
                f"local port must differ from the remote port {constants.REMOTE_PORT}"
            )

        self._config.initialize()

        session = Session.create(
            self._config, provider.type.value, pvc_name, port, namespace
        )

        if session.local_port != port:
            log.info(
                f"resuming session for {pvc_name} on port {session.local_port} "
                f"instead of {port}"
            )

        # A resumed session keeps serving the protocol it was set up with
        if session.provider_type != provider.type.value:
            log.warning(
                f"resuming {session.provider_type} session for {pvc_name} instead of "
                f"starting a {provider.type.value} session"
            )
            provider = get_provider(session.provider_type)

        return provider, session
