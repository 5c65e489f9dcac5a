"""Exceptions raised by the volume session lifecycle."""

from typing import Optional


class VolumeMountError(RuntimeError):
    """Base class for all errors that abort a k8s-volume-mount command."""


class ValidationError(VolumeMountError):
    """Raised when a command is invoked with invalid or unusable arguments."""


class DependencyMissing(VolumeMountError):
    """Raised when a required external binary cannot be found on PATH."""

    def __init__(self, message: str, hint: Optional[str] = None) -> None:
        """Instantiate the exception with an optional remediation hint."""
        if hint:
            message = f"{message}. Please install {hint}"

        super().__init__(message)

        self.hint = hint


class KubectlError(VolumeMountError):
    """Raised when a kubectl invocation fails."""


class RemoteDeployError(VolumeMountError):
    """Raised when the in-cluster file server or its tunnel could not be set up."""


class MountError(VolumeMountError):
    """Raised when a local mount could not be attached or detached."""


class MountVerificationError(MountError):
    """Raised when an attach call succeeded, but the path is not a mount point."""


class SessionNotFound(VolumeMountError):
    """Raised when there is no persisted session for a PVC name."""


class SessionCorrupt(VolumeMountError):
    """Raised when a persisted session exists but cannot be parsed."""


class NoFreePort(VolumeMountError):
    """Raised when every port in the scanned range is in use."""
