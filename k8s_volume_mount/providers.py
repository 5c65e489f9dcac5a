"""
Module describing the protocols that a volume can be served with.

Each provider runs a flavor of `rclone serve` inside the cluster. The set of providers
is closed: every ProviderType has exactly one Provider entry with its fixed
configuration, and everything that differs between protocols is expressed as data here
rather than through subclasses.
"""

from dataclasses import dataclass
from enum import Enum
import json
import os
from string import Template
from typing import Callable, List

import k8s_volume_mount.constants as constants
from k8s_volume_mount.errors import ValidationError
from k8s_volume_mount.session import Session

_TEMPLATE_PATH = os.path.join(
    os.path.dirname(os.path.abspath(__file__)), "templates", "deployment.yaml"
)


class ProviderType(str, Enum):
    """Protocols that a volume can be exposed with."""

    WEBDAV = "webdav"
    SFTP = "sftp"
    NFS = "nfs"


@dataclass(frozen=True)
class Provider:
    """Fixed configuration of the file server for one protocol."""

    type: ProviderType

    # Subcommand of `rclone serve`
    serve_command: str

    # Produces protocol specific arguments from the session
    serve_args: Callable[[Session], List[str]]

    # Whether the server takes --user/--pass after the common arguments
    appends_credentials: bool = False

    def command(self, session: Session) -> List[str]:
        """Compose the command line of the file server for a session."""
        command = ["rclone", "serve", self.serve_command]
        command.extend(self.serve_args(session))
        command.extend(["/data", "--addr", f":{session.remote_port}"])

        if self.appends_credentials:
            command.extend(
                ["--user", session.mount_username, "--pass", session.decoded_password()]
            )

        return command


def _no_args(session: Session) -> List[str]:
    return []


def _sftp_args(session: Session) -> List[str]:
    return [
        f"--user={session.mount_username}",
        f"--pass={session.decoded_password()}",
    ]


def _nfs_args(session: Session) -> List[str]:
    return ["--vfs-cache-mode=full"]


PROVIDERS = {
    ProviderType.WEBDAV: Provider(
        type=ProviderType.WEBDAV,
        serve_command="webdav",
        serve_args=_no_args,
        appends_credentials=True,
    ),
    ProviderType.SFTP: Provider(
        type=ProviderType.SFTP, serve_command="sftp", serve_args=_sftp_args,
    ),
    ProviderType.NFS: Provider(
        type=ProviderType.NFS, serve_command="nfs", serve_args=_nfs_args,
    ),
}


def get_provider(provider_type: str) -> Provider:
    """Look up the provider for a protocol name."""
    try:
        return PROVIDERS[ProviderType(provider_type)]
    except ValueError:
        raise ValidationError(
            f"could not create provider for provider type: {provider_type}"
        )


def render_manifest(provider: Provider, session: Session) -> str:
    """Render the Deployment and Service that run the file server for a session."""
    with open(_TEMPLATE_PATH, "r") as f:
        template = Template(f.read())

    if session.namespace:
        namespace_field = f"\n  namespace: {session.namespace}"
    else:
        namespace_field = ""

    return template.substitute(
        provisioner_name=session.provisioner_name,
        namespace_field=namespace_field,
        image=constants.SERVER_IMAGE,
        command=json.dumps(provider.command(session)),
        container_port=session.remote_port,
        pvc_name=session.pvc_name,
    )
