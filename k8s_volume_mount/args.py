"""Module defining the command-line arguments and providing a parser for them."""

from __future__ import annotations

import argparse
from typing import List, Optional

from k8s_volume_mount.constants import DEFAULT_CONFIG_PATH, METADATA_VERSION, VERSION
from k8s_volume_mount.providers import ProviderType


class Arguments(argparse.Namespace):
    """Parsed command-line arguments."""

    command: str

    pvc: Optional[str] = None
    port: Optional[int] = None
    provider: str = "webdav"
    namespace: Optional[str] = None
    pause_on_error: bool = False

    config: str
    debug: bool

    @classmethod
    def parse(cls, args: Optional[List[str]] = None) -> Arguments:
        """
        Parse command-line arguments from the given list of strings.

        Defaults to sys.argv if none are specified.
        """
        return cls._get_parser().parse_args(args, namespace=cls())

    @classmethod
    def _get_parser(cls) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(
            prog="k8s-volume-mount",
            description="Mount a Kubernetes PersistentVolumeClaim locally.",
        )

        parser.add_argument(
            "--version",
            action="version",
            version=f"%(prog)s {VERSION} (metadata {METADATA_VERSION})",
            help="show the program version and metadata version",
        )

        # Path to (optional) config file
        parser.add_argument(
            "--config",
            type=str,
            help=f"path to config file (default is {DEFAULT_CONFIG_PATH})",
            default=DEFAULT_CONFIG_PATH,
        )

        # Enable debug output for development
        parser.add_argument(
            "--debug", action="store_true", help="enable debug information"
        )

        subparsers = parser.add_subparsers(dest="command", metavar="command")
        subparsers.required = True

        mount = subparsers.add_parser(
            "mount", help="deploy a file server for a PVC and mount it locally"
        )
        cls._add_session_arguments(mount)
        cls._add_pause_argument(mount)

        forward = subparsers.add_parser(
            "forward", help="deploy a file server for a PVC and forward it locally"
        )
        cls._add_session_arguments(forward)

        unmount = subparsers.add_parser(
            "unmount",
            aliases=["cleanup"],
            help="unmount a PVC and clean up all of its resources",
        )
        cls._add_pvc_argument(unmount)

        subparsers.add_parser("list", help="list all mounted volumes")

        return parser

    @staticmethod
    def _add_pvc_argument(parser: argparse.ArgumentParser) -> None:
        parser.add_argument("-pvc", "--pvc", type=str, help="name of the PVC")

    @classmethod
    def _add_session_arguments(cls, parser: argparse.ArgumentParser) -> None:
        cls._add_pvc_argument(parser)

        # Defaults to the first free port in the configured range
        parser.add_argument(
            "-port", "--port", type=cls._parse_port, help="local port to forward to"
        )

        parser.add_argument(
            "-provider",
            "--provider",
            type=str,
            choices=[provider.value for provider in ProviderType],
            default="webdav",
            help="file server protocol (default is webdav)",
        )

        parser.add_argument(
            "-namespace",
            "--namespace",
            type=str,
            help="namespace of the PVC (default is the current context's namespace)",
        )

    @staticmethod
    def _add_pause_argument(parser: argparse.ArgumentParser) -> None:
        parser.add_argument(
            "-pause-on-error",
            "--pause-on-error",
            action="store_true",
            help="wait for confirmation before cleaning up after an error",
        )

    @staticmethod
    def _parse_port(arg: str) -> int:
        try:
            val = int(arg)
            assert 0 < val < 65536
            return val
        except (ValueError, AssertionError):
            raise argparse.ArgumentTypeError("expected port number in 1-65535")
