"""
Module implementing the command-line interface and invoking the main logic.

Every command runs to completion in a single process. State that must outlive the
process (like the pid of a port forward or the mount method that was used) is persisted
as session metadata, so that a later invocation can list or tear down the session.
"""

import logging
import os
import signal
import sys
from typing import Dict, List, NoReturn, Optional, Type

from k8s_volume_mount.config import Config
import k8s_volume_mount.constants as constants
from k8s_volume_mount.logger import log
import k8s_volume_mount.operations as operations
from .args import Arguments

COMMANDS: Dict[str, Type[operations.Operations]] = {
    "mount": operations.MountOperations,
    "forward": operations.ForwardOperations,
    "unmount": operations.UnmountOperations,
    "cleanup": operations.UnmountOperations,
    "list": operations.ListOperations,
}


def main(arguments: Optional[List[str]] = None) -> NoReturn:
    """
    Run the command given by the arguments.

    Defaults to parsing command-line arguments from sys.argv if none are specified.
    """
    # Parse command-line arguments.
    args = Arguments.parse(arguments)

    # Configure debug logging.
    if args.debug:
        log.setLevel(logging.DEBUG)
    else:
        log.setLevel(logging.WARNING)

    config = Config.load(os.path.expanduser(args.config))

    ops = COMMANDS[args.command](args, config)

    try:
        exit_code = ops.run()
    except KeyboardInterrupt:
        exit_code = 128 + signal.SIGINT
    except Exception as e:
        log.error(f"failed to run {args.command}: {e}")
        exit_code = constants.ERROR_CODE

    sys.exit(exit_code)
