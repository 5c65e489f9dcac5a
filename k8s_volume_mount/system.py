"""Helpers for interacting with local processes, binaries and mount points."""

import contextlib
import os
import platform
import shutil
import signal
import subprocess
from typing import List, Optional, Sequence

from k8s_volume_mount.logger import log, summarize


def is_macos() -> bool:
    """Check if the local machine is a macOS (BSD-family) host."""
    return platform.system() == "Darwin"


def has_binary(name: str) -> bool:
    """Check if an executable with the given name can be found on PATH."""
    return shutil.which(name) is not None


def is_root() -> bool:
    """Check if the current process runs with root privileges."""
    return os.geteuid() == 0


def privileged(command: List[str]) -> List[str]:
    """Prefix a command with sudo unless we're already running as root."""
    if is_root():
        return command
    else:
        return ["sudo"] + command


def run(
    command: Sequence[str], interactive: bool = False
) -> subprocess.CompletedProcess:
    """
    Run a command to completion.

    Output is captured and combined unless the command is interactive, in which case
    it is connected to the terminal to allow things like password prompts. Raises
    subprocess.CalledProcessError if the command fails.
    """
    log.debug(f"running {list(command)}")

    if interactive:
        return subprocess.run(list(command), check=True)

    proc = subprocess.run(
        list(command),
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        stdin=subprocess.DEVNULL,
        check=False,
    )

    log.debug(f"{command[0]} exited with {proc.returncode}: {summarize(proc.stdout)}")

    proc.check_returncode()

    return proc


def output_of(error: subprocess.CalledProcessError) -> str:
    """Return the decoded output of a failed command, if any was captured."""
    if error.output is None:
        return ""
    elif isinstance(error.output, bytes):
        return error.output.decode(errors="replace").strip()
    else:
        return str(error.output).strip()


def describe_failure(error: Exception) -> str:
    """Describe a failed command using its output when there is any."""
    if isinstance(error, subprocess.CalledProcessError):
        return output_of(error) or str(error)
    else:
        return str(error)


def spawn_detached(command: Sequence[str], log_path: Optional[str] = None) -> int:
    """
    Start a process that keeps running after this program exits and return its pid.

    The process is placed in its own session (and thus process group) so that it is
    not terminated along with us. Its output goes to the log file, if one is given.
    Ownership of the process ends here: it is never waited upon.
    """
    log.debug(f"spawning {list(command)}")

    if log_path is not None:
        with open(log_path, "wb") as log_file:
            proc = subprocess.Popen(
                list(command),
                stdin=subprocess.DEVNULL,
                stdout=log_file,
                stderr=subprocess.STDOUT,
                start_new_session=True,
            )
    else:
        proc = subprocess.Popen(
            list(command),
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=True,
        )

    return proc.pid


def kill_process(pid: int) -> None:
    """
    Terminate a process that we previously spawned.

    A process that no longer exists is treated as successfully terminated.
    """
    if pid <= 0:
        raise ValueError(f"refusing to signal pid {pid}")

    with contextlib.suppress(ProcessLookupError):
        os.kill(pid, signal.SIGTERM)


def process_alive(pid: int) -> bool:
    """Check if a process with the given pid is still running."""
    if pid <= 0:
        return False

    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        # The process exists, but belongs to someone else
        return True

    return True


def is_mount_point(path: str) -> bool:
    """
    Check if the path is currently a mount point.

    The mount table is consulted rather than trusting the exit status of whatever
    attached the mount.
    """
    if is_macos():
        try:
            output = subprocess.check_output(["mount"], stderr=subprocess.DEVNULL)
        except (OSError, subprocess.CalledProcessError):
            return False

        # Lines have the form "<source> on <path> (<options>)"
        needle = f" on {os.path.realpath(path)} ("
        lines = output.decode(errors="replace").splitlines()

        return any(needle in line for line in lines)

    if has_binary("findmnt"):
        return (
            subprocess.call(
                ["findmnt", "--mountpoint", path],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
            == 0
        )

    return os.path.ismount(path)


def ensure_directory(path: str) -> None:
    """Create a directory (and its parents) if it doesn't exist yet."""
    try:
        os.makedirs(path, mode=0o755, exist_ok=True)
    except OSError as e:
        raise RuntimeError(f"failed to create directory {path}: {e}")
