"""
Module implementing the persisted record of a single volume session.

A session describes everything that was set up to expose one PVC: the in-cluster file
server, the local port forward and the local mount. Every command runs in its own
process, so the record on disk is the only way for a later invocation (like `list` or
`unmount`) to find out what is running and how to reverse it.

The record lives at <temp_dir>/<pvc_name>/config.json and the existence of that file is
what determines whether a session exists for a PVC name. It is plain JSON written with
indentation so that it can be inspected by hand.

Note that the mount password is stored base64-encoded rather than encrypted. Mount
clients need the plaintext password, so the file should be considered to contain the
plaintext secret.
"""

from __future__ import annotations

import base64
import dataclasses
from dataclasses import dataclass
import json
import os
import secrets
import shutil
import string
from typing import Any, Dict

import semver

from k8s_volume_mount.config import Config
import k8s_volume_mount.constants as constants
from k8s_volume_mount.errors import SessionCorrupt, SessionNotFound
from k8s_volume_mount.logger import log

# Characters used for generated usernames and passwords
_CREDENTIAL_CHARSET = string.ascii_uppercase + string.ascii_lowercase

USERNAME_LENGTH = 8
PASSWORD_LENGTH = 40

CONFIG_FILE_NAME = "config.json"
MANIFEST_FILE_NAME = "deployment.yaml"
PORT_FORWARD_LOG_NAME = "port-forward.log"


def generate_random_string(length: int) -> str:
    """Generate a random string of letters using a cryptographically secure source."""
    return "".join(secrets.choice(_CREDENTIAL_CHARSET) for _ in range(length))


def encode_password(password: str) -> str:
    """Reversibly encode a password for storage in the session record."""
    return base64.b64encode(password.encode()).decode()


def decode_password(encoded: str) -> str:
    """Decode a password that was encoded with encode_password()."""
    try:
        return base64.b64decode(encoded.encode(), validate=True).decode()
    except (ValueError, UnicodeDecodeError) as e:
        raise SessionCorrupt(f"failed to decode password: {e}")


def session_dir(config: Config, pvc_name: str) -> str:
    """Return the scratch directory of the session for the given PVC name."""
    return os.path.join(config.paths.temp_dir, pvc_name)


@dataclass
class Session:
    """
    State of one volume session.

    Fields are mutated as each step of the lifecycle succeeds and are saved after
    every mutation that must survive a crash. A pid of 0 and an empty mount method
    mean that there is no such handle.
    """

    provider_type: str = ""
    pvc_name: str = ""
    namespace: str = ""
    mount_dir: str = ""
    config_dir: str = ""
    local_hostname: str = constants.LOCAL_HOSTNAME
    local_port: int = 0
    remote_port: int = constants.REMOTE_PORT
    port_forwarding_pid: int = 0
    mount_method: str = ""
    mount_pid: int = 0
    mount_username: str = ""
    mount_password: str = ""
    provisioner_name: str = ""

    # Mapping from field names to the keys used in the JSON record
    _JSON_KEYS = {
        "provider_type": "providerType",
        "pvc_name": "pvcName",
        "namespace": "namespace",
        "mount_dir": "mountDir",
        "config_dir": "configDir",
        "local_hostname": "localHostname",
        "local_port": "localPort",
        "remote_port": "remotePort",
        "port_forwarding_pid": "portForwardingPid",
        "mount_method": "mountMethod",
        "mount_pid": "mountPid",
        "mount_username": "mountUsername",
        "mount_password": "mountPassword",
        "provisioner_name": "provisionerName",
    }

    @classmethod
    def create(
        cls,
        config: Config,
        provider_type: str,
        pvc_name: str,
        port: int,
        namespace: str = "",
    ) -> Session:
        """
        Construct a session for a PVC and resume any existing record for it.

        Fresh credentials are generated, but they are overwritten by the ones on disk
        if a record already exists. That keeps the credentials in sync with a file
        server that may already have been deployed with them.
        """
        session = cls(
            provider_type=provider_type,
            pvc_name=pvc_name,
            namespace=namespace,
            mount_dir=os.path.join(config.paths.mount_base_dir, pvc_name),
            config_dir=session_dir(config, pvc_name),
            local_port=port,
            mount_username=generate_random_string(USERNAME_LENGTH),
            mount_password=encode_password(generate_random_string(PASSWORD_LENGTH)),
            provisioner_name=f"{provider_type}-{pvc_name}-{port}",
        )

        try:
            session.overlay(session.config_file_path)
            log.debug(f"resumed existing session for {pvc_name}")
        except SessionNotFound:
            log.debug(f"starting new session for {pvc_name}")
        except SessionCorrupt as e:
            log.warning(f"ignoring unreadable session record: {e}")

        return session

    @classmethod
    def load(cls, path: str) -> Session:
        """Load a session from the record at the given path."""
        session = cls()
        session.overlay(path)
        return session

    @classmethod
    def load_for_pvc(cls, config: Config, pvc_name: str) -> Session:
        """Load the session for a PVC name from its default location."""
        path = os.path.join(session_dir(config, pvc_name), CONFIG_FILE_NAME)

        try:
            return cls.load(path)
        except SessionNotFound:
            raise SessionNotFound(f"no mount information found for PVC: {pvc_name}")

    def overlay(self, path: str) -> None:
        """
        Replace fields of this session with the ones stored in the record on disk.

        Unknown keys are ignored and missing keys leave the current values alone. The
        whole record is validated before any field is replaced.
        """
        try:
            with open(path, "r") as f:
                data = json.load(f)
        except FileNotFoundError:
            raise SessionNotFound(f"metadata file not found: {path}")
        except (ValueError, UnicodeDecodeError) as e:
            raise SessionCorrupt(f"error parsing metadata file {path}: {e}")

        if not isinstance(data, dict):
            raise SessionCorrupt(f"metadata file {path} does not contain an object")

        self._check_version(path, data.get("version"))

        values: Dict[str, Any] = {}

        for name, key in self._JSON_KEYS.items():
            if key not in data or data[key] is None:
                continue

            expected_type = type(getattr(Session, name))
            value = data[key]

            if not isinstance(value, expected_type) or isinstance(value, bool):
                raise SessionCorrupt(
                    f"field {key} in {path} should be {expected_type.__name__}"
                )

            values[name] = value

        for name, value in values.items():
            setattr(self, name, value)

    @staticmethod
    def _check_version(path: str, version: Any) -> None:
        """Check that a record was written by a compatible metadata format."""
        if version is None:
            return

        current = semver.VersionInfo.parse(constants.METADATA_VERSION)

        try:
            stored = semver.VersionInfo.parse(str(version))
        except (ValueError, TypeError):
            raise SessionCorrupt(f"invalid metadata version '{version}' in {path}")

        if stored.major != current.major:
            raise SessionCorrupt(
                f"incompatible metadata version in {path} ({stored} != {current})"
            )

    def to_dict(self) -> Dict[str, Any]:
        """Return the JSON representation of the session."""
        data: Dict[str, Any] = {"version": constants.METADATA_VERSION}

        for f in dataclasses.fields(self):
            data[self._JSON_KEYS[f.name]] = getattr(self, f.name)

        return data

    def save(self) -> None:
        """Write the session record, creating the scratch directory if needed."""
        path = self.config_file_path

        try:
            os.makedirs(os.path.dirname(path), mode=0o755, exist_ok=True)

            with open(path, "w") as f:
                json.dump(self.to_dict(), f, indent=2)
        except OSError as e:
            raise RuntimeError(f"error saving metadata: {e}")

    def delete(self) -> None:
        """Remove the scratch directory of this session, including the record."""
        if not self.config_dir:
            return

        try:
            shutil.rmtree(self.config_dir)
        except FileNotFoundError:
            pass

    def decoded_password(self) -> str:
        """Return the plaintext mount password."""
        return decode_password(self.mount_password)

    @property
    def config_file_path(self) -> str:
        """Return the path to the session record."""
        return os.path.join(self.config_dir, CONFIG_FILE_NAME)

    @property
    def manifest_path(self) -> str:
        """Return the path to the generated deployment manifest."""
        return os.path.join(self.config_dir, MANIFEST_FILE_NAME)

    @property
    def log_file_path(self) -> str:
        """Return the path to the port forwarding log file."""
        return os.path.join(self.config_dir, PORT_FORWARD_LOG_NAME)
