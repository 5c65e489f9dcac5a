"""Module for configuration variables with defaults that are overridable by a file."""

from __future__ import annotations

from configparser import ConfigParser, SectionProxy
from dataclasses import dataclass, field
import os
from typing import Mapping, Optional

import k8s_volume_mount.constants as constants
from k8s_volume_mount.logger import log


def _default_mount_base_dir() -> str:
    return os.path.join(os.path.expanduser("~"), constants.DEFAULT_MOUNT_BASE_DIR)


@dataclass
class PathsConfig:
    """Configuration variables related to local directories."""

    # Scratch root holding one session directory per PVC name
    temp_dir: str = constants.DEFAULT_TEMP_DIR

    # Base directory under which volumes are mounted
    mount_base_dir: str = field(default_factory=_default_mount_base_dir)

    @staticmethod
    def load(section: SectionProxy) -> PathsConfig:
        """Load overridden variables from a section within a config file."""
        config = PathsConfig()

        config.temp_dir = os.path.expanduser(
            section.get("temp_dir", fallback=config.temp_dir)
        )
        config.mount_base_dir = os.path.expanduser(
            section.get("mount_base_dir", fallback=config.mount_base_dir)
        )

        return config


@dataclass
class PortsConfig:
    """Configuration variables related to local port allocation."""

    range_start: int = constants.PORT_RANGE_START
    range_end: int = constants.PORT_RANGE_END

    @staticmethod
    def load(section: SectionProxy) -> PortsConfig:
        """Load overridden variables from a section within a config file."""
        config = PortsConfig()

        config.range_start = section.getint("range_start", fallback=config.range_start)
        config.range_end = section.getint("range_end", fallback=config.range_end)

        if config.range_start > config.range_end:
            raise ValueError(
                f"invalid port range {config.range_start}-{config.range_end}"
            )

        return config


@dataclass
class Config:
    """Configuration variables."""

    paths: PathsConfig = field(default_factory=PathsConfig)
    ports: PortsConfig = field(default_factory=PortsConfig)

    @staticmethod
    def load(filename: str, environ: Optional[Mapping[str, str]] = None) -> Config:
        """
        Load overridden configuration variables from a config file.

        Environment variables are applied on top of the file, so they always win.
        """
        parser = ConfigParser()

        config = Config()

        try:
            with open(filename, "r") as f:
                parser.read_string(f.read(), filename)

            if "paths" in parser:
                config.paths = PathsConfig.load(parser["paths"])
            if "ports" in parser:
                config.ports = PortsConfig.load(parser["ports"])
        except FileNotFoundError:
            log.info(f"no config file at {filename}")
        except Exception as e:
            # An unreadable config file is not considered a fatal error since we can
            # fall back to defaults.
            log.error(f"failed to read config file {filename}: {e}")

        config.apply_environment(os.environ if environ is None else environ)

        log.info(f"loaded config: {config}")

        return config

    def apply_environment(self, environ: Mapping[str, str]) -> None:
        """Override paths with the K8S_VOLUME_MOUNT_* environment variables."""
        temp_dir = environ.get(constants.TEMP_DIR_ENV)
        if temp_dir:
            self.paths.temp_dir = temp_dir

        # The mount directory is interpreted relative to the home directory
        mount_dir = environ.get(constants.MOUNT_DIR_ENV)
        if mount_dir:
            self.paths.mount_base_dir = os.path.join(
                environ.get("HOME", os.path.expanduser("~")), mount_dir
            )

    def initialize(self) -> None:
        """Create the scratch root and mount base directories."""
        os.makedirs(self.paths.temp_dir, mode=0o755, exist_ok=True)
        os.makedirs(self.paths.mount_base_dir, mode=0o755, exist_ok=True)
