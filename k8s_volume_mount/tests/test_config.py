import os.path

from configparser import ConfigParser

import pytest

import k8s_volume_mount.constants as constants
from k8s_volume_mount.config import Config, PathsConfig, PortsConfig


def test_paths_config_defaults():
    parser = ConfigParser()
    parser.read_string("[paths]")

    cfg = PathsConfig.load(parser["paths"])

    assert cfg.temp_dir == constants.DEFAULT_TEMP_DIR
    assert cfg.mount_base_dir == os.path.expanduser("~/k8s-mounts")


def test_paths_config_load():
    parser = ConfigParser()
    parser.read_string(
        """
        [paths]
        temp_dir = /var/tmp/volumes
        mount_base_dir = ~/mounts
        """
    )

    cfg = PathsConfig.load(parser["paths"])

    assert cfg.temp_dir == "/var/tmp/volumes"
    assert cfg.mount_base_dir == os.path.expanduser("~/mounts")


def test_ports_config_load():
    parser = ConfigParser()
    parser.read_string(
        """
        [ports]
        range_start = 20000
        range_end = 20010
        """
    )

    cfg = PortsConfig.load(parser["ports"])

    assert cfg.range_start == 20000
    assert cfg.range_end == 20010


def test_ports_config_invalid_range():
    parser = ConfigParser()
    parser.read_string(
        """
        [ports]
        range_start = 20010
        range_end = 20000
        """
    )

    with pytest.raises(ValueError):
        PortsConfig.load(parser["ports"])


def test_config_defaults(tmp_path):
    cfg = Config.load(str(tmp_path / "nonexistent"), environ={})

    assert cfg.paths.temp_dir == constants.DEFAULT_TEMP_DIR
    assert cfg.ports.range_start == constants.PORT_RANGE_START
    assert cfg.ports.range_end == constants.PORT_RANGE_END


def test_config_load(tmp_path):
    (tmp_path / "config").write_text(
        """
        [paths]
        temp_dir = /var/tmp/volumes

        [ports]
        range_start = 30000
        range_end = 30005
        """
    )

    cfg = Config.load(str(tmp_path / "config"), environ={})

    assert cfg.paths.temp_dir == "/var/tmp/volumes"
    assert cfg.ports.range_start == 30000
    assert cfg.ports.range_end == 30005


def test_config_load_failure_nonfatal(tmp_path, caplog):
    (tmp_path / "config").write_text("blabla")

    cfg = Config.load(str(tmp_path / "config"), environ={})

    assert cfg.paths.temp_dir == constants.DEFAULT_TEMP_DIR
    assert "failed to read config file" in caplog.text


def test_environment_overrides_file(tmp_path):
    (tmp_path / "config").write_text(
        """
        [paths]
        temp_dir = /var/tmp/volumes
        """
    )

    environ = {
        constants.TEMP_DIR_ENV: "/run/volumes",
        constants.MOUNT_DIR_ENV: "volumes",
        "HOME": "/home/user",
    }

    cfg = Config.load(str(tmp_path / "config"), environ=environ)

    assert cfg.paths.temp_dir == "/run/volumes"
    assert cfg.paths.mount_base_dir == "/home/user/volumes"


def test_empty_environment_variables_are_ignored():
    cfg = Config()
    cfg.apply_environment({constants.TEMP_DIR_ENV: "", constants.MOUNT_DIR_ENV: ""})

    assert cfg.paths.temp_dir == constants.DEFAULT_TEMP_DIR


def test_initialize(config):
    config.initialize()
    config.initialize()

    assert os.path.isdir(config.paths.temp_dir)
    assert os.path.isdir(config.paths.mount_base_dir)


def test_absolute_mount_dir_environment_variable():
    cfg = Config()
    cfg.apply_environment({constants.MOUNT_DIR_ENV: "/mnt/volumes", "HOME": "/home/me"})

    assert cfg.paths.mount_base_dir == "/mnt/volumes"
