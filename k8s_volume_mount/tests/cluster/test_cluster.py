"""
Tests that run the full volume lifecycle against a real cluster.

They need kubectl to be configured for a cluster that has a PVC named
k8s-volume-mount-test in the current namespace.
"""

import os
import shutil

import pytest

from k8s_volume_mount.__main__ import main
from k8s_volume_mount.config import Config, PathsConfig
import k8s_volume_mount.constants as constants
import k8s_volume_mount.network as network
from k8s_volume_mount.session import Session

PVC_NAME = "k8s-volume-mount-test"


def run(*arguments):
    with pytest.raises(SystemExit) as e:
        main(list(arguments))

    return e.value.code


@pytest.fixture
def cluster_config(tmp_path, monkeypatch):
    kubeconfig = os.environ.get("KUBECONFIG", os.path.expanduser("~/.kube/config"))

    monkeypatch.setenv("KUBECONFIG", kubeconfig)
    monkeypatch.setenv(constants.TEMP_DIR_ENV, str(tmp_path / "state"))
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setenv(constants.MOUNT_DIR_ENV, "mounts")

    return Config(
        paths=PathsConfig(
            temp_dir=str(tmp_path / "state"), mount_base_dir=str(tmp_path / "mounts")
        )
    )


@pytest.mark.kubernetes
def test_forward_and_cleanup(cluster_config, tmp_path):
    config_path = str(tmp_path / "config")

    assert run("--config", config_path, "forward", "-pvc", PVC_NAME) == 0

    session = Session.load_for_pvc(cluster_config, PVC_NAME)
    assert session.port_forwarding_pid > 0
    assert network.is_port_listening(session.local_hostname, session.local_port)

    assert run("--config", config_path, "list") == 0

    assert run("--config", config_path, "cleanup", "-pvc", PVC_NAME) == 0
    assert not os.path.exists(session.config_dir)

    # Nothing is left to clean up the second time
    assert run("--config", config_path, "cleanup", "-pvc", PVC_NAME) != 0


@pytest.mark.kubernetes
@pytest.mark.skipif(shutil.which("rclone") is None, reason="requires rclone")
def test_sftp_mount_round_trip(cluster_config, tmp_path):
    config_path = str(tmp_path / "config")

    assert (
        run("--config", config_path, "mount", "-pvc", PVC_NAME, "-provider", "sftp")
        == 0
    )

    session = Session.load_for_pvc(cluster_config, PVC_NAME)
    assert session.mount_method == "rclone"

    marker = os.path.join(session.mount_dir, "k8s-volume-mount-test.txt")

    with open(marker, "w") as f:
        f.write("hello")

    with open(marker) as f:
        assert f.read() == "hello"

    os.remove(marker)

    assert run("--config", config_path, "unmount", "-pvc", PVC_NAME) == 0
    assert not os.path.exists(session.mount_dir)
