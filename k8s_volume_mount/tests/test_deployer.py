import os
from unittest import mock

import pytest

from k8s_volume_mount.deployer import Deployer
from k8s_volume_mount.errors import KubectlError, RemoteDeployError
from k8s_volume_mount.kubernetes import Kubectl
from k8s_volume_mount.providers import get_provider
from k8s_volume_mount.session import Session


@pytest.fixture
def kubectl():
    kubectl = mock.Mock(spec=Kubectl)
    kubectl.port_forward.return_value = 4321
    return kubectl


@pytest.fixture
def reachable():
    with mock.patch("k8s_volume_mount.network.wait_reachable") as mock_reachable:
        mock_reachable.return_value = True
        yield mock_reachable


def test_deploy(kubectl, reachable, make_session, caplog):
    session = make_session("webdav", "data", 10000, "team")

    Deployer(kubectl).deploy(get_provider("webdav"), session)

    assert os.path.exists(session.manifest_path)
    kubectl.apply.assert_called_once_with(session.manifest_path)
    kubectl.wait_for_deployment.assert_called_once_with("webdav-data-10000", "team", 60)
    kubectl.port_forward.assert_called_once_with(
        "webdav-data-10000", "team", 10000, 8090, session.log_file_path
    )

    # The tunnel pid is persisted as soon as it is known
    assert Session.load(session.config_file_path).port_forwarding_pid == 4321

    assert "LocalPort 10000 is reachable." in caplog.text


def test_apply_failure(kubectl, reachable, make_session):
    kubectl.apply.side_effect = KubectlError("failed to apply manifest")

    with pytest.raises(RemoteDeployError) as e:
        Deployer(kubectl).deploy(get_provider("webdav"), make_session())

    assert "error applying manifest" in str(e.value)
    assert not kubectl.port_forward.called


def test_readiness_timeout_is_not_fatal(kubectl, reachable, make_session, caplog):
    kubectl.wait_for_deployment.side_effect = KubectlError("deployment not ready")
    kubectl.get_pod_logs.return_value = "rclone: permission denied"

    session = make_session()
    Deployer(kubectl).deploy(get_provider("webdav"), session)

    kubectl.get_pod_logs.assert_called_once_with("app=webdav-data-10000", "")
    assert "rclone: permission denied" in caplog.text
    assert "Attempting to continue anyway..." in caplog.text
    assert session.port_forwarding_pid == 4321


def test_port_forward_failure(kubectl, reachable, make_session):
    kubectl.port_forward.side_effect = KubectlError("failed to start port forwarding")

    session = make_session()

    with pytest.raises(RemoteDeployError) as e:
        Deployer(kubectl).deploy(get_provider("webdav"), session)

    assert "error starting port forwarding" in str(e.value)
    assert session.port_forwarding_pid == 0


def test_reuses_live_port_forward(kubectl, reachable, make_session, caplog):
    session = make_session()
    session.port_forwarding_pid = 999

    with mock.patch("k8s_volume_mount.system.process_alive", return_value=True):
        Deployer(kubectl).deploy(get_provider("webdav"), session)

    assert not kubectl.port_forward.called
    assert session.port_forwarding_pid == 999
    assert "Reusing port forwarding" in caplog.text


def test_replaces_dead_port_forward(kubectl, reachable, make_session):
    session = make_session()
    session.port_forwarding_pid = 999

    with mock.patch("k8s_volume_mount.system.process_alive", return_value=False):
        Deployer(kubectl).deploy(get_provider("webdav"), session)

    assert session.port_forwarding_pid == 4321


def test_unreachable_port_is_not_fatal(kubectl, make_session, caplog):
    with mock.patch("k8s_volume_mount.network.wait_reachable", return_value=False):
        Deployer(kubectl).deploy(get_provider("sftp"), make_session("sftp"))

    assert "LocalPort 10000 does not seem to be reachable" in caplog.text
    assert "Attempting to continue anyway..." in caplog.text
