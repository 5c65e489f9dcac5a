import pytest

from k8s_volume_mount.args import Arguments
from k8s_volume_mount.constants import DEFAULT_CONFIG_PATH


def test_no_args():
    with pytest.raises(SystemExit):
        Arguments.parse([])


def test_mount():
    args = Arguments.parse(["mount", "-pvc", "data"])

    assert args.command == "mount"
    assert args.pvc == "data"
    assert args.port is None
    assert args.provider == "webdav"
    assert args.namespace is None
    assert not args.pause_on_error
    assert not args.debug
    assert args.config == DEFAULT_CONFIG_PATH


def test_single_and_double_dash_flags():
    single = Arguments.parse(
        [
            "mount",
            "-pvc",
            "data",
            "-port",
            "10005",
            "-provider",
            "nfs",
            "-namespace",
            "team",
            "-pause-on-error",
        ]
    )
    double = Arguments.parse(
        [
            "mount",
            "--pvc=data",
            "--port=10005",
            "--provider=nfs",
            "--namespace=team",
            "--pause-on-error",
        ]
    )

    for args in (single, double):
        assert args.pvc == "data"
        assert args.port == 10005
        assert args.provider == "nfs"
        assert args.namespace == "team"
        assert args.pause_on_error


def test_invalid_provider():
    with pytest.raises(SystemExit):
        Arguments.parse(["mount", "-pvc", "data", "-provider", "smb"])


def test_port_validation():
    with pytest.raises(SystemExit):
        Arguments.parse(["forward", "-pvc", "data", "-port", "abc"])

    with pytest.raises(SystemExit):
        Arguments.parse(["forward", "-pvc", "data", "-port", "70000"])


def test_cleanup_alias():
    args = Arguments.parse(["cleanup", "-pvc", "data"])

    assert args.command == "cleanup"
    assert args.pvc == "data"


def test_list():
    args = Arguments.parse(["--debug", "--config=/etc/volumes.conf", "list"])

    assert args.command == "list"
    assert args.debug
    assert args.config == "/etc/volumes.conf"
    assert args.pvc is None
    assert not args.pause_on_error


def test_unmount_does_not_take_provider():
    with pytest.raises(SystemExit):
        Arguments.parse(["unmount", "-pvc", "data", "-provider", "nfs"])
