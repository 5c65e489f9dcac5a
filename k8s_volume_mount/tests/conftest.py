"""Module that adds flags to pytest to enable certain extra tests."""

import pytest

from k8s_volume_mount.config import Config, PathsConfig
from k8s_volume_mount.session import Session


def pytest_addoption(parser):
    parser.addoption(
        "--kubernetes",
        action="store_true",
        default=False,
        help="Run tests against a real Kubernetes cluster",
    )


def pytest_configure(config):
    config.addinivalue_line(
        "markers", "kubernetes: mark test as requiring a Kubernetes cluster to run"
    )


def pytest_collection_modifyitems(config, items):
    if not config.getoption("--kubernetes"):
        skip_kubernetes = pytest.mark.skip(reason="only runs with --kubernetes option")

        for item in items:
            if "kubernetes" in item.keywords:
                item.add_marker(skip_kubernetes)


@pytest.fixture
def config(tmp_path):
    return Config(
        paths=PathsConfig(
            temp_dir=str(tmp_path / "state"), mount_base_dir=str(tmp_path / "mounts")
        )
    )


@pytest.fixture
def make_session(config):
    def factory(provider_type="webdav", pvc_name="data", port=10000, namespace=""):
        return Session.create(config, provider_type, pvc_name, port, namespace)

    return factory
